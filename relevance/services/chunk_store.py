"""
Chunk Store abstraction.

Supplies ingested ContentChunks to scoring runs and embeddings to the learning
updater. Ingestion itself lives outside this package; the in-memory store is
filled by callers (tests, batch jobs, the HTTP surface).
"""

from datetime import datetime
from threading import Lock
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from ..models.chunk import ContentChunk
from ..utils.timestamps import to_utc


class ChunkStore(Protocol):
    """Protocol for chunk read access."""

    def get(self, chunk_id: str) -> Optional[ContentChunk]:
        ...

    def list_chunks(self, since: Optional[datetime] = None) -> List[ContentChunk]:
        """Chunks created at or after `since` (all chunks when None), oldest first."""
        ...

    def embeddings(self) -> Mapping[str, Optional[List[float]]]:
        """chunk_id -> embedding for every known chunk."""
        ...


class InMemoryChunkStore:
    """Dict-backed chunk store."""

    def __init__(self, chunks: Iterable[ContentChunk] = ()):
        self._chunks: Dict[str, ContentChunk] = {}
        self._lock = Lock()
        self.add_many(chunks)

    def add(self, chunk: ContentChunk) -> None:
        with self._lock:
            self._chunks[chunk.id] = chunk

    def add_many(self, chunks: Iterable[ContentChunk]) -> None:
        for chunk in chunks:
            self.add(chunk)

    def get(self, chunk_id: str) -> Optional[ContentChunk]:
        return self._chunks.get(chunk_id)

    def list_chunks(self, since: Optional[datetime] = None) -> List[ContentChunk]:
        with self._lock:
            chunks = list(self._chunks.values())
        if since is not None:
            since = to_utc(since)
            chunks = [c for c in chunks if c.created_at >= since]
        return sorted(chunks, key=lambda c: c.created_at)

    def embeddings(self) -> Mapping[str, Optional[List[float]]]:
        with self._lock:
            return {cid: c.embedding for cid, c in self._chunks.items()}

    def __len__(self) -> int:
        return len(self._chunks)
