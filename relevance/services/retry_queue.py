"""
Retry queue for chunks whose LLM judge call failed.

Entries are (user_id, chunk_id) pairs, deduplicated and kept in arrival order.
"""

from threading import Lock
from typing import Dict, List


class RetryQueue:
    def __init__(self):
        self._pending: Dict[str, List[str]] = {}
        self._lock = Lock()

    def add(self, user_id: str, chunk_id: str) -> None:
        with self._lock:
            queue = self._pending.setdefault(user_id, [])
            if chunk_id not in queue:
                queue.append(chunk_id)

    def pending(self, user_id: str) -> List[str]:
        with self._lock:
            return list(self._pending.get(user_id, []))

    def drain(self, user_id: str) -> List[str]:
        """Remove and return every queued chunk id for user_id."""
        with self._lock:
            return self._pending.pop(user_id, [])

    def __len__(self) -> int:
        with self._lock:
            return sum(len(q) for q in self._pending.values())
