"""
ContentChunk model: an immutable text unit produced by ingestion.

The embedding is attached by an external step and may be absent; scoring
tolerates absence. Built from ingestion dicts via ContentChunk.model_validate(d).
"""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.text import count_words
from ..utils.timestamps import UtcDatetime, utc_now


class ContentChunk(BaseModel):
    """
    One podcast transcript segment or article paragraph.

    id: chunk id (unique across sources).
    embedding: fixed-dimension vector, or None until the embedding step has run.
    word_count: filled from text when ingestion does not supply it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    text: str = ""
    embedding: Optional[List[float]] = None
    word_count: int = 0
    source_id: str = ""
    created_at: UtcDatetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def _fill_word_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("word_count"):
            data = dict(data)
            data["word_count"] = count_words(data.get("text") or "")
        return data

    @field_validator("embedding")
    @classmethod
    def _check_embedding(cls, v: Optional[List[float]]) -> Optional[List[float]]:
        # Ingestion sometimes stores [] for "not yet embedded".
        if not v:
            return None
        if not all(math.isfinite(x) for x in v):
            raise ValueError("embedding contains non-finite values")
        return v

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None
