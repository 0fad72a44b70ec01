"""
UserPreferenceProfile: per-user derived preference state.

Fully recomputable from the feedback log (see stages.learning). A profile with
fewer than cold_start_threshold saves, or without a positive centroid, is UNTRAINED.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..utils.timestamps import UtcDatetime


class PreferenceMode(str, Enum):
    UNTRAINED = "untrained"
    TRAINED = "trained"


class SeparationReport(BaseModel):
    """Separation-quality check: held-out positives vs a random sample, both against the positive centroid."""

    positive_mean: float
    random_mean: float
    separation: float
    held_out: int
    sample_size: int
    informative: bool


class UserPreferenceProfile(BaseModel):
    """Derived preference state for one user."""

    user_id: str
    positive_centroid: Optional[List[float]] = None
    negative_centroid: Optional[List[float]] = None
    total_saved: int = 0
    total_skipped: int = 0
    # Number of events whose chunk had an embedding (centroid denominators).
    saved_vector_count: int = 0
    skipped_vector_count: int = 0
    # Most recent saved embeddings, newest last; used by the novelty check.
    recent_saved_embeddings: List[List[float]] = Field(default_factory=list)
    separation: Optional[SeparationReport] = None
    last_updated: Optional[UtcDatetime] = None

    def mode(self, cold_start_threshold: int) -> PreferenceMode:
        if self.total_saved >= cold_start_threshold and self.positive_centroid is not None:
            return PreferenceMode.TRAINED
        return PreferenceMode.UNTRAINED

    @classmethod
    def empty(cls, user_id: str) -> "UserPreferenceProfile":
        """Lazily-created cold-start profile."""
        return cls(user_id=user_id)
