"""
Feedback model: the append-only save/skip event log.

UserFeedbackEvent is the source of truth for all preference state. Events
are never mutated or deleted; profiles are recomputed from them.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..utils.timestamps import UtcDatetime, utc_now


class FeedbackAction(str, Enum):
    SAVED = "saved"
    SKIPPED = "skipped"


class UserFeedbackEvent(BaseModel):
    """A single terminal user action on a Signal's chunk."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    chunk_id: str
    action: FeedbackAction
    timestamp: UtcDatetime = Field(default_factory=utc_now)
