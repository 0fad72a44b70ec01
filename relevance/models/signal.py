"""
Signal model: one scored (user, chunk) pairing presented for feedback.

At most one Signal exists per (user_id, chunk_id). State moves
pending -> saved or pending -> skipped exactly once.
"""

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..utils.timestamps import UtcDatetime, utc_now
from .feedback import FeedbackAction
from .scoring import Provenance


class SignalState(str, Enum):
    PENDING = "pending"
    SAVED = "saved"
    SKIPPED = "skipped"

    @classmethod
    def from_action(cls, action: FeedbackAction) -> "SignalState":
        return cls.SAVED if action == FeedbackAction.SAVED else cls.SKIPPED


class Signal(BaseModel):
    """A persisted, user-visible scored chunk."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    chunk_id: str
    relevance_score: float = Field(ge=0.0, le=1.0)
    provenance: Provenance
    state: SignalState = SignalState.PENDING
    created_at: UtcDatetime = Field(default_factory=utc_now)
    actioned_at: Optional[UtcDatetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state != SignalState.PENDING
