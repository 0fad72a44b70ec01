"""Request and response bodies for the HTTP surface."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.feedback import FeedbackAction
from ..models.profile import PreferenceMode, SeparationReport, UserPreferenceProfile
from ..models.signal import Signal
from ..utils.timestamps import UtcDatetime


class RunRequest(BaseModel):
    since: Optional[UtcDatetime] = None
    budget: Optional[int] = Field(default=None, ge=0)


class ActionRequest(BaseModel):
    action: FeedbackAction


class ProfileSummary(BaseModel):
    user_id: str
    mode: PreferenceMode
    total_saved: int
    total_skipped: int
    has_positive_centroid: bool
    has_negative_centroid: bool
    separation: Optional[SeparationReport] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_profile(cls, profile: UserPreferenceProfile, cold_start_threshold: int) -> "ProfileSummary":
        return cls(
            user_id=profile.user_id,
            mode=profile.mode(cold_start_threshold),
            total_saved=profile.total_saved,
            total_skipped=profile.total_skipped,
            has_positive_centroid=profile.positive_centroid is not None,
            has_negative_centroid=profile.negative_centroid is not None,
            separation=profile.separation,
            last_updated=profile.last_updated,
        )


class SignalList(BaseModel):
    user_id: str
    signals: List[Signal]


class ActionResponse(BaseModel):
    signal: Signal
    profile: ProfileSummary
