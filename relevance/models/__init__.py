"""Data models for the relevance engine."""

from .chunk import ContentChunk
from .config import DEFAULT_CONFIG, RelevanceConfig, ScoreBucket, resolve_config
from .feedback import FeedbackAction, UserFeedbackEvent
from .profile import PreferenceMode, SeparationReport, UserPreferenceProfile
from .scoring import (
    BlendWeights,
    CollapseReport,
    EmbeddingScore,
    GateResult,
    JudgeDimensions,
    JudgeFailure,
    JudgeOutcome,
    JudgeResult,
    ModelHealth,
    NoveltyResult,
    Provenance,
    ScoredChunk,
    ScoringMethod,
    StageTrace,
)
from .signal import Signal, SignalState

__all__ = [
    "DEFAULT_CONFIG",
    "BlendWeights",
    "CollapseReport",
    "ContentChunk",
    "EmbeddingScore",
    "FeedbackAction",
    "GateResult",
    "JudgeDimensions",
    "JudgeFailure",
    "JudgeOutcome",
    "JudgeResult",
    "ModelHealth",
    "NoveltyResult",
    "PreferenceMode",
    "Provenance",
    "RelevanceConfig",
    "ScoreBucket",
    "ScoredChunk",
    "ScoringMethod",
    "SeparationReport",
    "Signal",
    "SignalState",
    "StageTrace",
    "UserFeedbackEvent",
    "UserPreferenceProfile",
    "resolve_config",
]
