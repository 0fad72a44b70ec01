"""
Personalized relevance scoring engine.

Scores content chunks per user through a heuristic gate, an embedding
preference model with novelty checks, and an LLM judge for borderline cases;
selects a daily set of Signals; and learns from save/skip feedback.
"""

from .engine import RelevanceEngine, RunSummary
from .errors import (
    DataConsistencyError,
    EmptyInputError,
    ExternalServiceError,
    InputError,
    RelevanceError,
    SignalNotFoundError,
)
from .models import (
    DEFAULT_CONFIG,
    ContentChunk,
    FeedbackAction,
    RelevanceConfig,
    ScoredChunk,
    Signal,
    SignalState,
    UserFeedbackEvent,
    UserPreferenceProfile,
)
from .settings import ServiceSettings, load_settings
from .updater import ContinuousLearningUpdater

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_CONFIG",
    "ContentChunk",
    "ContinuousLearningUpdater",
    "DataConsistencyError",
    "EmptyInputError",
    "ExternalServiceError",
    "FeedbackAction",
    "InputError",
    "RelevanceConfig",
    "RelevanceEngine",
    "RelevanceError",
    "RunSummary",
    "SignalNotFoundError",
    "ScoredChunk",
    "ServiceSettings",
    "Signal",
    "SignalState",
    "UserFeedbackEvent",
    "UserPreferenceProfile",
    "load_settings",
]
