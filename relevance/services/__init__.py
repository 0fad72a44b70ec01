"""Stores backing the engine: chunks, feedback events, signals, profiles, retries."""

from .chunk_store import ChunkStore, InMemoryChunkStore
from .feedback_log import FeedbackLog, InMemoryFeedbackLog, JsonlFeedbackLog, open_feedback_log
from .profile_store import InMemoryProfileStore, ProfileStore
from .retry_queue import RetryQueue
from .signal_store import InMemorySignalStore, SignalStore

__all__ = [
    "ChunkStore",
    "FeedbackLog",
    "InMemoryChunkStore",
    "InMemoryFeedbackLog",
    "InMemoryProfileStore",
    "InMemorySignalStore",
    "JsonlFeedbackLog",
    "ProfileStore",
    "RetryQueue",
    "SignalStore",
    "open_feedback_log",
]
