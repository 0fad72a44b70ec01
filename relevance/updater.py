"""
Continuous Learning Updater.

Keeps each UserPreferenceProfile consistent with the feedback log by
recomputing it from the full log. Recomputation is serialized per user; on
failure the previous profile is kept so the user is never left without a feed.
"""

import logging
from threading import Lock
from typing import Dict

from .errors import RelevanceError
from .models.config import RelevanceConfig, DEFAULT_CONFIG
from .models.profile import UserPreferenceProfile
from .services.chunk_store import ChunkStore
from .services.feedback_log import FeedbackLog
from .services.profile_store import ProfileStore
from .stages.learning import recompute_user_profile

logger = logging.getLogger(__name__)


class ContinuousLearningUpdater:
    def __init__(
        self,
        feedback: FeedbackLog,
        chunks: ChunkStore,
        profiles: ProfileStore,
        config: RelevanceConfig = DEFAULT_CONFIG,
    ):
        self.feedback = feedback
        self.chunks = chunks
        self.profiles = profiles
        self.config = config
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _lock_for(self, user_id: str) -> Lock:
        with self._locks_guard:
            return self._locks.setdefault(user_id, Lock())

    def recompute_user_centroid(self, user_id: str) -> UserPreferenceProfile:
        """
        Recompute user_id's profile from every saved/skipped event and store it.

        Idempotent: with no new events the stored profile is unchanged.
        Returns the stale profile (or a cold-start one) when recomputation fails.
        """
        with self._lock_for(user_id):
            events = []
            try:
                events = self.feedback.events_for_user(user_id)
                embeddings = self.chunks.embeddings()
                profile = recompute_user_profile(
                    user_id, events, embeddings, self.config, sample_pool=embeddings
                )
            except RelevanceError as e:
                logger.warning(
                    "[learning] PROFILE_RECOMPUTE_FAILED user_id=%s events=%s error=%s",
                    user_id, len(events), e,
                )
                return self.profiles.get_or_create(user_id)
            except Exception:
                logger.exception(
                    "[learning] PROFILE_RECOMPUTE_FAILED user_id=%s events=%s", user_id, len(events)
                )
                return self.profiles.get_or_create(user_id)
            self.profiles.put(profile)
        logger.info(
            "[learning] PROFILE_RECOMPUTED user_id=%s saved=%s skipped=%s mode=%s",
            user_id, profile.total_saved, profile.total_skipped,
            profile.mode(self.config.cold_start_threshold).value,
        )
        return profile
