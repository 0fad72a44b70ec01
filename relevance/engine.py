"""
Relevance engine: scheduled scoring runs and the feedback hook.

generate_signals runs one user's daily batch: gather eligible chunks, score
them concurrently, select under the remaining budget, and persist Signals.
record_feedback is the feedback-triggered hook: it moves a Signal to a terminal
state, appends the event to the log, and recomputes the user's profile.

Failures are isolated per chunk (inside the orchestrator) and per user
(run_daily records the error and moves on).
"""

import logging
import random
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from .errors import DataConsistencyError
from .judges.client import LLMClient
from .judges.judge import LLMJudge
from .models.chunk import ContentChunk
from .models.config import RelevanceConfig, resolve_config
from .models.feedback import FeedbackAction, UserFeedbackEvent
from .models.profile import PreferenceMode, UserPreferenceProfile
from .models.scoring import ModelHealth, ScoredChunk
from .models.signal import Signal
from .services.chunk_store import ChunkStore, InMemoryChunkStore
from .services.feedback_log import FeedbackLog, InMemoryFeedbackLog, open_feedback_log
from .services.profile_store import InMemoryProfileStore, ProfileStore
from .services.retry_queue import RetryQueue
from .services.signal_store import InMemorySignalStore, SignalStore
from .settings import ServiceSettings
from .stages.orchestrator import RunContext, ScoringOrchestrator
from .stages.selector import is_eligible, select_candidates
from .updater import ContinuousLearningUpdater
from .utils.timestamps import to_utc, to_utc_or_none, utc_now

logger = logging.getLogger(__name__)


class RunSummary(BaseModel):
    """Diagnostics for one user's scoring run."""

    user_id: str
    mode: PreferenceMode
    health: ModelHealth = ModelHealth.HEALTHY
    baseline_method: str = "random"
    budget: int = 0
    remaining_budget: int = 0
    considered: int = 0
    deferred: int = 0
    ineligible: int = 0
    already_signaled: int = 0
    scored: int = 0
    selected: int = 0
    created: int = 0
    duplicates: int = 0
    llm_calls: int = 0
    degraded: int = 0
    retry_queued: int = 0
    method_counts: Dict[str, int] = Field(default_factory=dict)
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    avg_score: Optional[float] = None
    signal_ids: List[str] = Field(default_factory=list)
    skipped_reason: Optional[str] = None


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class RelevanceEngine:
    def __init__(
        self,
        config: Optional[RelevanceConfig] = None,
        chunks: Optional[ChunkStore] = None,
        feedback: Optional[FeedbackLog] = None,
        signals: Optional[SignalStore] = None,
        profiles: Optional[ProfileStore] = None,
        judge: Optional[LLMJudge] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = resolve_config(config)
        self.chunks = chunks if chunks is not None else InMemoryChunkStore()
        self.feedback = feedback if feedback is not None else InMemoryFeedbackLog()
        self.signals = signals if signals is not None else InMemorySignalStore()
        self.profiles = profiles if profiles is not None else InMemoryProfileStore()
        self.retry_queue = RetryQueue()
        self._feedback_lock = Lock()
        self.orchestrator = ScoringOrchestrator(self.config, judge=judge, rng=rng)
        self.updater = ContinuousLearningUpdater(self.feedback, self.chunks, self.profiles, self.config)

    @classmethod
    def from_settings(cls, settings: ServiceSettings, **overrides) -> "RelevanceEngine":
        """Build an engine with a litellm-backed judge and the configured feedback log."""
        config = settings.load_relevance_config()
        client = LLMClient(
            provider=settings.llm_provider,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout_seconds,
        )
        kwargs = {
            "config": config,
            "feedback": open_feedback_log(settings.data_dir),
            "judge": LLMJudge(client, config),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    def profile_for(self, user_id: str) -> UserPreferenceProfile:
        return self.profiles.get_or_create(user_id)

    # -------------------------------------------------------------------------
    # Scoring runs
    # -------------------------------------------------------------------------

    async def generate_signals(
        self,
        user_id: str,
        *,
        since: Optional[datetime] = None,
        budget: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RunSummary:
        """
        Score new chunks for user_id and persist up to the remaining daily budget as Signals.

        Chunks without an embedding are deferred to a later run. Chunks outside
        the word-count window or already signaled to the user are not scored.
        """
        now = to_utc(now) if now is not None else utc_now()
        since = to_utc_or_none(since)
        total_budget = self.config.daily_signal_budget if budget is None else budget
        remaining = max(0, total_budget - self.signals.count_created_since(user_id, _start_of_day(now)))
        profile = self.profile_for(user_id)
        ctx = self.orchestrator.start_run(profile)
        summary = RunSummary(
            user_id=user_id,
            mode=ctx.mode,
            health=ctx.health,
            baseline_method=ctx.model.baseline_method,
            budget=total_budget,
            remaining_budget=remaining,
        )
        if remaining == 0:
            summary.skipped_reason = "budget_met"
            logger.info("[engine] RUN_SKIPPED user_id=%s reason=budget_met budget=%s", user_id, total_budget)
            return summary

        already = self.signals.signaled_chunk_ids(user_id)
        candidates: List[ContentChunk] = []
        for chunk in self.chunks.list_chunks(since):
            summary.considered += 1
            if chunk.id in already:
                summary.already_signaled += 1
            elif not chunk.has_embedding:
                summary.deferred += 1
            elif not is_eligible(chunk, self.config):
                summary.ineligible += 1
            else:
                candidates.append(chunk)
        if summary.deferred:
            logger.info("[engine] CHUNKS_DEFERRED user_id=%s count=%s reason=no_embedding", user_id, summary.deferred)

        scored = tuple(await self.orchestrator.score_batch(candidates, ctx))
        selected = select_candidates(scored, ctx.mode, self.config, already, remaining)
        self._persist(user_id, selected, ctx, summary, now)
        self._fill_diagnostics(scored, ctx, summary)

        logger.info(
            "[engine] RUN_COMPLETE user_id=%s mode=%s health=%s scored=%s created=%s llm_calls=%s degraded=%s",
            user_id, summary.mode.value, summary.health.value, summary.scored,
            summary.created, summary.llm_calls, summary.degraded,
        )
        return summary

    def _persist(
        self,
        user_id: str,
        selected: Sequence[ScoredChunk],
        ctx: RunContext,
        summary: RunSummary,
        now: datetime,
    ) -> None:
        retry_ids = set(ctx.retry_chunk_ids)
        for s in selected:
            if summary.created >= summary.remaining_budget:
                break
            signal = Signal(
                user_id=user_id,
                chunk_id=s.chunk_id,
                relevance_score=s.score,
                provenance=s.provenance,
                created_at=now,
            )
            try:
                self.signals.insert(signal)
            except DataConsistencyError:
                summary.duplicates += 1
                logger.info("[engine] SIGNAL_EXISTS user_id=%s chunk_id=%s", user_id, s.chunk_id)
                continue
            summary.created += 1
            summary.signal_ids.append(signal.id)
            if s.chunk_id in retry_ids:
                self.retry_queue.add(user_id, s.chunk_id)
                summary.retry_queued += 1
        summary.selected = len(selected)

    @staticmethod
    def _fill_diagnostics(scored: Sequence[ScoredChunk], ctx: RunContext, summary: RunSummary) -> None:
        summary.scored = len(scored)
        summary.llm_calls = ctx.llm_calls
        summary.degraded = sum(1 for s in scored if s.provenance.degraded)
        counts: Dict[str, int] = {}
        for s in scored:
            counts[s.provenance.method.value] = counts.get(s.provenance.method.value, 0) + 1
        summary.method_counts = counts
        if scored:
            scores = [s.score for s in scored]
            summary.min_score = min(scores)
            summary.max_score = max(scores)
            summary.avg_score = sum(scores) / len(scores)

    async def run_daily(self, user_ids: Sequence[str]) -> Dict[str, Union[RunSummary, str]]:
        """Run generate_signals for each user. A failing user is recorded as an error string."""
        results: Dict[str, Union[RunSummary, str]] = {}
        for user_id in user_ids:
            try:
                results[user_id] = await self.generate_signals(user_id)
            except Exception as e:
                logger.exception("[engine] USER_RUN_FAILED user_id=%s", user_id)
                results[user_id] = f"{type(e).__name__}: {e}"
        return results

    async def retry_degraded(self, user_id: str) -> int:
        """
        Re-score chunks whose judge call failed and update their still-pending Signals.

        Chunks that fail again are re-queued. Returns the number of Signals updated.
        """
        chunk_ids = self.retry_queue.drain(user_id)
        chunks = [c for c in (self.chunks.get(cid) for cid in chunk_ids) if c is not None]
        if not chunks:
            return 0
        ctx = self.orchestrator.start_run(self.profile_for(user_id))
        scored = await self.orchestrator.score_batch(chunks, ctx)
        failed_again = set(ctx.retry_chunk_ids)
        updated = 0
        for s in scored:
            if s.chunk_id in failed_again:
                self.retry_queue.add(user_id, s.chunk_id)
                continue
            if self.signals.update_score(user_id, s.chunk_id, s.score, s.provenance):
                updated += 1
        logger.info(
            "[engine] RETRY_COMPLETE user_id=%s attempted=%s updated=%s requeued=%s",
            user_id, len(chunks), updated, len(failed_again),
        )
        return updated

    # -------------------------------------------------------------------------
    # Feedback hook and retention
    # -------------------------------------------------------------------------

    def record_feedback(
        self,
        signal_id: str,
        action: Union[FeedbackAction, str],
        timestamp: Optional[datetime] = None,
    ) -> UserPreferenceProfile:
        """
        Mark a Signal saved/skipped, log the event, and recompute the user's profile.

        Raises:
            SignalNotFoundError: unknown signal_id
            DataConsistencyError: the Signal was already actioned
            ValueError: action is not saved/skipped
        """
        action = FeedbackAction(action)
        timestamp = to_utc(timestamp) if timestamp is not None else utc_now()
        with self._feedback_lock:
            pending = self.signals.get(signal_id)
            if pending.is_terminal:
                raise DataConsistencyError(
                    f"Signal {signal_id} already {pending.state.value}; cannot mark {action.value}"
                )
            event = UserFeedbackEvent(
                user_id=pending.user_id,
                chunk_id=pending.chunk_id,
                action=action,
                timestamp=timestamp,
            )
            # The log is written first; a failed append leaves the Signal pending.
            self.feedback.append(event)
            signal = self.signals.mark_action(signal_id, action, timestamp)
        logger.info(
            "[engine] FEEDBACK_RECORDED user_id=%s chunk_id=%s action=%s",
            signal.user_id, signal.chunk_id, action.value,
        )
        return self.updater.recompute_user_centroid(signal.user_id)

    def expire_signals(self, now: Optional[datetime] = None) -> int:
        """Drop pending Signals older than signal_retention_days. Returns the number removed."""
        now = to_utc(now) if now is not None else utc_now()
        return self.signals.expire_pending(now - timedelta(days=self.config.signal_retention_days))
