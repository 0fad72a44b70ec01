"""
Scoring orchestrator: sequences gate, embedding/novelty, and LLM judge into
one auditable score per (user, chunk).

The main entry points are ScoringOrchestrator.start_run (per-user run state)
and score_batch (bounded-concurrency scoring with a join barrier). score_chunk
is total: a structurally valid chunk always gets a score in [0, 1].
"""

import asyncio
import logging
import random
from typing import Dict, List, Optional, Sequence

from ..errors import InputError
from ..judges.judge import LLMJudge
from ..models.chunk import ContentChunk
from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.profile import PreferenceMode, UserPreferenceProfile
from ..models.scoring import (
    BlendWeights,
    EmbeddingScore,
    GateResult,
    JudgeFailure,
    ModelHealth,
    NoveltyResult,
    Provenance,
    ScoredChunk,
    ScoringMethod,
    StageTrace,
)
from .heuristic_gate import NEUTRAL_SCORE, evaluate_gate
from .novelty import novelty_penalty
from .preference_model import EmbeddingPreferenceModel

logger = logging.getLogger(__name__)


def effective_weights(config: RelevanceConfig, health: ModelHealth) -> BlendWeights:
    """Blend weights for a run; DEGRADED runs scale the embedding weight down and renormalise."""
    w_emb = config.weight_embedding
    if health == ModelHealth.DEGRADED:
        w_emb *= config.degraded_embedding_scale
    total = config.weight_heuristic + w_emb + config.weight_llm
    return BlendWeights(
        heuristic=config.weight_heuristic / total,
        embedding=w_emb / total,
        llm=config.weight_llm / total,
    )


class RunContext:
    """Scoring state shared by every chunk of one user's run."""

    def __init__(
        self,
        profile: UserPreferenceProfile,
        config: RelevanceConfig,
        rng: random.Random,
    ):
        self.profile = profile
        self.model = EmbeddingPreferenceModel(profile, config, rng)
        self.mode: PreferenceMode = self.model.mode
        self.health_reasons: List[str] = []
        if self.model.collapse.status == ModelHealth.DEGRADED:
            self.health_reasons.append("centroid_collapse")
        if profile.separation is not None and not profile.separation.informative:
            self.health_reasons.append("low_separation")
        self.health = ModelHealth.DEGRADED if self.health_reasons else ModelHealth.HEALTHY
        self.weights = effective_weights(config, self.health)
        self.exploration_scores: Dict[str, float] = {}
        self.consecutive_judge_failures = 0
        self.judge_disabled = False
        self.llm_calls = 0
        self.retry_chunk_ids: List[str] = []

    @property
    def user_id(self) -> str:
        return self.profile.user_id


class ScoringOrchestrator:
    """Runs the scoring cascade for one user's chunks."""

    def __init__(
        self,
        config: RelevanceConfig = DEFAULT_CONFIG,
        judge: Optional[LLMJudge] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.judge = judge
        self.rng = rng if rng is not None else random.Random()

    def start_run(self, profile: UserPreferenceProfile) -> RunContext:
        ctx = RunContext(profile, self.config, self.rng)
        if ctx.health == ModelHealth.DEGRADED:
            logger.warning(
                "[orchestrator] RUN_DEGRADED user_id=%s reasons=%s embedding_weight=%.3f",
                profile.user_id, ctx.health_reasons, ctx.weights.embedding,
            )
        return ctx

    async def score_batch(
        self,
        chunks: Sequence[ContentChunk],
        ctx: RunContext,
    ) -> List[ScoredChunk]:
        """
        Score chunks concurrently (at most config.scoring_concurrency in flight)
        and return results in input order once all have finished.
        """
        if ctx.mode == PreferenceMode.UNTRAINED:
            # Draw exploration scores in input order so a seeded rng is reproducible.
            for chunk in chunks:
                if chunk.id not in ctx.exploration_scores:
                    ctx.exploration_scores[chunk.id] = ctx.model.score(None).score
        semaphore = asyncio.Semaphore(max(1, self.config.scoring_concurrency))

        async def _bounded(chunk: ContentChunk) -> ScoredChunk:
            async with semaphore:
                return await self.score_chunk(chunk, ctx)

        return list(await asyncio.gather(*(_bounded(c) for c in chunks)))

    async def score_chunk(self, chunk: ContentChunk, ctx: RunContext) -> ScoredChunk:
        """Score one chunk. Never raises for a ContentChunk."""
        gate: Optional[GateResult] = None
        try:
            gate = evaluate_gate(chunk.text, self.config)
            return await self._score(chunk, gate, ctx)
        except Exception:
            logger.exception(
                "[orchestrator] SCORING_STAGE_ERROR user_id=%s chunk_id=%s", ctx.user_id, chunk.id
            )
            fallback = (gate.score if gate is not None else NEUTRAL_SCORE) / 100.0
            provenance = Provenance(
                method=ScoringMethod.HEURISTIC,
                mode=ctx.mode,
                health=ctx.health,
                heuristic_score=fallback,
                degraded=True,
                degraded_reasons=["internal_error"],
                stages=[StageTrace(stage="fallback", score=fallback)],
            )
            return ScoredChunk(chunk=chunk, score=_clamp(fallback), provenance=provenance)

    async def _score(self, chunk: ContentChunk, gate: GateResult, ctx: RunContext) -> ScoredChunk:
        h = gate.score / 100.0
        stages = [
            StageTrace(
                stage="heuristic",
                score=h,
                detail={"passed": gate.passed, "hard_blocked": gate.hard_blocked, "reasons": gate.reasons},
            )
        ]
        degraded_reasons: List[str] = []

        # --- 1. Gate rejects: finalize with the gate score ---
        if not gate.passed:
            return self._finalize(chunk, h, ScoringMethod.HEURISTIC, ctx, stages, heuristic=h)

        # --- 2. Cold start: gate score lightly jittered by exploration ---
        if ctx.mode == PreferenceMode.UNTRAINED:
            explore = ctx.exploration_scores.get(chunk.id)
            if explore is None:
                explore = ctx.model.score(None).score
            jitter = self.config.exploration_jitter
            final = (1.0 - jitter) * h + jitter * explore
            stages.append(StageTrace(stage="exploration", score=explore, detail={"jitter": jitter}))
            return self._finalize(
                chunk, final, ScoringMethod.EXPLORATION, ctx, stages, heuristic=h, embedding=explore,
            )

        # --- 3. Embedding score + novelty adjustment ---
        embedding: Optional[EmbeddingScore] = None
        novelty = NoveltyResult()
        if not chunk.has_embedding:
            degraded_reasons.append("embedding_missing")
            logger.info("[orchestrator] EMBEDDING_MISSING user_id=%s chunk_id=%s", ctx.user_id, chunk.id)
        else:
            try:
                embedding = ctx.model.score(chunk.embedding)
                novelty = novelty_penalty(
                    chunk.embedding, ctx.profile.recent_saved_embeddings, self.config
                )
            except InputError as err:
                embedding = None
                novelty = NoveltyResult()
                degraded_reasons.append("embedding_invalid")
                logger.warning(
                    "[orchestrator] EMBEDDING_UNUSABLE user_id=%s chunk_id=%s error=%s",
                    ctx.user_id, chunk.id, err,
                )
        e = embedding.score if embedding is not None else None
        if embedding is not None:
            stages.append(StageTrace(stage="embedding", score=e, detail={"method": embedding.method}))
            stages.append(
                StageTrace(
                    stage="novelty",
                    score=novelty.adjustment,
                    detail={"max_similarity": novelty.max_similarity, "compared": novelty.compared},
                )
            )

        adjustment = novelty.adjustment
        prior = ctx.weights.blend(h, e, None) + adjustment
        method = ScoringMethod.EMBEDDING if e is not None else ScoringMethod.HEURISTIC

        # --- 4. Borderline band: LLM judge ---
        if not self._needs_judge(prior, h, e):
            return self._finalize(
                chunk, prior, method, ctx, stages, degraded_reasons,
                heuristic=h, embedding=e, adjustment=adjustment,
            )
        if self.judge is None:
            stages.append(StageTrace(stage="llm", detail={"skipped": "no_judge"}))
            return self._finalize(
                chunk, prior, method, ctx, stages, degraded_reasons,
                heuristic=h, embedding=e, adjustment=adjustment,
            )
        if ctx.judge_disabled:
            stages.append(StageTrace(stage="llm", detail={"skipped": "judge_circuit_open"}))
            degraded_reasons.append("judge_unavailable")
            ctx.retry_chunk_ids.append(chunk.id)
            return self._finalize(
                chunk, prior, method, ctx, stages, degraded_reasons,
                heuristic=h, embedding=e, adjustment=adjustment,
            )

        ctx.llm_calls += 1
        outcome = await self.judge.judge(chunk.text)
        if isinstance(outcome, JudgeFailure):
            ctx.consecutive_judge_failures += 1
            if ctx.consecutive_judge_failures >= self.config.judge_failure_limit and not ctx.judge_disabled:
                ctx.judge_disabled = True
                logger.warning(
                    "[orchestrator] JUDGE_DISABLED_FOR_RUN user_id=%s failures=%s",
                    ctx.user_id, ctx.consecutive_judge_failures,
                )
            stages.append(StageTrace(stage="llm", detail={"error": outcome.error}))
            degraded_reasons.append("judge_failed")
            if outcome.retryable:
                ctx.retry_chunk_ids.append(chunk.id)
            return self._finalize(
                chunk, prior, method, ctx, stages, degraded_reasons,
                heuristic=h, embedding=e, adjustment=adjustment,
            )

        ctx.consecutive_judge_failures = 0
        llm = outcome.score / 100.0
        stages.append(
            StageTrace(stage="llm", score=llm, detail={"passed": outcome.passed, "reasons": outcome.reasons})
        )
        final = ctx.weights.blend(h, e, llm) + adjustment
        return self._finalize(
            chunk, final, ScoringMethod.LLM, ctx, stages, degraded_reasons,
            heuristic=h, embedding=e, llm=llm, adjustment=adjustment,
        )

    def _needs_judge(self, prior: float, heuristic: float, embedding: Optional[float]) -> bool:
        """In the borderline band, and heuristic/embedding do not already agree strongly."""
        low, high = self.config.borderline_band_low, self.config.borderline_band_high
        if not low <= _clamp(prior) * 100.0 <= high:
            return False
        if self.config.agreement_guard and embedding is not None:
            h, e = heuristic * 100.0, embedding * 100.0
            if (h >= high and e >= high) or (h <= low and e <= low):
                return False
        return True

    def _finalize(
        self,
        chunk: ContentChunk,
        score: float,
        method: ScoringMethod,
        ctx: RunContext,
        stages: List[StageTrace],
        degraded_reasons: Optional[List[str]] = None,
        heuristic: Optional[float] = None,
        embedding: Optional[float] = None,
        llm: Optional[float] = None,
        adjustment: float = 0.0,
    ) -> ScoredChunk:
        reasons = list(degraded_reasons or [])
        provenance = Provenance(
            method=method,
            mode=ctx.mode,
            health=ctx.health,
            heuristic_score=heuristic,
            embedding_score=embedding,
            llm_score=llm,
            novelty_adjustment=adjustment,
            degraded=bool(reasons),
            degraded_reasons=reasons,
            stages=stages,
        )
        return ScoredChunk(chunk=chunk, score=_clamp(score), provenance=provenance)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
