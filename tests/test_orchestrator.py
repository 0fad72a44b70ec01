"""
Scoring Orchestrator tests.

The orchestrator is total: every ContentChunk gets a score in [0, 1] with
provenance, whatever the stages below it do.
"""

import asyncio
import random

import pytest

from relevance.judges import LLMJudge
from relevance.models import (
    ContentChunk,
    ModelHealth,
    PreferenceMode,
    RelevanceConfig,
    ScoringMethod,
    SeparationReport,
    UserPreferenceProfile,
)
from relevance.stages.heuristic_gate import evaluate_gate
from relevance.stages.orchestrator import ScoringOrchestrator, effective_weights

from tests.conftest import BLAND, SUBSTANTIVE, FakeJudgeClient, make_chunk, trained_profile, unit, verdict


def _score(orchestrator, chunk, profile):
    ctx = orchestrator.start_run(profile)
    return asyncio.run(orchestrator.score_chunk(chunk, ctx)), ctx


class TestTotality:
    @pytest.mark.parametrize("chunk", [
        ContentChunk(id="empty", text=""),
        make_chunk("no-embedding"),
        make_chunk("wrong-dimension", embedding=[1.0, 0.0]),
        make_chunk("zero-vector", embedding=[0.0] * 8),
        make_chunk("blocked", text=SUBSTANTIVE + " Visit https://example.com now."),
        make_chunk("bland", text=BLAND, embedding=unit(3)),
    ])
    @pytest.mark.parametrize("profile", [UserPreferenceProfile.empty("u1"), trained_profile()])
    def test_always_scores_in_unit_interval(self, chunk, profile, failing_client, always_judge_config):
        orchestrator = ScoringOrchestrator(
            always_judge_config, judge=LLMJudge(failing_client), rng=random.Random(0)
        )
        scored, _ = _score(orchestrator, chunk, profile)
        assert 0.0 <= scored.score <= 1.0
        assert scored.provenance.stages

    def test_gate_failure_finalizes_with_gate_score(self, fake_client):
        orchestrator = ScoringOrchestrator(judge=LLMJudge(fake_client))
        scored, _ = _score(orchestrator, make_chunk("short", text="too short to judge"), trained_profile())
        assert scored.score == 0.0
        assert scored.provenance.method == ScoringMethod.HEURISTIC
        assert fake_client.calls == 0

    def test_missing_embedding_falls_back_to_heuristic(self):
        orchestrator = ScoringOrchestrator()
        scored, _ = _score(orchestrator, make_chunk("c1"), trained_profile())
        assert scored.provenance.method == ScoringMethod.HEURISTIC
        assert scored.provenance.degraded is True
        assert "embedding_missing" in scored.provenance.degraded_reasons
        assert scored.score == pytest.approx(evaluate_gate(SUBSTANTIVE).score / 100)


class TestColdStart:
    def test_untrained_uses_jittered_gate_score(self):
        config = RelevanceConfig()
        orchestrator = ScoringOrchestrator(config, rng=random.Random(9))
        scored, ctx = _score(orchestrator, make_chunk("c1", embedding=unit(0)), UserPreferenceProfile.empty("u1"))
        assert ctx.mode == PreferenceMode.UNTRAINED
        assert scored.provenance.method == ScoringMethod.EXPLORATION
        h = evaluate_gate(SUBSTANTIVE).score / 100
        explore = scored.provenance.embedding_score
        assert scored.score == pytest.approx((1 - config.exploration_jitter) * h + config.exploration_jitter * explore)

    def test_seeded_runs_are_deterministic(self):
        chunks = [make_chunk(f"c{i}", embedding=unit(i % 8)) for i in range(25)]
        profile = UserPreferenceProfile.empty("u1")

        def run(seed):
            orchestrator = ScoringOrchestrator(rng=random.Random(seed))
            ctx = orchestrator.start_run(profile)
            return [s.score for s in asyncio.run(orchestrator.score_batch(chunks, ctx))]

        assert run(123) == run(123)
        assert run(123) != run(124)

    def test_exploration_has_no_embedding_region_bias(self):
        chunks = []
        for i in range(400):
            chunks.append(make_chunk(f"c{i}", embedding=unit(0) if i % 2 == 0 else unit(5)))
        orchestrator = ScoringOrchestrator(rng=random.Random(2024))
        ctx = orchestrator.start_run(UserPreferenceProfile.empty("u1"))
        scored = asyncio.run(orchestrator.score_batch(chunks, ctx))
        region_a = [s.provenance.embedding_score for s in scored if s.chunk.embedding == unit(0)]
        region_b = [s.provenance.embedding_score for s in scored if s.chunk.embedding == unit(5)]
        mean_a = sum(region_a) / len(region_a)
        mean_b = sum(region_b) / len(region_b)
        assert abs(mean_a - mean_b) < 0.1
        assert 0.4 < mean_a < 0.6


class TestNoveltyInScoring:
    def test_duplicate_of_recent_save_loses_exactly_the_penalty(self):
        config = RelevanceConfig()
        orchestrator = ScoringOrchestrator(config)
        chunk = make_chunk("dup", embedding=unit(0))
        fresh, _ = _score(orchestrator, chunk, trained_profile())
        redundant, _ = _score(orchestrator, chunk, trained_profile(recent_saved_embeddings=[unit(0)]))
        assert redundant.provenance.novelty_adjustment == pytest.approx(-config.redundancy_penalty)
        assert fresh.score - redundant.score == pytest.approx(config.redundancy_penalty)
        novelty = [t for t in redundant.provenance.stages if t.stage == "novelty"][0]
        assert novelty.detail["max_similarity"] == pytest.approx(1.0)


class TestDegradedRuns:
    def test_collapse_reduces_embedding_weight(self):
        config = RelevanceConfig()
        collapsed = [0.95, 0.2] + [0.0] * 6
        profile = trained_profile(negative_centroid=collapsed, total_skipped=6, skipped_vector_count=6)
        ctx = ScoringOrchestrator(config).start_run(profile)
        assert ctx.health == ModelHealth.DEGRADED
        assert "centroid_collapse" in ctx.health_reasons
        assert ctx.weights.embedding < config.weight_embedding
        healthy = effective_weights(config, ModelHealth.HEALTHY)
        assert ctx.weights.embedding / ctx.weights.heuristic < healthy.embedding / healthy.heuristic

    def test_uninformative_separation_degrades(self):
        report = SeparationReport(
            positive_mean=0.6, random_mean=0.58, separation=0.02, held_out=2, sample_size=20, informative=False
        )
        ctx = ScoringOrchestrator().start_run(trained_profile(separation=report))
        assert ctx.health == ModelHealth.DEGRADED
        assert "low_separation" in ctx.health_reasons

    def test_effective_weights_sum_to_one(self, config):
        for health in ModelHealth:
            w = effective_weights(config, health)
            assert w.heuristic + w.embedding + w.llm == pytest.approx(1.0)

    def test_healthy_weights_match_config(self, config):
        w = effective_weights(config, ModelHealth.HEALTHY)
        assert (w.heuristic, w.embedding, w.llm) == pytest.approx((0.4, 0.3, 0.3))


class TestJudgeStage:
    def test_borderline_chunk_is_judged_and_blended(self, always_judge_config):
        client = FakeJudgeClient(verdict(80))
        orchestrator = ScoringOrchestrator(always_judge_config, judge=LLMJudge(client, always_judge_config))
        scored, ctx = _score(orchestrator, make_chunk("c1", embedding=unit(0)), trained_profile())
        h = evaluate_gate(SUBSTANTIVE).score / 100
        assert client.calls == 1
        assert ctx.llm_calls == 1
        assert scored.provenance.method == ScoringMethod.LLM
        assert scored.provenance.llm_score == pytest.approx(0.8)
        assert scored.score == pytest.approx(min(1.0, 0.4 * h + 0.3 * 1.0 + 0.3 * 0.8))

    def test_outside_band_skips_judge(self, fake_client):
        config = RelevanceConfig(borderline_band_low=0, borderline_band_high=1, agreement_guard=False)
        orchestrator = ScoringOrchestrator(config, judge=LLMJudge(fake_client, config))
        scored, _ = _score(orchestrator, make_chunk("c1", embedding=unit(0)), trained_profile())
        assert fake_client.calls == 0
        assert scored.provenance.method == ScoringMethod.EMBEDDING

    def test_strong_agreement_skips_judge(self, fake_client):
        # Prior is inside the band, but heuristic and embedding both sit at its upper edge.
        config = RelevanceConfig(borderline_band_low=0, borderline_band_high=100)
        orchestrator = ScoringOrchestrator(config, judge=LLMJudge(fake_client, config))
        _score(orchestrator, make_chunk("c1", embedding=unit(0)), trained_profile())
        assert fake_client.calls == 0

    def test_judge_failure_keeps_prior_score_and_queues_retry(self, always_judge_config, failing_client):
        failing = ScoringOrchestrator(always_judge_config, judge=LLMJudge(failing_client))
        no_judge = ScoringOrchestrator(always_judge_config)
        chunk = make_chunk("c1", embedding=unit(0))
        scored, ctx = _score(failing, chunk, trained_profile())
        prior, _ = _score(no_judge, chunk, trained_profile())
        assert scored.provenance.degraded is True
        assert "judge_failed" in scored.provenance.degraded_reasons
        assert scored.score == pytest.approx(prior.score)
        assert ctx.retry_chunk_ids == ["c1"]

    def test_repeated_failures_disable_judge_for_run(self, always_judge_config, failing_client):
        orchestrator = ScoringOrchestrator(always_judge_config, judge=LLMJudge(failing_client))
        ctx = orchestrator.start_run(trained_profile())
        for i in range(6):
            scored = asyncio.run(orchestrator.score_chunk(make_chunk(f"c{i}", embedding=unit(0)), ctx))
            assert scored.provenance.degraded is True
        assert failing_client.calls == always_judge_config.judge_failure_limit
        assert ctx.judge_disabled is True
        assert len(ctx.retry_chunk_ids) == 6

    def test_gate_blocked_chunk_never_reaches_judge(self, always_judge_config, fake_client):
        orchestrator = ScoringOrchestrator(always_judge_config, judge=LLMJudge(fake_client))
        blocked = make_chunk("ad", text=SUBSTANTIVE + " Sign up at acme.io today.", embedding=unit(0))
        _score(orchestrator, blocked, trained_profile())
        assert fake_client.calls == 0


class TestBatch:
    def test_results_in_input_order(self, always_judge_config, fake_client):
        orchestrator = ScoringOrchestrator(always_judge_config, judge=LLMJudge(fake_client))
        chunks = [make_chunk(f"c{i}", embedding=unit(i % 8)) for i in range(23)]
        ctx = orchestrator.start_run(trained_profile())
        scored = asyncio.run(orchestrator.score_batch(chunks, ctx))
        assert [s.chunk_id for s in scored] == [c.id for c in chunks]
        assert fake_client.calls == 23

    def test_concurrency_is_bounded(self, always_judge_config):
        in_flight = {"now": 0, "peak": 0}

        class SlowClient(FakeJudgeClient):
            async def complete_json(self, prompt):
                in_flight["now"] += 1
                in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
                await asyncio.sleep(0.01)
                in_flight["now"] -= 1
                return await super().complete_json(prompt)

        config = always_judge_config.model_copy(update={"scoring_concurrency": 4})
        orchestrator = ScoringOrchestrator(config, judge=LLMJudge(SlowClient(), config))
        chunks = [make_chunk(f"c{i}", embedding=unit(0)) for i in range(12)]
        asyncio.run(orchestrator.score_batch(chunks, orchestrator.start_run(trained_profile())))
        assert in_flight["peak"] <= 4
