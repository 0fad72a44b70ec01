"""
Shared fixtures for relevance engine tests.

The LLM is never called: FakeJudgeClient stands in for LLMClient and returns
a canned rubric payload (or raises the error it was given).
"""

import random
from typing import Any, Dict, List, Optional

import pytest

from relevance.errors import ExternalServiceError
from relevance.models import ContentChunk, RelevanceConfig, UserPreferenceProfile

DIM = 8

# 48 words: named concept, contrast, causal connective, numbers, proper noun, example.
SUBSTANTIVE = (
    "We call this the idea maze: founders who map every path before building tend to win because "
    "they see the traps early. For example, Stripe spent 2 years on compliance versus competitors who "
    "shipped first, and that decision leads to durable trust with banks and 3 major partners."
)

# 45 lowercase words that match no gate rule.
BLAND = (
    "we talked for a while about the weather in the city and how the trains were running late "
    "most mornings and the coffee shop on the corner was busy and the team went out for lunch "
    "together on friday afternoon at the usual place downtown."
)


def unit(i: int, dim: int = DIM) -> List[float]:
    """One-hot vector along axis i."""
    v = [0.0] * dim
    v[i] = 1.0
    return v


def near(i: int, rng: random.Random, noise: float = 0.05, dim: int = DIM) -> List[float]:
    """Axis i plus small uniform noise on every dimension."""
    return [(1.0 if d == i else 0.0) + rng.uniform(-noise, noise) for d in range(dim)]


def verdict(score: float = 70.0, reasoning: str = "Named framework.\nSpecific tactic.") -> Dict[str, Any]:
    return {
        "frameworkClarity": score,
        "insightNovelty": score,
        "tacticalSpecificity": score,
        "reasoningDepth": score,
        "overallScore": score,
        "reasoning": reasoning,
    }


class FakeJudgeClient:
    """JsonCompletionClient double: returns payload, or raises error when set."""

    provider = "fake"

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.payload = payload if payload is not None else verdict()
        self.error = error
        self.calls = 0
        self.prompts: List[str] = []

    async def complete_json(self, prompt: str) -> Dict[str, Any]:
        self.calls += 1
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return dict(self.payload)


def make_chunk(
    chunk_id: str,
    text: str = SUBSTANTIVE,
    embedding: Optional[List[float]] = None,
    **kwargs,
) -> ContentChunk:
    return ContentChunk(id=chunk_id, text=text, embedding=embedding, **kwargs)


def trained_profile(user_id: str = "u1", positive: Optional[List[float]] = None, **kwargs) -> UserPreferenceProfile:
    """A TRAINED profile (10 saves) with the positive centroid on axis 0 by default."""
    data = {
        "user_id": user_id,
        "positive_centroid": positive if positive is not None else unit(0),
        "total_saved": 10,
        "saved_vector_count": 10,
    }
    data.update(kwargs)
    return UserPreferenceProfile(**data)


@pytest.fixture
def config() -> RelevanceConfig:
    return RelevanceConfig()


@pytest.fixture
def always_judge_config() -> RelevanceConfig:
    """Every gate-passing chunk reaches the judge."""
    return RelevanceConfig(borderline_band_low=0, borderline_band_high=100, agreement_guard=False)


@pytest.fixture
def fake_client() -> FakeJudgeClient:
    return FakeJudgeClient()


@pytest.fixture
def failing_client() -> FakeJudgeClient:
    return FakeJudgeClient(error=ExternalServiceError("provider timed out", provider="fake"))
