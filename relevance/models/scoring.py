"""
Scoring models: per-stage results, provenance breadcrumbs, and ScoredChunk.

Contains:
- GateResult, EmbeddingScore, NoveltyResult, CollapseReport: stage outputs
- JudgeResult / JudgeFailure: tagged LLM judge outcomes (validated at the boundary)
- BlendWeights: effective per-run weights after DEGRADED downweighting
- StageTrace, Provenance, ScoredChunk: the auditable final score
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .chunk import ContentChunk
from .profile import PreferenceMode


class ScoringMethod(str, Enum):
    """Which stage finalized the score."""

    HEURISTIC = "heuristic"
    EXPLORATION = "exploration"
    EMBEDDING = "embedding"
    LLM = "llm"


class ModelHealth(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class GateResult(BaseModel):
    """Heuristic Gate output. score is on the 0-100 scale."""

    score: float
    passed: bool
    hard_blocked: bool = False
    reasons: List[str] = Field(default_factory=list)
    word_count: int = 0
    framework_score: float = 0.0
    insight_score: float = 0.0
    specificity_score: float = 0.0


class EmbeddingScore(BaseModel):
    """Embedding Preference Model output on the 0-1 scale."""

    score: float
    method: Literal["random", "positive-only", "contrastive", "contrastive-fallback"]


class NoveltyResult(BaseModel):
    adjustment: float = 0.0
    max_similarity: float = 0.0
    compared: int = 0
    redundant: bool = False


class CollapseReport(BaseModel):
    """separation = 1 - cos(positive, negative); None when there is no usable negative centroid."""

    separation: Optional[float] = None
    status: ModelHealth = ModelHealth.HEALTHY


class JudgeDimensions(BaseModel):
    framework_clarity: float = Field(ge=0, le=100)
    insight_novelty: float = Field(ge=0, le=100)
    tactical_specificity: float = Field(ge=0, le=100)
    reasoning_depth: float = Field(ge=0, le=100)


class JudgeResult(BaseModel):
    status: Literal["ok"] = "ok"
    score: float = Field(ge=0, le=100)
    reasoning: str = ""
    reasons: List[str] = Field(default_factory=list)
    passed: bool
    dimensions: Optional[JudgeDimensions] = None
    usage: Optional[Dict[str, Any]] = None


class JudgeFailure(BaseModel):
    status: Literal["failed"] = "failed"
    error: str
    provider: str = ""
    retryable: bool = True


JudgeOutcome = Union[JudgeResult, JudgeFailure]


class BlendWeights(BaseModel):
    heuristic: float
    embedding: float
    llm: float

    def blend(self, heuristic: float, embedding: Optional[float], llm: Optional[float]) -> float:
        """Weighted mean over the signals that are present (weights renormalised)."""
        parts = [(self.heuristic, heuristic)]
        if embedding is not None:
            parts.append((self.embedding, embedding))
        if llm is not None:
            parts.append((self.llm, llm))
        total = sum(w for w, _ in parts)
        if total <= 0:
            return heuristic
        return sum(w * v for w, v in parts) / total


class StageTrace(BaseModel):
    """One provenance breadcrumb: which stage contributed what."""

    stage: str
    score: Optional[float] = None
    detail: Dict[str, Any] = Field(default_factory=dict)


class Provenance(BaseModel):
    method: ScoringMethod
    mode: PreferenceMode = PreferenceMode.UNTRAINED
    health: ModelHealth = ModelHealth.HEALTHY
    heuristic_score: Optional[float] = None
    embedding_score: Optional[float] = None
    llm_score: Optional[float] = None
    novelty_adjustment: float = 0.0
    degraded: bool = False
    degraded_reasons: List[str] = Field(default_factory=list)
    stages: List[StageTrace] = Field(default_factory=list)


class ScoredChunk(BaseModel):
    """An immutable (chunk, final score, provenance) triple produced by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    chunk: ContentChunk
    score: float
    provenance: Provenance

    @property
    def chunk_id(self) -> str:
        return self.chunk.id
