"""
LLM Judge: precise, expensive scoring for borderline chunks.

Responses are validated at the boundary into a JudgeResult; anything that
fails (provider error, timeout, unparseable or out-of-range payload) becomes a
JudgeFailure. The judge itself never raises.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ExternalServiceError
from ..models.config import RelevanceConfig, DEFAULT_CONFIG
from ..models.scoring import JudgeDimensions, JudgeFailure, JudgeOutcome, JudgeResult
from .rubric import build_judge_prompt

logger = logging.getLogger(__name__)


class JsonCompletionClient(Protocol):
    """Anything that turns a prompt into a JSON object (LLMClient, or a fake in tests)."""

    provider: str

    async def complete_json(self, prompt: str) -> Dict[str, Any]:
        ...


class _Verdict(BaseModel):
    """Raw provider payload, camelCase as requested by the rubric."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    framework_clarity: float = Field(alias="frameworkClarity", ge=0, le=100)
    insight_novelty: float = Field(alias="insightNovelty", ge=0, le=100)
    tactical_specificity: float = Field(alias="tacticalSpecificity", ge=0, le=100)
    reasoning_depth: float = Field(alias="reasoningDepth", ge=0, le=100)
    overall_score: float = Field(alias="overallScore", ge=0, le=100)
    reasoning: str = ""
    usage: Optional[Dict[str, Any]] = Field(default=None, alias="_usage")


class LLMJudge:
    """Scores one chunk against the fixed rubric."""

    def __init__(self, client: JsonCompletionClient, config: RelevanceConfig = DEFAULT_CONFIG):
        self.client = client
        self.config = config

    @property
    def provider(self) -> str:
        return getattr(self.client, "provider", "unknown")

    async def judge(self, text: str) -> JudgeOutcome:
        """Return JudgeResult (score 0-100, reasoning, passed) or JudgeFailure."""
        try:
            payload = await self.client.complete_json(build_judge_prompt(text))
        except ExternalServiceError as e:
            logger.warning("[judge] JUDGE_CALL_FAILED provider=%s error=%s", self.provider, e)
            return JudgeFailure(error=str(e), provider=self.provider, retryable=e.retryable)

        try:
            verdict = _Verdict.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "[judge] JUDGE_RESPONSE_INVALID provider=%s errors=%s",
                self.provider, e.error_count(),
            )
            return JudgeFailure(error=f"invalid judge payload: {e.errors()[:3]}", provider=self.provider)

        reasoning = verdict.reasoning.strip()
        reasons = [line.strip() for line in reasoning.splitlines() if line.strip()]
        return JudgeResult(
            score=verdict.overall_score,
            reasoning=reasoning,
            reasons=reasons,
            passed=verdict.overall_score >= self.config.llm_pass_cutoff,
            dimensions=JudgeDimensions(
                framework_clarity=verdict.framework_clarity,
                insight_novelty=verdict.insight_novelty,
                tactical_specificity=verdict.tactical_specificity,
                reasoning_depth=verdict.reasoning_depth,
            ),
            usage=verdict.usage,
        )
