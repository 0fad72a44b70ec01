"""LLM judge: litellm client, rubric prompt, and boundary validation."""

from .client import LLMClient, get_available_providers, parse_json_response
from .judge import JsonCompletionClient, LLMJudge
from .rubric import build_judge_prompt

__all__ = [
    "JsonCompletionClient",
    "LLMClient",
    "LLMJudge",
    "build_judge_prompt",
    "get_available_providers",
    "parse_json_response",
]
