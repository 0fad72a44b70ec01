"""
LLM client using LiteLLM.

Provides async multi-provider JSON completions for the LLM Judge.
Supports OpenAI, Gemini, Anthropic and OpenRouter through one interface.
Client objects are built explicitly and passed to the judge; there is no
module-level client instance.

Usage:
    from relevance.judges.client import LLMClient

    client = LLMClient(provider="openai", timeout=30.0)
    payload = await client.complete_json("Score this chunk...")
"""

import asyncio
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import litellm
from litellm import acompletion

from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)

# Suppress LiteLLM's verbose logging
litellm.suppress_debug_info = True

# Drop unsupported params for models with restrictions (e.g., temperature on reasoning models)
litellm.drop_params = True


# ============================================================================
# Model Configuration
# ============================================================================

SUPPORTED_MODELS: Dict[str, str] = {
    "openai": "gpt-5-mini",
    "gemini": "gemini/gemini-2.5-flash",
    "anthropic": "claude-sonnet-4-5",
    "openrouter": "openrouter/moonshotai/kimi-k2-0905",
}

# Environment variable names for API keys
API_KEY_ENV_VARS: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


# ============================================================================
# Providers and JSON extraction
# ============================================================================

def get_available_providers() -> List[str]:
    """Providers with an API key configured in the environment."""
    return [p for p, env_var in API_KEY_ENV_VARS.items() if os.getenv(env_var)]


_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_BARE_JSON = re.compile(r"\{[\s\S]*\}")


def parse_json_response(content: str) -> Dict[str, Any]:
    """
    Extract the JSON object from a completion: the whole text, a fenced
    ```json block, or the outermost {...} span, in that order.

    Raises:
        ValueError: no candidate parses to a JSON object
    """
    content = (content or "").strip()
    candidates = [content]
    for pattern in (_FENCED_JSON, _BARE_JSON):
        match = pattern.search(content)
        if match:
            candidates.append(match.group(match.lastindex or 0))
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"Could not parse JSON from response: {content[:200]}...")


# ============================================================================
# Client
# ============================================================================

class LLMClient:
    """One configured provider/model. complete_json raises ExternalServiceError on any failure."""

    def __init__(
        self,
        provider: str = "openai",
        model: Optional[str] = None,
        temperature: float = 0.2,
        timeout: float = 30.0,
    ):
        self.provider = provider
        if provider not in SUPPORTED_MODELS:
            raise ValueError(f"Unsupported provider: {provider}. Supported: {list(SUPPORTED_MODELS)}")
        self.model = model or SUPPORTED_MODELS[provider]
        self.temperature = temperature
        self.timeout = timeout

    async def complete_json(self, prompt: str) -> Dict[str, Any]:
        """Send a single-message prompt and return the parsed JSON object."""
        env_var = API_KEY_ENV_VARS[self.provider]
        if not os.getenv(env_var):
            raise ExternalServiceError(
                f"No API key configured for {self.provider}. Set {env_var}.",
                provider=self.provider,
                retryable=False,
            )
        messages = [{"role": "user", "content": prompt}]
        try:
            response = await asyncio.wait_for(
                acompletion(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                    timeout=self.timeout,
                ),
                timeout=self.timeout + 5.0,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                f"{self.provider} timed out after {self.timeout}s", provider=self.provider
            ) from e
        except Exception as e:
            raise ExternalServiceError(f"{self.provider} call failed: {e}", provider=self.provider) from e

        try:
            content = response.choices[0].message.content
            payload = parse_json_response(content)
        except (AttributeError, IndexError, ValueError) as e:
            raise ExternalServiceError(
                f"{self.provider} returned an unusable response: {e}", provider=self.provider
            ) from e

        usage = getattr(response, "usage", None)
        if usage is not None:
            payload["_usage"] = usage.model_dump() if hasattr(usage, "model_dump") else dict(usage)
        return payload

