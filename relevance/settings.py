"""
Service settings.

Loads deployment configuration from environment variables (and a .env file
via python-dotenv). Algorithm parameters live in RelevanceConfig; an optional
JSON file at RELEVANCE_CONFIG_PATH overrides its defaults.

There is no global settings instance: build one with load_settings() and pass
it to RelevanceEngine.from_settings() / create_app().
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .models.config import RelevanceConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "gemini", "anthropic", "openrouter")


@dataclass
class ServiceSettings:
    """Deployment settings."""

    # LLM Judge
    llm_provider: str = "openai"
    llm_model: Optional[str] = None
    llm_timeout_seconds: float = 30.0
    llm_temperature: float = 0.2

    # Storage: JSONL feedback log lives here; in-memory when unset
    data_dir: Optional[Path] = None
    # Optional JSON file merged into RelevanceConfig defaults
    config_path: Optional[Path] = None

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Load settings from environment variables."""
        provider = os.getenv("LLM_PROVIDER", "openai").strip().lower()
        if provider not in PROVIDERS:
            logger.warning("[settings] UNKNOWN_LLM_PROVIDER provider=%s fallback=openai", provider)
            provider = "openai"

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            return Path(v).expanduser() if v else None

        return cls(
            llm_provider=provider,
            llm_model=os.getenv("LLM_MODEL") or None,
            llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
            data_dir=_path_env("RELEVANCE_DATA_DIR"),
            config_path=_path_env("RELEVANCE_CONFIG_PATH"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )

    def load_relevance_config(self) -> RelevanceConfig:
        """RelevanceConfig from config_path, or the defaults when no file is configured."""
        if self.config_path is None:
            return DEFAULT_CONFIG
        with open(self.config_path, encoding="utf-8") as f:
            return RelevanceConfig.from_dict(json.load(f))


def load_settings(env_file: Optional[Union[str, Path]] = None) -> ServiceSettings:
    """Load .env (env_file, or the nearest .env found from the working directory) then read the environment."""
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()
    return ServiceSettings.from_env()
