"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- retrieval and chunking tuning checked into the repo
  2. .env file           -- local developer overrides
  3. Environment vars    -- deploy-time values

:func:`load_config` reads the YAML file first, then deep-merges the
env-derived values from :class:`Settings` on top.  :class:`RetrievalConfig`
is the typed view over the ``retrieval`` / ``chunking`` / ``quiz`` sections
that the orchestrator consumes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ragassist.config.settings import Settings


class RetrievalConfig(BaseModel):
    """Tuning knobs for the ingestion, query and quiz flows."""

    model_config = ConfigDict(frozen=True)

    max_tokens_per_chunk: int = Field(default=500, gt=0)
    top_k: int = Field(default=5, gt=0)
    similarity_threshold: float = Field(default=0.70, ge=-1.0, le=1.0)
    max_query_length: int = Field(default=1000, gt=0)
    quiz_context_chunks: int = Field(default=10, gt=0)
    quiz_max_questions: int = Field(default=20, gt=0)
    chat_history_limit: int = Field(default=50, gt=0)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> RetrievalConfig:
        """Build from the merged config dict returned by :func:`load_config`."""
        retrieval = config.get("retrieval", {}) or {}
        chunking = config.get("chunking", {}) or {}
        quiz = config.get("quiz", {}) or {}
        values: dict[str, Any] = {}
        for key in ("top_k", "similarity_threshold", "max_query_length", "chat_history_limit"):
            if key in retrieval:
                values[key] = retrieval[key]
        if "max_tokens_per_chunk" in chunking:
            values["max_tokens_per_chunk"] = chunking["max_tokens_per_chunk"]
        if "context_chunks" in quiz:
            values["quiz_context_chunks"] = quiz["context_chunks"]
        if "max_questions" in quiz:
            values["quiz_max_questions"] = quiz["max_questions"]
        return cls(**values)


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.
        settings: Pre-built settings; a fresh :class:`Settings` is read when
                  omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
