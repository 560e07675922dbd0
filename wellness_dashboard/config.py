"""
Runtime settings for the wellness dashboard engine.

Settings come from an optional YAML file, overlaid by ``WELLNESS_*``
environment variables (a ``.env`` file is honoured).
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .models import MatchMode

ENV_PREFIX = "WELLNESS_"
CONFIG_PATH_ENV = "WELLNESS_CONFIG"


class Settings(BaseModel):
    """Engine, server and logging settings."""

    lookback_limit: int = Field(20, gt=0, description="Max utterances used for trends")
    lookback_days: float = Field(7, gt=0, description="Trend lookback span in days")
    trend_timeout_seconds: float = Field(3.0, gt=0)
    match_mode: MatchMode = MatchMode.SUBSTRING
    update_threshold: float = Field(0.15, ge=0.0, le=1.0)

    host: str = "0.0.0.0"
    port: int = 8000

    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Settings":
        """
        Load settings from YAML and the environment.

        Args:
            path: YAML file; defaults to $WELLNESS_CONFIG when set

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        load_dotenv()
        values: dict[str, Any] = {}

        path = path or os.environ.get(CONFIG_PATH_ENV)
        if path:
            with open(path, encoding="utf-8") as f:
                values.update(yaml.safe_load(f) or {})

        for name in cls.model_fields:
            env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if env_value is not None:
                values[name] = env_value

        return cls.model_validate(values)
