"""Configuration for the option query solvers.

Values come from (highest priority first) ``OPTQ_*`` environment variables,
a ``.env`` file, and an optional YAML file (``config/option_query.yaml`` by
default).  Solvers take an explicit :class:`QuerySettings` so tests can pass
their own.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

ENV_PREFIX = "OPTQ_"
_CFG_PATH = Path("config/option_query.yaml")


class QuerySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    EPSILON: int = Field(10, description="Bisection stops once high - low < EPSILON (token units)")
    SHRINK_PCT: int = Field(5, description="Shrink the upper bracket by X % on an invalid notional")
    GROW_PCT: int = Field(10, description="Grow the upper bracket by X % until f changes sign")
    SEARCH_OFFSET: int = Field(10_000, description="Secant starting distance from the current tick")
    TOLERANCE_TICKS: int = Field(
        100_000, description="Secant iterates further than this from the current tick give up"
    )
    BRACKET_SLACK_STEPS: int = Field(
        64, description="Extra shrink or grow steps allowed beyond crossing the whole bracket range"
    )
    MAX_BISECTION_STEPS: int = Field(128, description="Cap on bisection steps per ladder entry")
    MAX_SECANT_STEPS: int = Field(64, description="Cap on secant updates per liquidation search")
    MAINTENANCE_MARGIN_BPS: int = Field(
        10_000, description="Maintenance margin ratio used when the caller does not pass one"
    )
    LOG_LEVEL: str = Field("INFO", description="Root log level for setup_logging")

    @field_validator("SHRINK_PCT", "GROW_PCT")
    def check_pct(cls, v):
        if not (0 < v < 100):
            raise ValueError("bracket adjustment percentages must be between 0 and 100")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    def upper_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def validate_bounds(self):
        for name in (
            "EPSILON",
            "SEARCH_OFFSET",
            "BRACKET_SLACK_STEPS",
            "MAX_BISECTION_STEPS",
            "MAX_SECANT_STEPS",
            "MAINTENANCE_MARGIN_BPS",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.TOLERANCE_TICKS <= self.SEARCH_OFFSET:
            raise ValueError("TOLERANCE_TICKS must exceed SEARCH_OFFSET")
        return self


@lru_cache(maxsize=4)
def load_yaml_overrides(path: str | Path | None = None) -> Mapping[str, Any]:
    """Load the YAML override file.

    An absent file is not fatal: the caller falls back to env / defaults.
    """
    p = Path(path) if path else _CFG_PATH
    try:
        with p.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping at top level, got {type(data).__name__}")
    log.debug("Loaded %d config override(s) from %s", len(data), p)
    return data


def _env_keys(env_file: str | Path = ".env") -> set[str]:
    """Upper-cased names set in the process environment or the ``.env`` file."""
    keys = {k.upper() for k in os.environ}
    keys.update(k.upper() for k in dotenv_values(env_file))
    return keys


@lru_cache(maxsize=4)
def get_settings(path: str | Path | None = None) -> QuerySettings:
    """Build settings once per *path*; env vars and ``.env`` win over YAML values.

    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    env_keys = _env_keys()
    overrides = {
        k: v
        for k, v in load_yaml_overrides(path).items()
        if f"{ENV_PREFIX}{k}".upper() not in env_keys
    }
    return QuerySettings(**overrides)
