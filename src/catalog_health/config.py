"""
Tunable heuristics for the scoring engine.

The defaults come from how the dashboard has been run so far; none of
them is derived, so they live here rather than inline in the math.
Override from code or with CATALOG_HEALTH_* environment variables.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "CATALOG_HEALTH_"


class ScoringConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Share of zero-sales periods above which WAPE replaces MAPE as primary
    zero_ratio_threshold: float = Field(default=0.3, ge=0, le=1)
    # Freshness points lost per hour since the last completed sync
    freshness_decay_per_hour: float = Field(default=2.0, ge=0)
    # Hours assumed when no sync has ever completed
    missing_sync_hours: float = Field(default=999.0, ge=0)
    # Most recent periods of sales history used for accuracy metrics
    max_periods: int = Field(default=12, ge=2)
    # Thread pool size for per-SKU metrics; None lets the executor decide
    metrics_max_workers: int | None = Field(default=None, ge=1)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "ScoringConfig":
        """Build a config from the environment (and a .env file if present)."""
        load_dotenv(dotenv_path)

        overrides = {}
        for name in cls.model_fields:
            value = os.getenv(ENV_PREFIX + name.upper())
            if value is not None and value != "":
                overrides[name] = value
        return cls.model_validate(overrides)


DEFAULT_CONFIG = ScoringConfig()
