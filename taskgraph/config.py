"""
Application settings for taskgraph.

Values come from the environment (prefix ``TASKGRAPH_``) or a local ``.env``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the dependency graph engine."""

    model_config = SettingsConfigDict(
        env_prefix="TASKGRAPH_",
        env_file=".env",
        extra="ignore",
    )

    debug: bool = False
    log_level: str | None = None
    log_json: bool = False

    # Tolerance used when deciding whether a float value is zero
    float_epsilon_hours: float = Field(default=0.01, gt=0)

    # Reporter thresholds
    external_constraint_lag_hours: int = Field(default=24, ge=0)
    procurement_lag_hours: int = Field(default=48, ge=0)
    near_critical_float_hours: float = Field(default=8.0, ge=0)
    bottleneck_degree: int = Field(default=4, ge=1)
    most_connected_limit: int = Field(default=5, ge=1)
    blocked_ratio_threshold: float = Field(default=0.3, ge=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
