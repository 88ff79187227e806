"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    GROUP_WITHOUT_LABELS=dbletNode
    LATE_SERIES_GRACE_PERIOD_SECONDS=300
    AGGREGATION_INTERVAL_SECONDS=30
    NAME_SUFFIX=_delta
"""

from __future__ import annotations

import json

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised when an aggregator is configured inconsistently."""


class AggregatorConfig(BaseModel):
    """
    Validated configuration of one delta-sum aggregator.

    Parsing is the host's job; this model only checks types and ranges.
    The grouping selections are cross-checked when the aggregator is built.
    """

    model_config = {"frozen": True}

    group_by_labels: list[str] = Field(default_factory=list)
    group_without_labels: list[str] = Field(default_factory=list)
    require_grouping: bool = False
    """Deployment variant in which leaving both selections empty is an error."""

    late_series_grace_period: float = Field(default=300.0, ge=0)
    """Seconds of silence after which a series is forgotten."""

    aggregation_interval: float = Field(default=30.0, gt=0)
    """Seconds between flushes; the zero anchor sits half an interval back."""

    name_suffix: str = ""
    cumulative: bool = False
    """Keep sums across windows instead of zeroing them on reset."""


def load_aggregator_config(**raw) -> AggregatorConfig:
    """Build an AggregatorConfig, reporting any failure as ConfigurationError."""
    try:
        return AggregatorConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Aggregator configuration invalid: {e}") from e


def parse_label_list(v: str) -> list[str]:
    """Accept either a JSON list or a comma-separated string of labels."""
    v = v.strip()
    if v.startswith("["):
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid label list {v!r}: {e}") from e
        return [str(label).strip() for label in parsed if str(label).strip()]
    return [label.strip() for label in v.split(",") if label.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Grouping (at most one may be non-empty)
    GROUP_BY_LABELS: str = ""
    GROUP_WITHOUT_LABELS: str = ""
    REQUIRE_GROUPING: bool = False

    # Windowing
    LATE_SERIES_GRACE_PERIOD_SECONDS: float = 300.0
    AGGREGATION_INTERVAL_SECONDS: float = 30.0
    NAME_SUFFIX: str = ""
    CUMULATIVE: bool = False

    # Queues
    INPUT_QUEUE_SIZE: int = 10_000
    OUTPUT_QUEUE_SIZE: int = 10_000

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"

    def aggregator_config(self) -> AggregatorConfig:
        return load_aggregator_config(
            group_by_labels=parse_label_list(self.GROUP_BY_LABELS),
            group_without_labels=parse_label_list(self.GROUP_WITHOUT_LABELS),
            require_grouping=self.REQUIRE_GROUPING,
            late_series_grace_period=self.LATE_SERIES_GRACE_PERIOD_SECONDS,
            aggregation_interval=self.AGGREGATION_INTERVAL_SECONDS,
            name_suffix=self.NAME_SUFFIX,
            cumulative=self.CUMULATIVE,
        )


settings = Settings()
