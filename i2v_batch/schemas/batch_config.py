"""
Batch configuration schema for i2v-batch

Validates batch settings from code, environment variables or a
batch.yaml file with clear error messages.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ValidationError

from i2v_batch.errors import BatchConfigError


# Environment variable -> config field
ENV_VARS = {
    "I2V_BATCH_CONCURRENCY": "concurrency",
    "I2V_BATCH_DELAY_MS": "inter_batch_delay_ms",
    "I2V_BATCH_RETRY_ATTEMPTS": "retry_attempts",
    "I2V_BATCH_RETRY_DELAY_MS": "retry_delay_ms",
    "I2V_BATCH_HEARTBEAT_S": "heartbeat_interval_s",
}


def format_validation_errors(error: ValidationError) -> list[str]:
    """Format pydantic errors as 'field: message' lines"""
    lines = []
    for item in error.errors():
        field = " → ".join(str(x) for x in item['loc'])
        lines.append(f"{field}: {item['msg']}")
    return lines


class BatchConfig(BaseModel):
    """
    Batch execution settings

    Example batch.yaml:
        concurrency: 2
        inter_batch_delay_ms: 5000
        retry_attempts: 3
        retry_delay_ms: 10000
        heartbeat_interval_s: 10
    """

    concurrency: int = Field(
        default=2,
        ge=1,
        description="Items processed concurrently in one window",
    )

    inter_batch_delay_ms: int = Field(
        default=5000,
        ge=0,
        description="Cooldown between windows, to respect external rate limits",
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per item (1 disables retry)",
    )

    retry_delay_ms: int = Field(
        default=10000,
        ge=0,
        description="Fixed wait before each retry attempt",
    )

    heartbeat_interval_s: float = Field(
        default=10.0,
        gt=0,
        description="Minimum seconds between progress heartbeat log lines",
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @classmethod
    def create(cls, **values: Any) -> BatchConfig:
        """
        Build a config, raising BatchConfigError on invalid values

        None values are dropped so the field default applies.
        """
        cleaned = {k: v for k, v in values.items() if v is not None}
        try:
            return cls(**cleaned)
        except ValidationError as e:
            raise BatchConfigError(
                "Invalid batch configuration: " + "; ".join(format_validation_errors(e))
            ) from e

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> BatchConfig:
        """
        Load settings from environment variables

        Unset or empty variables keep the field default.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated BatchConfig
        """
        environ = os.environ if environ is None else environ
        values = {}
        for var, field_name in ENV_VARS.items():
            raw = environ.get(var, "").strip()
            if raw:
                values[field_name] = raw
        return cls.create(**values)

    def with_overrides(self, **overrides: Any) -> BatchConfig:
        """
        Return a validated copy with the given fields replaced

        None values are ignored; zero is a real value and is kept.
        """
        merged = self.model_dump()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).create(**merged)

    @property
    def inter_batch_delay_s(self) -> float:
        return self.inter_batch_delay_ms / 1000

    @property
    def retry_delay_s(self) -> float:
        return self.retry_delay_ms / 1000
