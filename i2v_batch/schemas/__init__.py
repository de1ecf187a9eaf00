"""
Pydantic V2 schemas for i2v-batch

Provides validation and type safety for batch configuration.
"""
from i2v_batch.schemas.batch_config import BatchConfig
from i2v_batch.schemas.loader import (
    load_and_validate_batch_config,
    load_yaml_file,
    ValidationResult,
)

__all__ = [
    "BatchConfig",
    "load_and_validate_batch_config",
    "load_yaml_file",
    "ValidationResult",
]
