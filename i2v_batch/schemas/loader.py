"""
YAML loader with schema validation

Provides helpers to load and validate batch configuration files.
"""
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from pydantic import ValidationError

from i2v_batch.schemas.batch_config import BatchConfig, format_validation_errors


class ValidationResult:
    """Result of a validation attempt"""

    def __init__(self, success: bool, errors: List[str] = None, warnings: List[str] = None):
        self.success = success
        self.errors = errors or []
        self.warnings = warnings or []

    def __bool__(self):
        return self.success

    def __repr__(self):
        if self.success:
            return "ValidationResult(success=True)"
        return f"ValidationResult(success=False, errors={len(self.errors)})"


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """
    Load a YAML file

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed YAML data (empty dict for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If YAML is malformed
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    with open(file_path, 'r') as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {file_path}: {e}")


def load_and_validate_batch_config(
    yaml_path: Path,
) -> Tuple[Optional[BatchConfig], ValidationResult]:
    """
    Load and validate a batch.yaml file

    Args:
        yaml_path: Path to batch.yaml

    Returns:
        Tuple of (BatchConfig or None, ValidationResult)
    """
    errors = []
    warnings = []

    try:
        yaml_data = load_yaml_file(Path(yaml_path))

        if not isinstance(yaml_data, dict):
            errors.append(f"Expected a mapping at top level, got {type(yaml_data).__name__}")
            return None, ValidationResult(success=False, errors=errors)

        bad_keys = [key for key in yaml_data if not isinstance(key, str)]
        if bad_keys:
            errors.extend(f"{key!r}: setting names must be strings" for key in bad_keys)
            return None, ValidationResult(success=False, errors=errors)

        config = BatchConfig(**yaml_data)

        if config.concurrency > 10:
            warnings.append(
                f"Concurrency of {config.concurrency} may trip remote rate limits"
            )

        if config.inter_batch_delay_ms == 0 and config.concurrency > 1:
            warnings.append("No delay between windows - consider a cooldown for rate-limited APIs")

        return config, ValidationResult(success=True, warnings=warnings)

    except FileNotFoundError as e:
        errors.append(str(e))
        return None, ValidationResult(success=False, errors=errors)

    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
        return None, ValidationResult(success=False, errors=errors)

    except ValidationError as e:
        errors.extend(format_validation_errors(e))
        return None, ValidationResult(success=False, errors=errors)
