"""YAML configuration for inference tunables and logging.

Values resolve in order: environment variable, then config/<name>.yaml, then
the defaults dataclass. Thresholds and weights are critical: a value that
cannot be read as a number stops loading instead of silently reverting.
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore

logger = logging.getLogger(__name__)

CRITICAL_KEY_MARKERS = ("gate", "confidence", "weight")
MERGED_SECTIONS = ("module_levels", "reduce_noise")


def get_project_root() -> Path:
    """
    Locate the repository root (the directory holding config/).

    Layout: src/schema_weaver/core/config_loader.py, so three levels up from core/.

    Raises:
        ValueError: If the detected root has no config/ directory
    """
    root = Path(__file__).resolve().parents[3]
    if not (root / "config").is_dir():
        raise ValueError(
            f"No config/ directory under {root}; get_project_root() assumes the src/ layout "
            f"and must be updated if modules move."
        )
    return root


def _config_file(name: str, config_path: Path | None) -> Path:
    return config_path if config_path is not None else get_project_root() / "config" / f"{name}.yaml"


def _is_critical(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in CRITICAL_KEY_MARKERS)


def _coerce_like(value: Any, default: Any) -> Any:
    """
    Convert value to the type of default.

    "0.6" → 0.6 for float defaults, "yes"/"on" → True for bool defaults.
    Booleans are never accepted as numbers.

    Raises:
        ValueError: If value cannot be converted
    """
    if value is None or default is None or type(value) is type(default):
        return value
    if isinstance(default, bool):
        return str(value).strip().lower() in ("true", "1", "yes", "on") if isinstance(value, str) else bool(value)
    if isinstance(value, bool) and isinstance(default, (int, float)):
        raise ValueError(f"boolean {value!r} is not a number")
    if isinstance(default, float):
        return float(value)
    if isinstance(default, int):
        return int(float(value)) if isinstance(value, str) else int(value)
    if isinstance(default, str):
        return str(value)
    return value


def _coerce_entry(key: str, value: Any, default: Any, origin: str) -> Any:
    """Coerce one setting; critical keys raise, others keep the default with a warning."""
    try:
        return _coerce_like(value, default)
    except (ValueError, TypeError) as e:
        if _is_critical(key):
            raise ValueError(
                f"Type coercion failed for critical config {origin}={value!r}: "
                f"expected {type(default).__name__}. Error: {e}"
            ) from e
        logger.warning(f"Ignoring {origin}={value!r}: not a {type(default).__name__} ({e})")
        return default


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; a missing file is an empty mapping."""
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, defaults apply")
        return {}
    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML in {config_path}: expected a mapping, got {type(data).__name__}")
    return data


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Override scalar settings from SNAKE_CASE environment variables."""
    result = dict(config)
    for key, current in config.items():
        if isinstance(current, dict):
            continue
        env_key = key.upper()
        raw = os.getenv(env_key)
        if raw is not None:
            result[key] = _coerce_entry(key, raw, current, env_key)
    return result


@dataclass
class InferenceConfigDefaults:
    """Heuristic relationship inference tunables."""

    name_similarity_gate: float = 0.6
    min_confidence: float = 0.55
    name_weight: float = 0.5
    type_weight: float = 0.2
    overlap_weight: float = 0.1
    uniqueness_weight: float = 0.2

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_inference_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load inference tunables.

    Args:
        config_path: YAML file to read (default: config/inference.yaml)

    Returns:
        dict keyed like InferenceConfigDefaults

    Raises:
        ValueError: On invalid YAML or a non-numeric threshold/weight
    """
    path = _config_file("inference", config_path)
    config = InferenceConfigDefaults().to_dict()

    for key, value in _read_yaml(path).items():
        if key not in config:
            logger.warning(f"Unknown inference setting {key!r} in {path} ignored")
            continue
        config[key] = _coerce_entry(key, value, config[key], key)

    return _apply_env_overrides(config)


def _default_module_levels() -> dict[str, str]:
    return {
        "schema_weaver.core.relationship_detector": "INFO",
        "schema_weaver.core.relationship_inference": "INFO",
        "schema_weaver.core.combined_output": "INFO",
    }


@dataclass
class LoggingConfigDefaults:
    """Root level, line format and per-logger levels."""

    root_level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    module_levels: dict[str, str] = field(default_factory=_default_module_levels)
    reduce_noise: dict[str, str] = field(default_factory=lambda: {"urllib3": "WARNING"})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_logging_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load logging settings (default: config/logging.yaml).

    module_levels and reduce_noise from YAML extend the defaults rather than
    replacing them.

    Raises:
        ValueError: On invalid YAML
    """
    config = LoggingConfigDefaults().to_dict()

    for key, value in _read_yaml(_config_file("logging", config_path)).items():
        if key not in config:
            continue
        if key in MERGED_SECTIONS:
            if isinstance(value, dict):
                config[key] = {**config[key], **value}
            continue
        config[key] = value

    return config
