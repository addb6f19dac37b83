"""Configuration loading, merging, and validation for kwscope."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from typing_extensions import TypedDict

import yaml
from jsonschema import Draft7Validator


# ============================================================================
# Typed Configuration Dictionaries
# ============================================================================

class RankingConfig(TypedDict, total=False):
    """Strategy ranking configuration."""
    top_n: int
    brand_name: str


class LifecycleConfig(TypedDict, total=False):
    """Lifecycle classification configuration."""
    yoy_months_required: int
    has_yoy_data: Optional[bool]  # None = detect from monthly series


class TrendConfig(TypedDict, total=False):
    """Composite trend ranking configuration."""
    top_percentile: float


class OutputConfig(TypedDict, total=False):
    """Output format configuration."""
    format: str  # "json", "csv", "xlsx"; used when the output path has no extension
    pretty_print: bool


class KwscopeConfig(TypedDict, total=False):
    """
    Complete kwscope configuration schema.

    All fields are optional as they fall back to defaults.
    Use load_config() to get a fully merged configuration.

    Strategy weights and lifecycle thresholds are fixed and deliberately
    absent from the config.

    Example:
        >>> config = load_config("kwscope.yaml")
        >>> top_n = config.get("ranking", {}).get("top_n", 10)
    """
    ranking: RankingConfig
    lifecycle: LifecycleConfig
    trend: TrendConfig
    output: OutputConfig


# JSON Schema for config validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "ranking": {
            "type": "object",
            "properties": {
                "top_n": {"type": "integer", "minimum": 1},
                "brand_name": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "lifecycle": {
            "type": "object",
            "properties": {
                "yoy_months_required": {"type": "integer", "minimum": 1},
                "has_yoy_data": {"type": ["boolean", "null"]},
            },
            "additionalProperties": False,
        },
        "trend": {
            "type": "object",
            "properties": {
                "top_percentile": {"type": "number", "exclusiveMinimum": 0, "maximum": 100},
            },
            "additionalProperties": False,
        },
        "output": {
            "type": "object",
            "properties": {
                "format": {"type": "string", "enum": ["json", "csv", "xlsx"]},
                "pretty_print": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,  # Allow extra top-level keys for host applications
}

_config_validator = Draft7Validator(CONFIG_SCHEMA)

DEFAULT_CONFIG_FILENAME = "kwscope.yaml"


class ConfigValidationError(Exception):
    """Raised when config validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        message = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration against schema.

    Args:
        config: Configuration dictionary to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    for error in _config_validator.iter_errors(config):
        path = ".".join(str(p) for p in error.path) if error.path else "(root)"
        errors.append(f"{path}: {error.message}")
    return errors


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_default_config() -> Dict[str, Any]:
    """Load the bundled default configuration."""
    default_path = Path(__file__).parent / "default_config.yaml"
    if default_path.exists():
        return yaml.safe_load(default_path.read_text()) or {}
    return {}


def load_config(config_path: Optional[str] = None, validate: bool = True) -> KwscopeConfig:
    """
    Load configuration, merging the user config over the bundled defaults.

    Args:
        config_path: Optional path to user config file (default: ./kwscope.yaml if present)
        validate: Whether to validate config against schema

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ConfigValidationError: If the user file is malformed or the merged
            config is invalid
    """
    config = load_default_config()

    if config_path and not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    user_config_path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILENAME)
    if user_config_path.exists():
        try:
            user_config = yaml.safe_load(user_config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError([f"Failed to parse {user_config_path}: {e}"])
        if not isinstance(user_config, dict):
            raise ConfigValidationError([f"{user_config_path}: top level must be a mapping"])
        config = _deep_merge(config, user_config)
        logging.debug(f"Loaded user config from {user_config_path}")

    if validate:
        errors = validate_config(config)
        if errors:
            raise ConfigValidationError(errors)

    return config


def config_to_dict(config: Optional[KwscopeConfig]) -> Dict[str, Any]:
    """Plain dict view of a (possibly missing) config."""
    return dict(config) if config else {}


def get_ranking_config(config: Optional[KwscopeConfig]) -> RankingConfig:
    """Ranking section with fallback defaults."""
    return {"top_n": 10, "brand_name": "", **config_to_dict(config).get("ranking", {})}


def get_lifecycle_config(config: Optional[KwscopeConfig]) -> LifecycleConfig:
    """Lifecycle section with fallback defaults."""
    return {"yoy_months_required": 24, "has_yoy_data": None, **config_to_dict(config).get("lifecycle", {})}


def get_trend_config(config: Optional[KwscopeConfig]) -> TrendConfig:
    """Trend section with fallback defaults."""
    return {"top_percentile": 15.0, **config_to_dict(config).get("trend", {})}
