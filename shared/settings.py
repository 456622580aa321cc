# =============================================================================
# EVMOS UPGRADE HELPER - SETTINGS LOADER
# =============================================================================
#
# Reads tunables from config/upgrade_helper.yaml.
#
# USAGE:
#   from shared.settings import load_settings
#
#   settings = load_settings()
#   settings.rounding_unit  # -> 500
#
# Secrets (OPENAI_API_KEY, GITHUB_TOKEN) are NOT part of this file. They
# come from the environment, optionally populated from .env.
#
# =============================================================================

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
CONFIG_PATH = BASE_DIR / "config" / "upgrade_helper.yaml"

DEFAULT_MODELS = (
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4",
    "gpt-3.5-turbo",
)


@dataclass(frozen=True)
class HelperSettings:
    """All tunables of the upgrade helper with their defaults."""

    # estimation
    rounding_unit: int = 500
    block_window: int = 50_000
    sample_points: int = 2

    # summarizer
    default_model: str = "gpt-4o"
    allowed_models: Tuple[str, ...] = DEFAULT_MODELS
    summary_max_attempts: int = 3
    summary_base_delay: float = 1.0
    summary_max_delay: float = 30.0
    max_note_chars: int = 12_000

    # keys
    min_balance: Decimal = Decimal("1")
    balance_attempts: int = 3
    evmosd_binary: str = "evmosd"

    # command
    fees: str = "10000000000aevmos"

    # release
    github_owner: str = "evmos"
    github_repo: str = "evmos"
    request_timeout: int = 30

    # proposal
    author: str = "Evmos Core Team"

    # logging
    log_level: str = "INFO"
    log_dir: str = "logs"


# Maps "section.key" in the YAML file to the HelperSettings field.
_YAML_FIELDS: Dict[str, str] = {
    "estimation.rounding_unit": "rounding_unit",
    "estimation.block_window": "block_window",
    "estimation.sample_points": "sample_points",
    "summarizer.default_model": "default_model",
    "summarizer.allowed_models": "allowed_models",
    "summarizer.max_attempts": "summary_max_attempts",
    "summarizer.base_delay_seconds": "summary_base_delay",
    "summarizer.max_delay_seconds": "summary_max_delay",
    "summarizer.max_note_chars": "max_note_chars",
    "keys.min_balance": "min_balance",
    "keys.balance_attempts": "balance_attempts",
    "keys.evmosd_binary": "evmosd_binary",
    "command.fees": "fees",
    "release.github_owner": "github_owner",
    "release.github_repo": "github_repo",
    "release.request_timeout": "request_timeout",
    "proposal.author": "author",
    "logging.level": "log_level",
    "logging.log_dir": "log_dir",
}


def load_settings(config_path: Optional[Path] = None) -> HelperSettings:
    """
    Load settings from YAML, falling back to defaults for missing keys.

    A missing file yields the defaults. A file that exists but cannot be
    parsed, or holds values of the wrong type, is an error: silently running
    with defaults would produce a proposal with unexpected parameters.

    Args:
        config_path: Path to the YAML file. Defaults to config/upgrade_helper.yaml

    Returns:
        HelperSettings instance

    Raises:
        ConfigurationError: If the file is malformed or a value is invalid
    """
    path = Path(config_path) if config_path else CONFIG_PATH

    if not path.exists():
        logger.warning(f"Settings file not found: {path}, using defaults")
        return HelperSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse settings file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    settings = settings_from_dict(raw)
    logger.debug(f"Loaded settings from {path}")
    return settings


def settings_from_dict(raw: Dict[str, Any]) -> HelperSettings:
    """Build HelperSettings from the nested YAML mapping."""
    defaults = HelperSettings()
    values: Dict[str, Any] = {}

    for dotted, field_name in _YAML_FIELDS.items():
        section_name, key = dotted.split(".")
        section = raw.get(section_name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Section '{section_name}' must be a mapping")
        if key not in section:
            continue
        values[field_name] = _coerce(dotted, section[key], getattr(defaults, field_name))

    settings = HelperSettings(**values)
    _validate(settings)
    return settings


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Convert a YAML value to the type of its default."""
    if isinstance(default, bool) or value is None:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}")

    if isinstance(default, Decimal):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ConfigurationError(f"{name} must be a number, got {value!r}") from None

    if isinstance(default, tuple):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{name} must be a list of strings")
        return tuple(value)

    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"{name} must be a number, got {value!r}")
        return float(value)

    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        return value

    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")
    return value


def _validate(settings: HelperSettings) -> None:
    """Range checks that the type coercion cannot express."""
    positive_ints = (
        "rounding_unit", "block_window", "summary_max_attempts",
        "max_note_chars", "balance_attempts", "request_timeout",
    )
    for name in positive_ints:
        if getattr(settings, name) < 1:
            raise ConfigurationError(f"{name} must be >= 1")

    if settings.sample_points < 2:
        raise ConfigurationError("sample_points must be >= 2")
    if settings.summary_base_delay < 0 or settings.summary_max_delay < settings.summary_base_delay:
        raise ConfigurationError("summarizer delays must satisfy 0 <= base <= max")
    if settings.min_balance < 0:
        raise ConfigurationError("min_balance must not be negative")
    if settings.default_model not in settings.allowed_models:
        raise ConfigurationError(
            f"default_model '{settings.default_model}' is not in allowed_models"
        )
