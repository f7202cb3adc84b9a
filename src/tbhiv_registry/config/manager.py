"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from tbhiv_registry.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from tbhiv_registry.config.schema import Config
from tbhiv_registry.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TBHIV_"

# (environment suffix, section, field, converter)
_ENV_OVERRIDES = [
    ("DATABASE_URL", "database", "url", str),
    ("DATABASE_ECHO", "database", "echo", "bool"),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", "bool"),
    ("SERVER_HOST", "server", "host", str),
    ("SERVER_PORT", "server", "port", int),
    ("MAX_UPLOAD_BYTES", "server", "max_upload_bytes", int),
    ("AUDIT_SINK", "audit", "sink", str),
]

_URL_PASSWORD = re.compile(r"(://[^:/@]+:)([^@]+)(@)")


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (TBHIV_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config()
        >>> config.database.url
        'sqlite:///tbhiv_registry.db'
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        config = Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e

    logger.debug(f"Database URL: {mask_database_url(config.database.url)}")
    return config


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file merged over defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed or unreadable
    """
    # Deep copy of defaults so callers can mutate freely
    config_dict: dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))

    if not config_path.exists():
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        return config_dict

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            file_dict = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check file permissions and path"
        ) from e

    if not isinstance(file_dict, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a JSON object at the top level"
        )

    for section, values in file_dict.items():
        if isinstance(values, dict) and isinstance(config_dict.get(section), dict):
            config_dict[section].update(values)
        else:
            config_dict[section] = values

    logger.info(f"Loaded configuration from {config_path}")
    return config_dict


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with TBHIV_ prefix.

    For example: TBHIV_DATABASE_URL, TBHIV_LOG_LEVEL, TBHIV_SERVER_PORT

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary

    Raises:
        ConfigurationError: If a numeric override is not a number
    """
    for suffix, section, field, converter in _ENV_OVERRIDES:
        raw = os.getenv(f"{ENV_PREFIX}{suffix}")
        if not raw:
            continue

        if converter == "bool":
            value: Any = _parse_bool(raw)
        else:
            try:
                value = converter(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}"
                ) from e

        config_dict.setdefault(section, {})[field] = value
        logger.debug(f"Override: {section}.{field} from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def mask_database_url(url: str) -> str:
    """Hide the password part of a database URL for logging.

    Example:
        >>> mask_database_url("postgresql://app:secret@db/registry")
        'postgresql://app:***@db/registry'
    """
    return _URL_PASSWORD.sub(r"\1***\3", url)
