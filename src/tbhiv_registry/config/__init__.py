"""Config module.

This module provides configuration management functionality.
"""

from tbhiv_registry.config.manager import load_config, mask_database_url
from tbhiv_registry.config.schema import (
    AuditConfig,
    Config,
    DatabaseConfig,
    LoggingConfig,
    ServerConfig,
)

__all__ = [
    "load_config",
    "mask_database_url",
    "AuditConfig",
    "Config",
    "DatabaseConfig",
    "LoggingConfig",
    "ServerConfig",
]
