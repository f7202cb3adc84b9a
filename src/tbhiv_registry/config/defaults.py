"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "database": {
        # Local SQLite file; point at PostgreSQL in deployed environments
        "url": "sqlite:///tbhiv_registry.db",
        "echo": False,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/tbhiv-registry.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5000,
        # 10MB upload limit
        "max_upload_bytes": 10 * 1024 * 1024,
    },
    "audit": {
        "sink": "database",
    },
}

DEFAULT_CONFIG_PATH = "config/config.json"
