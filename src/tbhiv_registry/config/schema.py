"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Configuration for the patient database.

    Attributes:
        url: SQLAlchemy database URL
        echo: Whether SQLAlchemy should log emitted SQL
    """

    url: str = Field(
        default="sqlite:///tbhiv_registry.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(default=False, description="Log emitted SQL")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the URL names a dialect.

        Raises:
            ValueError: If URL has no scheme (e.g. sqlite://, postgresql://)
        """
        if "://" not in v:
            raise ValueError(
                f"Invalid database URL: {v}. "
                "Expected a SQLAlchemy URL such as sqlite:///registry.db"
            )
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/tbhiv-registry.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class ServerConfig(BaseModel):
    """Configuration for the HTTP server.

    Attributes:
        host: Bind address
        port: Bind port
        max_upload_bytes: Largest accepted import upload
    """

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=5000, ge=1, le=65535, description="Server port")
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Maximum accepted upload size in bytes",
    )


class AuditConfig(BaseModel):
    """Configuration for the audit trail.

    Attributes:
        sink: "database" writes the audit_logs table, "log" writes the audit logger
    """

    sink: str = Field(default="database", description="Audit sink: database or log")

    @field_validator("sink")
    @classmethod
    def validate_sink(cls, v: str) -> str:
        valid_sinks = ["database", "log"]
        v_lower = v.lower()
        if v_lower not in valid_sinks:
            raise ValueError(
                f"Invalid audit sink: {v}. Must be one of: {', '.join(valid_sinks)}"
            )
        return v_lower


class Config(BaseModel):
    """Main configuration model.

    Example:
        >>> config = Config()
        >>> config.database.url
        'sqlite:///tbhiv_registry.db'
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
