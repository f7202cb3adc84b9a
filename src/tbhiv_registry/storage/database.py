"""Database engine and session setup."""

from typing import Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tbhiv_registry.config.manager import mask_database_url
from tbhiv_registry.config.schema import Config, DatabaseConfig
from tbhiv_registry.logging_audit import LoggingAuditSink, get_logger
from tbhiv_registry.storage.sql import Base, SqlAuditSink, SqlPatientRepository


logger = get_logger(__name__)

_IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


def create_database_engine(config: DatabaseConfig) -> Engine:
    """Create an engine for the configured database.

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    logger.info(f"Connecting to database {mask_database_url(config.url)}")

    if config.url in _IN_MEMORY_SQLITE_URLS:
        return create_engine(
            config.url,
            echo=config.echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(config.url, echo=config.echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory and make sure the registry tables exist."""
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def open_storage(
    config: Config,
) -> tuple[SqlPatientRepository, Union[SqlAuditSink, LoggingAuditSink]]:
    """Build the patient repository and audit sink described by config.

    Returns:
        Tuple of (repository, audit_sink)
    """
    session_factory = create_session_factory(create_database_engine(config.database))
    repository = SqlPatientRepository(session_factory)
    if config.audit.sink == "database":
        audit_sink: Union[SqlAuditSink, LoggingAuditSink] = SqlAuditSink(session_factory)
    else:
        audit_sink = LoggingAuditSink()
    return repository, audit_sink
