"""Database engine factory.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str, pool_timeout_seconds: float = 10.0) -> Engine:
    """Create the SQLAlchemy engine for application database access.

    Args:
        database_url: SQLAlchemy database URL.
        pool_timeout_seconds: Maximum wait for a pooled connection before failing.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank or the timeout is not positive.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")
    if pool_timeout_seconds <= 0:
        raise ValueError("pool_timeout_seconds must be positive")

    return create_engine(database_url, pool_pre_ping=True, pool_timeout=pool_timeout_seconds)
