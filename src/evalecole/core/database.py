"""Database connection and session management.

This module handles the relational database connection using SQLAlchemy.
Tables are not created on import: a missing schema is reported by the SQL
store's provisioning probe and created by an operator (see ``provision``).
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from evalecole import config
from evalecole.models import Base


def build_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database keeps a single connection so every session sees it.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        # Ensure data directory exists for the default sqlite file
        config.get_data_dir()
    return create_engine(url, **kwargs)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create every table that does not exist yet."""
    Base.metadata.create_all(bind=bind)

