"""Database configuration and session management."""

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings

# One database per managed folder; SQLite is the normal case, PostgreSQL works too.
DATABASE_URL = settings.database_url or "sqlite:///./tagit.db"


def is_sqlite(url: str) -> bool:
    """Check if a database URL points at SQLite."""
    return url.startswith("sqlite")


def make_engine(url: str) -> Engine:
    """Create an engine with database-specific tuning.

    ``sqlite://`` (in-memory) gets a StaticPool so every short-lived session
    sees the same database.
    """
    if is_sqlite(url):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        new_engine = create_engine(url, **kwargs)

        # SQLite defaults foreign_keys to OFF, so CASCADE constraints are silently
        # ignored unless we enable them on every connection.
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    return create_engine(url, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(DATABASE_URL)

# Create session factory
SessionLocal = make_session_factory(engine)

# Create base class for models
Base = declarative_base()

# Separate metadata for the folder registry, which has its own database
RegistryBase = declarative_base()


def init_db(bind: Engine = None) -> None:
    """Create every table that does not exist yet (fresh install)."""
    # Models register themselves on Base when imported.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def init_registry(bind: Engine) -> None:
    """Create the managed folder registry tables."""
    from . import models  # noqa: F401

    RegistryBase.metadata.create_all(bind=bind)
