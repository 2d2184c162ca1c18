"""
SQLAlchemy engine and session factory setup for the tenant store.

The engine is built explicitly from settings and owned by the service
container; nothing here is a module-level singleton.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create a synchronous SQLAlchemy :class:`Engine` for *database_url*.

    SQLite connections are shared across threads (sagas may run on worker
    threads of the embedding server); an in-memory SQLite database is
    pinned to a single connection so every session sees the same data.
    """
    url = make_url(database_url)
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool

    return sa_create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Return a :class:`sessionmaker` bound to *engine*."""
    return sessionmaker(bind=engine, expire_on_commit=False)


# ---------------------------------------------------------------------------
# Schema lifecycle
# ---------------------------------------------------------------------------


def create_tables(engine: Engine) -> None:
    """Create the ``tenants`` and ``audit_logs`` tables if they are missing."""
    Base.metadata.create_all(engine)


def dispose_engine(engine: Engine) -> None:
    """Close all pooled connections. Call during shutdown."""
    engine.dispose()
