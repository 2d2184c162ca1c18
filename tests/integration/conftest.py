"""Integration test fixtures backed by an in-memory SQLite tenant store."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))


@pytest.fixture
def sync_engine():
    """Create a synchronous SQLAlchemy engine with the schema in place."""
    from infrastructure.database.engine import build_engine, create_tables, dispose_engine

    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    dispose_engine(engine)


@pytest.fixture
def session_factory(sync_engine):
    from infrastructure.database.engine import build_session_factory

    return build_session_factory(sync_engine)


@pytest.fixture
def tenant_repo(session_factory):
    from infrastructure.database.repository import SqlTenantRepository

    return SqlTenantRepository(session_factory)


@pytest.fixture
def audit_repo(session_factory):
    from infrastructure.database.repository import SqlAuditRepository

    return SqlAuditRepository(session_factory)
