"""
Repository implementations for the tenant store and the audit log.

Each repository owns a :class:`sessionmaker` and runs every call in its own
short transaction, so instances hold no per-tenant state and are safe to
share between concurrently running sagas. Driver and ORM exceptions are
translated into domain errors here and never leak upward.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import delete, or_, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from domain.exceptions import PersistenceError, TenantAlreadyExistsError
from domain.models.audit import AuditEvent
from domain.models.tenant import Tenant, TenantStatus

from .models import AuditLogModel, TenantModel


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _reset_identity(session: Session, table: str) -> None:
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        session.execute(text("DELETE FROM sqlite_sequence WHERE name = :table"), {"table": table})
    elif dialect == "postgresql":
        session.execute(text(f"ALTER SEQUENCE {table}_id_seq RESTART WITH 1"))


# =========================================================================
# SqlTenantRepository
# =========================================================================

class SqlTenantRepository:
    """CRUD operations for :class:`TenantModel` (``tenants``).

    Parameters
    ----------
    session_factory:
        A :class:`sessionmaker` bound to the tenant store engine.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_domain(row: TenantModel) -> Tenant:
        return Tenant(
            id=row.id,
            name=row.name,
            engine=row.engine,
            namespace=row.namespace,
            status=row.status,
            url=row.url or "",
            created_at=_aware(row.created_at),
        )

    def insert(self, tenant: Tenant) -> Tenant:
        row = TenantModel(
            name=tenant.name,
            engine=tenant.engine,
            namespace=tenant.namespace,
            status=tenant.status,
            url=tenant.url,
            created_at=tenant.created_at,
        )
        try:
            with self._session_factory() as session, session.begin():
                session.add(row)
                session.flush()
                return self._to_domain(row)
        except IntegrityError as exc:
            raise TenantAlreadyExistsError(identifier=tenant.name) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def update_status(self, name: str, status: TenantStatus) -> None:
        stmt = update(TenantModel).where(TenantModel.name == name).values(status=status)
        try:
            with self._session_factory() as session, session.begin():
                session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def find_by_name_or_namespace(self, key: str) -> Optional[Tenant]:
        stmt = (
            select(TenantModel)
            .where(or_(TenantModel.name == key, TenantModel.namespace == key))
            .order_by(TenantModel.id)
            .limit(1)
        )
        try:
            with self._session_factory() as session:
                row = session.execute(stmt).scalars().first()
                return self._to_domain(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def delete_by_id(self, tenant_id: int) -> bool:
        stmt = delete(TenantModel).where(TenantModel.id == tenant_id)
        try:
            with self._session_factory() as session, session.begin():
                result = session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def list_all(self) -> list[Tenant]:
        stmt = select(TenantModel).order_by(TenantModel.created_at.desc(), TenantModel.id.desc())
        try:
            with self._session_factory() as session:
                return [self._to_domain(row) for row in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def delete_all(self) -> int:
        try:
            with self._session_factory() as session, session.begin():
                result = session.execute(delete(TenantModel))
                _reset_identity(session, TenantModel.__tablename__)
                return result.rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc


# =========================================================================
# SqlAuditRepository
# =========================================================================

class SqlAuditRepository:
    """Append-only access to :class:`AuditLogModel` (``audit_logs``)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_domain(row: AuditLogModel) -> AuditEvent:
        return AuditEvent(
            id=row.id,
            action=row.action,
            tenant_name=row.tenant_name,
            namespace=row.namespace,
            engine=row.engine,
            status=row.status,
            message=row.message,
            caller_address=row.caller_address,
            timestamp=_aware(row.timestamp),
        )

    def append(self, event: AuditEvent) -> AuditEvent:
        row = AuditLogModel(
            action=event.action,
            tenant_name=event.tenant_name,
            namespace=event.namespace,
            engine=event.engine,
            status=event.status,
            message=event.message,
            caller_address=event.caller_address,
            timestamp=event.timestamp,
        )
        try:
            with self._session_factory() as session, session.begin():
                session.add(row)
                session.flush()
                return self._to_domain(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def list_recent(self, limit: int = 50, tenant_name: Optional[str] = None) -> list[AuditEvent]:
        stmt = select(AuditLogModel)
        if tenant_name is not None:
            stmt = stmt.where(AuditLogModel.tenant_name == tenant_name)
        stmt = stmt.order_by(AuditLogModel.timestamp.desc(), AuditLogModel.id.desc()).limit(limit)
        try:
            with self._session_factory() as session:
                return [self._to_domain(row) for row in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def delete_all(self) -> int:
        try:
            with self._session_factory() as session, session.begin():
                result = session.execute(delete(AuditLogModel))
                _reset_identity(session, AuditLogModel.__tablename__)
                return result.rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc
