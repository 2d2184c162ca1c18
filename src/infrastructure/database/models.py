"""
SQLAlchemy 2.0+ ORM models for the tenant lifecycle orchestrator.

Tables
------
* ``tenants``    -- one row per provisioned tenant, unique by ``name``
* ``audit_logs`` -- append-only lifecycle events
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from domain.models.audit import AuditAction
from domain.models.tenant import Engine, TenantStatus


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for every ORM model."""
    pass


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Stored as the enum *values* ("Provisioning", "woocommerce", ...).
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ---------------------------------------------------------------------------
# TenantModel
# ---------------------------------------------------------------------------

class TenantModel(Base):
    """A provisioned tenant instance and its last reconciled status."""

    __tablename__ = "tenants"
    __table_args__ = (
        UniqueConstraint("name", name="uq_tenants_name"),
        Index("ix_tenants_namespace", "namespace"),
        Index("ix_tenants_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(63), nullable=False)
    engine: Mapped[Engine] = mapped_column(_enum_column(Engine, "tenant_engine"), nullable=False)
    namespace: Mapped[str] = mapped_column(String(63), nullable=False)
    status: Mapped[TenantStatus] = mapped_column(
        _enum_column(TenantStatus, "tenant_status"),
        nullable=False,
        default=TenantStatus.PROVISIONING,
    )
    url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<TenantModel id={self.id} name={self.name!r} status={self.status.value}>"


# ---------------------------------------------------------------------------
# AuditLogModel
# ---------------------------------------------------------------------------

class AuditLogModel(Base):
    """Append-only lifecycle audit trail.

    Rows are never updated. The only deletion path is the administrative
    reset, which clears the whole table.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_name", "tenant_name"),
        Index("ix_audit_logs_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[AuditAction] = mapped_column(_enum_column(AuditAction, "audit_action"), nullable=False)
    tenant_name: Mapped[Optional[str]] = mapped_column(String(63), nullable=True)
    namespace: Mapped[Optional[str]] = mapped_column(String(63), nullable=True)
    engine: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    caller_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditLogModel id={self.id} action={self.action.value} tenant={self.tenant_name!r}>"
