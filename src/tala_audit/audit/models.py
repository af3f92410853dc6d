"""SQLAlchemy model for the hash-chained audit log."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tala_audit.common.models import Base, generate_uuid


class AuditLogModel(Base):
    """One immutable link of a (tenant, entity type, entity id) chain."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        # A second writer appending after the same tip collides here.
        UniqueConstraint(
            "tenant_id", "entity_type", "entity_id", "sequence",
            name="uq_audit_chain_position",
        ),
        Index("ix_audit_chain", "tenant_id", "entity_type", "entity_id", "created_at"),
        Index("ix_audit_tenant_created", "tenant_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    changes_before: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    changes_after: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    previous_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    data_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    hash_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
