"""Pydantic schemas for audit log API requests and responses."""

from typing import Any, Literal, Optional

from pydantic import Field

from tala_audit.common.schemas import CamelModel
from tala_audit.audit.events import ACTION_PATTERN, EntityType
from tala_audit.users.schemas import UserSummary


class AuditEventCreate(CamelModel):
    """Append request; the tenant comes from the path."""
    user_id: str = Field(..., min_length=1, max_length=64)
    entity_type: EntityType
    entity_id: str = Field(..., min_length=1, max_length=255)
    action: str = Field(..., pattern=ACTION_PATTERN)
    description: Optional[str] = None
    changes_before: Optional[dict[str, Any]] = None
    changes_after: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = Field(None, max_length=45)
    user_agent: Optional[str] = Field(None, max_length=512)


class AuditEventCreated(CamelModel):
    id: str


class AuditLogResponse(CamelModel):
    id: str
    tenant_id: str
    entity_type: str
    entity_id: str
    action: str
    description: Optional[str] = None
    changes_before: Optional[dict[str, Any]] = None
    changes_after: Optional[dict[str, Any]] = None
    created_at: str
    user_id: str
    previous_hash: Optional[str] = None
    data_hash: str
    hash_verified: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    sequence: int
    user: Optional[UserSummary] = None


class AuditTrailResponse(CamelModel):
    logs: list[AuditLogResponse]
    chain_valid: bool
    chain_broken_at: Optional[str] = None


class TamperedRecordResponse(CamelModel):
    log_id: str
    entity_type: str
    entity_id: str
    action: str
    created_at: str
    stored_hash: str
    expected_hash: str


class TamperScanResponse(CamelModel):
    tampered: list[TamperedRecordResponse]
    security_status: Literal["SECURE", "COMPROMISED"]
    affected_records: int
