"""Audit log API router."""

from fastapi import APIRouter, Depends, Query

from tala_audit.common.security import Provenance, request_provenance, require_api_key
from tala_audit.audit.events import AuditEvent, EntityType
from tala_audit.audit.hashing import format_timestamp
from tala_audit.audit.models import AuditLogModel
from tala_audit.audit.schemas import (
    AuditEventCreate,
    AuditEventCreated,
    AuditLogResponse,
    AuditTrailResponse,
    TamperedRecordResponse,
    TamperScanResponse,
)
from tala_audit.users.models import UserModel
from tala_audit.users.schemas import UserSummary

router = APIRouter(prefix="/audit-logs")


def _get_service():
    from tala_audit.deps import get_audit_service
    return get_audit_service()


def _get_db():
    from tala_audit.deps import get_db
    return get_db()


def _to_response(log: AuditLogModel, user: UserModel | None = None) -> AuditLogResponse:
    return AuditLogResponse(
        id=log.id,
        tenant_id=log.tenant_id,
        entity_type=log.entity_type,
        entity_id=log.entity_id,
        action=log.action,
        description=log.description,
        changes_before=log.changes_before,
        changes_after=log.changes_after,
        created_at=format_timestamp(log.created_at),
        user_id=log.user_id,
        previous_hash=log.previous_hash,
        data_hash=log.data_hash,
        hash_verified=log.hash_verified,
        ip_address=log.ip_address,
        user_agent=log.user_agent,
        sequence=log.sequence,
        user=UserSummary.model_validate(user) if user else None,
    )


@router.post("/{tenant_id}", response_model=AuditEventCreated, status_code=201)
async def append_audit_event(
    tenant_id: str,
    body: AuditEventCreate,
    provenance: Provenance = Depends(request_provenance),
    _=Depends(require_api_key),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        log_id = await svc.append(session, AuditEvent(
            tenant_id=tenant_id,
            user_id=body.user_id,
            entity_type=body.entity_type,
            entity_id=body.entity_id,
            action=body.action,
            description=body.description,
            changes_before=body.changes_before,
            changes_after=body.changes_after,
            ip_address=body.ip_address or provenance.ip_address,
            user_agent=body.user_agent or provenance.user_agent,
        ))
    return AuditEventCreated(id=log_id)


@router.get("/{tenant_id}", response_model=AuditTrailResponse)
async def get_audit_trail(
    tenant_id: str,
    entity_type: EntityType = Query(..., alias="entityType"),
    entity_id: str = Query(..., alias="entityId", min_length=1),
    _=Depends(require_api_key),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        trail = await svc.get_audit_trail(session, tenant_id, entity_type, entity_id)
        return AuditTrailResponse(
            logs=[_to_response(e.record, e.user) for e in trail.logs],
            chain_valid=trail.chain_valid,
            chain_broken_at=(
                format_timestamp(trail.chain_broken_at) if trail.chain_broken_at else None
            ),
        )


@router.get("/{tenant_id}/detect-tampering", response_model=TamperScanResponse)
async def detect_tampering(tenant_id: str, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        report = await svc.detect_tampering(session, tenant_id)
        return TamperScanResponse(
            tampered=[
                TamperedRecordResponse(
                    log_id=t.log_id,
                    entity_type=t.entity_type,
                    entity_id=t.entity_id,
                    action=t.action,
                    created_at=format_timestamp(t.created_at),
                    stored_hash=t.stored_hash,
                    expected_hash=t.expected_hash,
                )
                for t in report.tampered
            ],
            security_status=report.security_status,
            affected_records=report.affected_records,
        )


@router.get("/{tenant_id}/events", response_model=list[AuditLogResponse])
async def list_audit_events(
    tenant_id: str,
    entity_type: EntityType | None = Query(None, alias="entityType"),
    action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _=Depends(require_api_key),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events = await svc.get_events(
            session, tenant_id, entity_type=entity_type, action=action,
            limit=limit, offset=offset,
        )
        return [_to_response(e) for e in events]
