"""Audit service: append, verify, and query the hash-chained audit log."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tala_audit.common.config import TalaSettings
from tala_audit.common.exceptions import (
    AuditWriteError,
    ChainConflictError,
    InvalidAuditEventError,
)
from tala_audit.common.logging import chain_context
from tala_audit.audit.events import SECURITY_EVENTS, AuditAction, AuditEvent, tag_value
from tala_audit.audit.hashing import (
    ROOT_SENTINEL,
    as_utc,
    compute_data_hash,
    format_timestamp,
    hash_matches,
    now_utc,
)
from tala_audit.audit.locks import KeyedLock
from tala_audit.audit.models import AuditLogModel
from tala_audit.audit.store import LedgerStore
from tala_audit.audit.verifier import (
    ChainVerdict,
    TamperReport,
    scan_for_tampering,
    verify_chain,
)
from tala_audit.users.models import UserModel
from tala_audit.users.service import UserService

logger = logging.getLogger(__name__)

# Returned by append() when the development bypass skips persistence.
DEV_AUDIT_LOG_ID = "dev-audit-log"

UNKNOWN = "unknown"


@dataclass
class TrailEntry:
    record: AuditLogModel
    user: Optional[UserModel] = None


@dataclass
class AuditTrail:
    """Entity history joined with user display fields, plus the chain verdict."""
    logs: list[TrailEntry]
    chain_valid: bool
    chain_broken_at: Optional[datetime] = None


class AuditService:
    """Append-only, hash-chained audit log per (tenant, entity type, entity id)."""

    def __init__(self, settings: TalaSettings, user_service: UserService | None = None):
        self.settings = settings
        self.user_service = user_service or UserService()
        self._chain_locks = KeyedLock()

    # ── Write ──

    async def append(self, session: AsyncSession, event: AuditEvent) -> str:
        """Append an event to its entity's chain and return the new record id.

        The record is committed before the chain lock is released, so the
        next in-process append to the same chain always reads it as the tip.
        A writer in another process that wins the race surfaces as
        ChainConflictError through the chain-position unique constraint.
        Nothing is retried.
        """
        event.validate()

        if self.settings.audit_bypass_active:
            logger.warning(
                "Audit bypass active; %s %s/%s not persisted",
                event.action, event.entity_type, event.entity_id,
                extra=chain_context(*event.chain_key),
            )
            return DEV_AUDIT_LOG_ID

        store = LedgerStore(session)
        async with self._chain_locks.hold(event.chain_key):
            try:
                tip = await store.find_latest(*event.chain_key)
                record = self._build_record(event, tip)
                await store.insert(record)
                log_id, sequence = record.id, record.sequence
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                logger.warning(
                    "Chain conflict appending to %s/%s for tenant %s",
                    event.entity_type, event.entity_id, event.tenant_id,
                    extra=chain_context(*event.chain_key),
                )
                raise ChainConflictError(
                    f"Chain {event.entity_type}/{event.entity_id} advanced concurrently"
                ) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception(
                    "Failed to write audit record", extra=chain_context(*event.chain_key),
                )
                raise AuditWriteError(f"Failed to log audit event: {exc}") from exc

        logger.debug(
            "Audit record %s appended to %s/%s (seq %d)",
            log_id, event.entity_type, event.entity_id, sequence,
            extra=chain_context(*event.chain_key, log_id=log_id, sequence=sequence),
        )
        return log_id

    def _build_record(
        self, event: AuditEvent, tip: AuditLogModel | None,
    ) -> AuditLogModel:
        previous_hash = tip.data_hash if tip else ROOT_SENTINEL
        created_at = now_utc()
        if tip is not None:
            # Keep the chain strictly ordered even if the clock stalls or steps back.
            floor = as_utc(tip.created_at) + timedelta(milliseconds=1)
            if created_at < floor:
                created_at = floor

        timestamp = format_timestamp(created_at)
        data_hash = compute_data_hash(
            previous_hash, event.entity_type, event.entity_id,
            event.action, timestamp, event.user_id,
        )
        hash_verified = hash_matches(
            data_hash, previous_hash, event.entity_type, event.entity_id,
            event.action, timestamp, event.user_id,
        )

        return AuditLogModel(
            tenant_id=event.tenant_id,
            user_id=event.user_id,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            action=event.action,
            description=event.description,
            changes_before=event.changes_before,
            changes_after=event.changes_after,
            created_at=created_at,
            previous_hash=previous_hash,
            data_hash=data_hash,
            hash_verified=hash_verified,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            sequence=tip.sequence + 1 if tip else 0,
        )

    async def record_security_event(
        self,
        session: AsyncSession,
        action: AuditAction | str,
        subject_id: str,
        tenant_id: str | None = None,
        user_id: str | None = None,
        description: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> str:
        """Record an access violation against the entity type it concerns.

        The subject is the user, tenant or permission code involved. Missing
        tenant or user context is recorded as "unknown".
        """
        try:
            entity_type = SECURITY_EVENTS[AuditAction(tag_value(action))]
        except (KeyError, ValueError):
            raise InvalidAuditEventError(
                f"{tag_value(action)!r} is not a security event"
            ) from None

        return await self.append(session, AuditEvent(
            tenant_id=tenant_id or UNKNOWN,
            user_id=user_id or UNKNOWN,
            entity_type=entity_type,
            entity_id=subject_id,
            action=action,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
        ))

    # ── Read ──

    async def get_chain_tip(
        self, session: AsyncSession, tenant_id: str, entity_type: str, entity_id: str,
    ) -> AuditLogModel | None:
        return await LedgerStore(session).find_latest(
            tenant_id, tag_value(entity_type), entity_id,
        )

    async def get_events(
        self,
        session: AsyncSession,
        tenant_id: str,
        entity_type: str | None = None,
        action: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[AuditLogModel]:
        """Paginated tenant-wide listing, newest first."""
        limit = min(limit or self.settings.default_page_size, self.settings.max_page_size)
        return await LedgerStore(session).find_page(
            tenant_id,
            entity_type=tag_value(entity_type),
            action=tag_value(action),
            limit=limit,
            offset=offset,
        )

    # ── Verify ──

    async def verify_entity_chain(
        self, session: AsyncSession, tenant_id: str, entity_type: str, entity_id: str,
    ) -> ChainVerdict:
        """Re-hash one entity's chain, oldest first, and report the first break."""
        records = await LedgerStore(session).find_all(
            tenant_id, tag_value(entity_type), entity_id,
        )
        return verify_chain(records, check_linkage=self.settings.verify_linkage)

    async def detect_tampering(
        self, session: AsyncSession, tenant_id: str,
    ) -> TamperReport:
        """Scan every record of a tenant as one flat, time-ordered ledger."""
        records = await LedgerStore(session).find_all_for_tenant(tenant_id)
        report = scan_for_tampering(records)
        if report.tampered:
            logger.warning(
                "Tenant %s audit scan: %d of %d records flagged",
                tenant_id, report.affected_records, len(records),
                extra={"tenant_id": tenant_id},
            )
        return report

    async def get_audit_trail(
        self, session: AsyncSession, tenant_id: str, entity_type: str, entity_id: str,
    ) -> AuditTrail:
        verdict = await self.verify_entity_chain(session, tenant_id, entity_type, entity_id)
        users = await self.user_service.get_many(
            session, {r.user_id for r in verdict.records},
        )
        return AuditTrail(
            logs=[TrailEntry(record=r, user=users.get(r.user_id)) for r in verdict.records],
            chain_valid=verdict.chain_valid,
            chain_broken_at=verdict.chain_broken_at,
        )
