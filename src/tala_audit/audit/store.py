"""Ledger store: ordered reads and appends of audit records."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tala_audit.audit.models import AuditLogModel


class LedgerStore:
    """Audit record persistence bound to one session.

    Chain reads order by ``created_at`` with ``sequence`` as tie-break; the
    tenant-wide read orders by ``created_at`` then ``id``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _chain_filter(tenant_id: str, entity_type: str, entity_id: str):
        return (
            AuditLogModel.tenant_id == tenant_id,
            AuditLogModel.entity_type == entity_type,
            AuditLogModel.entity_id == entity_id,
        )

    async def find_latest(
        self, tenant_id: str, entity_type: str, entity_id: str,
    ) -> AuditLogModel | None:
        """Chain tip: the most recent record for the tuple."""
        result = await self.session.execute(
            select(AuditLogModel)
            .where(*self._chain_filter(tenant_id, entity_type, entity_id))
            .order_by(AuditLogModel.created_at.desc(), AuditLogModel.sequence.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def insert(self, record: AuditLogModel) -> AuditLogModel:
        self.session.add(record)
        await self.session.flush()
        return record

    async def find_all(
        self, tenant_id: str, entity_type: str, entity_id: str,
    ) -> list[AuditLogModel]:
        result = await self.session.execute(
            select(AuditLogModel)
            .where(*self._chain_filter(tenant_id, entity_type, entity_id))
            .order_by(AuditLogModel.created_at.asc(), AuditLogModel.sequence.asc())
        )
        return list(result.scalars().all())

    async def find_all_for_tenant(self, tenant_id: str) -> list[AuditLogModel]:
        result = await self.session.execute(
            select(AuditLogModel)
            .where(AuditLogModel.tenant_id == tenant_id)
            .order_by(AuditLogModel.created_at.asc(), AuditLogModel.id.asc())
        )
        return list(result.scalars().all())

    async def find_page(
        self,
        tenant_id: str,
        entity_type: str | None = None,
        action: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLogModel]:
        """Paginated listing, newest first."""
        query = select(AuditLogModel).where(AuditLogModel.tenant_id == tenant_id)
        if entity_type:
            query = query.where(AuditLogModel.entity_type == entity_type)
        if action:
            query = query.where(AuditLogModel.action == action)
        query = (
            query.order_by(AuditLogModel.created_at.desc(), AuditLogModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
