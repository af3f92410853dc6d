#!/usr/bin/env python3
"""Seed a demo tenant with a user and a few chained audit records.

Usage:
    python scripts/seed_audit_demo.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from tala_audit.common.config import get_settings
from tala_audit.common.database import DatabaseManager
from tala_audit.audit.events import AuditAction, AuditEvent, EntityType
from tala_audit.audit.service import AuditService
from tala_audit.users.service import UserService

TENANT_ID = "demo-tenant"
USER_ID = "demo-accountant"

DEMO_EVENTS = [
    (EntityType.JOURNAL_ENTRY, "JE-2025-0001", AuditAction.CREATED),
    (EntityType.JOURNAL_ENTRY, "JE-2025-0001", AuditAction.POSTED),
    (EntityType.SALES_INVOICE, "SI-2025-0001", AuditAction.CREATED),
    (EntityType.SALES_INVOICE, "SI-2025-0001", AuditAction.SENT),
    (EntityType.VENDOR, "V-0001", AuditAction.CREATED),
    (EntityType.JOURNAL_ENTRY, "JE-2025-0001", AuditAction.VOIDED),
]


async def seed() -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    users = UserService()
    audit = AuditService(settings, user_service=users)

    async with db.get_session() as session:
        if await users.get_by_id(session, USER_ID) is None:
            await users.create_user(
                session, TENANT_ID, "accountant@example.com",
                first_name="Demo", last_name="Accountant", user_id=USER_ID,
            )

    for entity_type, entity_id, action in DEMO_EVENTS:
        async with db.get_session() as session:
            log_id = await audit.append(session, AuditEvent(
                tenant_id=TENANT_ID,
                user_id=USER_ID,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                description=f"Demo {action.value.lower()} {entity_id}",
            ))
            print(f"  {entity_type.value}/{entity_id} {action.value} -> {log_id}")

    await db.close()


if __name__ == "__main__":
    asyncio.run(seed())
