"""Audit event tags and the validated write request."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from tala_audit.common.exceptions import InvalidAuditEventError

ACTION_PATTERN = r"^[A-Za-z][A-Za-z0-9_.-]{0,63}$"
_ACTION_RE = re.compile(ACTION_PATTERN)


class EntityType(str, Enum):
    """Closed set of business objects that carry an audit chain."""

    JOURNAL_ENTRY = "JournalEntry"
    SALES_INVOICE = "SalesInvoice"
    PURCHASE_INVOICE = "PurchaseInvoice"
    VENDOR = "Vendor"
    CUSTOMER = "Customer"
    CONTACT = "Contact"
    PERMISSION = "Permission"
    TENANT = "Tenant"
    USER = "User"


class AuditAction(str, Enum):
    """Well-known actions. Any short token matching ACTION_PATTERN is accepted."""

    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"
    VOIDED = "Voided"
    POSTED = "Posted"
    SENT = "Sent"
    PAID = "Paid"
    VIEWED = "Viewed"
    EXPORTED = "Exported"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UnauthorizedAccessAttempt"
    CROSS_TENANT_ACCESS_ATTEMPT = "CrossTenantAccessAttempt"
    UNAUTHORIZED_PERMISSION_ATTEMPT = "UnauthorizedPermissionAttempt"


# Security violations and the entity type each one is chained under.
SECURITY_EVENTS: dict[AuditAction, EntityType] = {
    AuditAction.UNAUTHORIZED_ACCESS_ATTEMPT: EntityType.USER,
    AuditAction.CROSS_TENANT_ACCESS_ATTEMPT: EntityType.TENANT,
    AuditAction.UNAUTHORIZED_PERMISSION_ATTEMPT: EntityType.PERMISSION,
}

_ENTITY_TYPES = {e.value for e in EntityType}


def tag_value(tag: Any) -> Any:
    """Plain string of an enum tag; other values pass through unchanged."""
    return tag.value if isinstance(tag, Enum) else tag


@dataclass
class AuditEvent:
    """A business event to be appended to its entity's audit chain."""

    tenant_id: str
    user_id: str
    entity_type: str
    entity_id: str
    action: str
    description: Optional[str] = None
    changes_before: Optional[dict[str, Any]] = None
    changes_after: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        self.entity_type = tag_value(self.entity_type)
        self.action = tag_value(self.action)

    @property
    def chain_key(self) -> tuple[str, str, str]:
        return (self.tenant_id, self.entity_type, self.entity_id)

    def validate(self) -> None:
        """Raise InvalidAuditEventError unless every required field is usable."""
        for name in ("tenant_id", "user_id", "entity_type", "entity_id", "action"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidAuditEventError(f"'{name}' must be a non-empty string")
        if self.entity_type not in _ENTITY_TYPES:
            raise InvalidAuditEventError(
                f"Unknown entity type {self.entity_type!r}; "
                f"expected one of {sorted(_ENTITY_TYPES)}"
            )
        if not _ACTION_RE.match(self.action):
            raise InvalidAuditEventError(
                f"Action {self.action!r} is not a short token"
            )
