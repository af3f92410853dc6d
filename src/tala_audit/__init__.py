"""Tala-Audit: tamper-evident, hash-chained audit log for accounting records."""

from tala_audit.client import AuditClient
from tala_audit.audit.events import AuditAction, AuditEvent, EntityType
from tala_audit.audit.hashing import compute_data_hash, format_timestamp
from tala_audit.audit.verifier import scan_for_tampering, verify_chain

__all__ = [
    "AuditClient",
    "AuditAction",
    "AuditEvent",
    "EntityType",
    "compute_data_hash",
    "format_timestamp",
    "scan_for_tampering",
    "verify_chain",
]
__version__ = "0.1.0"
