"""Dependency injection singletons for Tala-Audit."""

from tala_audit.common.config import get_settings
from tala_audit.common.database import DatabaseManager
from tala_audit.audit.service import AuditService
from tala_audit.users.service import UserService

_db: DatabaseManager | None = None
_users: UserService | None = None
_audit: AuditService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_user_service() -> UserService:
    global _users
    if _users is None:
        _users = UserService()
    return _users


def get_audit_service() -> AuditService:
    global _audit
    if _audit is None:
        _audit = AuditService(get_settings(), user_service=get_user_service())
    return _audit


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _users, _audit
    _db = None
    _users = None
    _audit = None
