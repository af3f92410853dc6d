"""Tala-Audit exception hierarchy."""


class TalaError(Exception):
    """Base exception for all Tala-Audit errors."""

    def __init__(self, message: str = "", code: str = "TALA_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidAuditEventError(TalaError):
    """Raised when an audit event is missing a required field or carries a malformed tag."""

    def __init__(self, message: str = "Invalid audit event"):
        super().__init__(message, code="INVALID_AUDIT_EVENT")


class AuditWriteError(TalaError):
    """Raised when the ledger store fails to persist an audit record.

    The triggering business mutation is not fully audited; the caller decides
    whether to roll it back or retry.
    """

    def __init__(self, message: str = "Failed to write audit record", code: str = "AUDIT_WRITE_FAILED"):
        super().__init__(message, code=code)


class ChainConflictError(AuditWriteError):
    """Raised when another writer appended to the same chain first."""

    def __init__(self, message: str = "Concurrent append to the same audit chain"):
        super().__init__(message, code="CHAIN_CONFLICT")
