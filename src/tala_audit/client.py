"""
AuditClient SDK: sync client for Tala-Audit.

Used by entity services (journal posting, invoicing, contacts) running
outside the audit process to append events and read verification results.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


@dataclass
class ClientAppendResult:
    """Result of append() call."""

    success: bool
    id: Optional[str] = None
    code: str = ""
    message: str = ""


@dataclass
class ClientAuditTrail:
    """Result of get_audit_trail() call."""

    logs: list[dict[str, Any]] = field(default_factory=list)
    chain_valid: bool = False
    chain_broken_at: Optional[str] = None
    code: str = ""
    message: str = ""


@dataclass
class ClientTamperReport:
    """Result of detect_tampering() call."""

    tampered: list[dict[str, Any]] = field(default_factory=list)
    security_status: str = ""
    affected_records: int = 0
    code: str = ""
    message: str = ""


class AuditClient:
    """Synchronous HTTP client for Tala-Audit."""

    def __init__(
        self,
        server_url: str = "http://localhost:8080",
        api_key: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_base: float = 0.5,
    ):
        self.server_url = server_url.rstrip("/")
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
        )

    def __enter__(self) -> "AuditClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _headers(self) -> dict[str, str]:
        headers = {}
        if self.api_key:
            headers["X-Tala-Api-Key"] = self.api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        idempotent: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Central HTTP method with retry and structured error handling.

        Retries on timeouts, transport errors, 5xx and 429. Other 4xx
        responses return immediately with the server's error code.

        A non-idempotent request is only re-sent when it never reached the
        server (connect failures) or the server reported it was not applied
        (503, 429). Any other failure after sending returns ``UNCONFIRMED``.

        Returns parsed JSON on success, or structured error dict on failure.
        """
        kwargs.setdefault("headers", self._headers())
        last_error = None
        for attempt in range(self.max_retries):
            try:
                resp = getattr(self._http, method)(path, **kwargs)
                if resp.status_code >= 500 or resp.status_code == 429:
                    last_error = f"HTTP {resp.status_code}"
                    if not idempotent and resp.status_code not in (429, 503):
                        return self._unconfirmed(last_error)
                    if attempt < self.max_retries - 1:
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return {
                        "error": f"Server error: {resp.status_code}",
                        "code": "SERVER_ERROR",
                    }
                if resp.status_code >= 400:
                    return self._client_error(resp)
                return resp.json()
            except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                last_error = str(e) or "connect failed"
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except httpx.TimeoutException:
                last_error = "timeout"
                if not idempotent:
                    return self._unconfirmed(last_error)
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except httpx.HTTPError as e:
                last_error = str(e)
                if not idempotent:
                    return self._unconfirmed(last_error)
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except json.JSONDecodeError:
                return {"error": "Invalid JSON response", "code": "JSON_ERROR"}

        return {"error": f"All {self.max_retries} retries exhausted: {last_error}", "code": "CONNECTION_ERROR"}

    @staticmethod
    def _unconfirmed(reason: str) -> dict[str, Any]:
        return {
            "error": f"Request sent but outcome unknown ({reason}); it may have been applied",
            "code": "UNCONFIRMED",
        }

    @staticmethod
    def _client_error(resp: Any) -> dict[str, Any]:
        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError):
            body = {}
        code = body.get("code") if isinstance(body, dict) else None
        detail = body.get("detail", "") if isinstance(body, dict) else ""
        return {
            "error": f"Client error: {resp.status_code}",
            "code": code or "CLIENT_ERROR",
            "detail": detail,
        }

    # ── Write ──

    def append(
        self,
        tenant_id: str,
        user_id: str,
        entity_type: str,
        entity_id: str,
        action: str,
        description: Optional[str] = None,
        changes_before: Optional[dict[str, Any]] = None,
        changes_after: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ClientAppendResult:
        """Append an audit event to the entity's chain."""
        body: dict[str, Any] = {
            "userId": user_id,
            "entityType": entity_type,
            "entityId": entity_id,
            "action": action,
        }
        optional = {
            "description": description,
            "changesBefore": changes_before,
            "changesAfter": changes_after,
            "ipAddress": ip_address,
            "userAgent": user_agent,
        }
        body.update({k: v for k, v in optional.items() if v is not None})

        # A resend after a lost response could record the event twice.
        data = self._request(
            "post", f"/audit-logs/{tenant_id}", idempotent=False, json=body,
        )
        if "error" in data:
            return ClientAppendResult(
                success=False, code=data.get("code", "ERROR"),
                message=data.get("error", ""),
            )
        return ClientAppendResult(success=True, id=data.get("id"))

    # ── Read ──

    def get_audit_trail(
        self, tenant_id: str, entity_type: str, entity_id: str,
    ) -> ClientAuditTrail:
        """Fetch an entity's history with its chain verdict."""
        data = self._request(
            "get", f"/audit-logs/{tenant_id}",
            params={"entityType": entity_type, "entityId": entity_id},
        )
        if "error" in data:
            return ClientAuditTrail(
                code=data.get("code", "ERROR"), message=data.get("error", ""),
            )
        return ClientAuditTrail(
            logs=data.get("logs", []),
            chain_valid=data.get("chainValid", False),
            chain_broken_at=data.get("chainBrokenAt"),
        )

    def detect_tampering(self, tenant_id: str) -> ClientTamperReport:
        """Run the tenant-wide tampering scan."""
        data = self._request("get", f"/audit-logs/{tenant_id}/detect-tampering")
        if "error" in data:
            return ClientTamperReport(
                code=data.get("code", "ERROR"), message=data.get("error", ""),
            )
        return ClientTamperReport(
            tampered=data.get("tampered", []),
            security_status=data.get("securityStatus", ""),
            affected_records=data.get("affectedRecords", 0),
        )
