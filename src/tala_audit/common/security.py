"""API key authentication and request provenance dependencies."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request


@dataclass
class Provenance:
    """Where a request came from, recorded alongside audit events."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


async def require_api_key(
    x_tala_api_key: str = Header(..., alias="X-Tala-Api-Key"),
) -> str:
    """FastAPI dependency that validates admin API key from header."""
    from tala_audit.common.config import get_settings

    settings = get_settings()
    if x_tala_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_tala_api_key


async def request_provenance(
    request: Request,
    user_agent: str | None = Header(None, alias="User-Agent"),
) -> Provenance:
    """FastAPI dependency resolving client IP and user agent of the caller."""
    ip_address = request.client.host if request.client else None
    return Provenance(ip_address=ip_address, user_agent=user_agent)
