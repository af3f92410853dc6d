"""Pydantic schemas for user directory endpoints."""

from pydantic import Field

from tala_audit.common.schemas import CamelModel


class UserCreate(CamelModel):
    id: str | None = Field(None, max_length=36)
    tenant_id: str = Field(..., min_length=1, max_length=36)
    email: str = Field(..., min_length=3, max_length=255)
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)


class UserSummary(CamelModel):
    """Minimal display fields joined onto audit trail entries."""
    id: str
    first_name: str
    last_name: str
    email: str


class UserResponse(UserSummary):
    tenant_id: str
