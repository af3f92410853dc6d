"""User directory API router."""

from fastapi import APIRouter, Depends, HTTPException

from tala_audit.common.security import require_api_key
from tala_audit.users.schemas import UserCreate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


def _get_service():
    from tala_audit.deps import get_user_service
    return get_user_service()


def _get_db():
    from tala_audit.deps import get_db
    return get_db()


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(body: UserCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.create_user(
            session,
            tenant_id=body.tenant_id,
            email=body.email,
            first_name=body.first_name,
            last_name=body.last_name,
            user_id=body.id,
        )
        return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.get_by_id(session, user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse.model_validate(user)
