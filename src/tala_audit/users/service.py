"""User directory service."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tala_audit.users.models import UserModel


class UserService:
    """Lookup of acting principals for audit display."""

    async def create_user(
        self,
        session: AsyncSession,
        tenant_id: str,
        email: str,
        first_name: str = "",
        last_name: str = "",
        user_id: str | None = None,
    ) -> UserModel:
        user = UserModel(
            tenant_id=tenant_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        if user_id:
            user.id = user_id
        session.add(user)
        await session.flush()
        return user

    async def get_by_id(
        self, session: AsyncSession, user_id: str
    ) -> UserModel | None:
        return await session.get(UserModel, user_id)

    async def get_many(
        self, session: AsyncSession, user_ids: set[str]
    ) -> dict[str, UserModel]:
        """Return {user_id: user} for the ids that exist."""
        if not user_ids:
            return {}
        result = await session.execute(
            select(UserModel).where(UserModel.id.in_(user_ids))
        )
        return {u.id: u for u in result.scalars().all()}
