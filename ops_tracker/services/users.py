"""User directory, used to pick owners and requesters."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_users(self) -> Sequence[User]:
        result = await self.session.execute(select(User).order_by(User.name))
        return result.scalars().all()
