from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        result = await self.session.execute(
            select(User).order_by(User.created_on.desc(), User.id.desc())
        )
        return list(result.scalars().all())

    async def username_taken(self, username: str, exclude_id: int | None = None) -> bool:
        query = select(User.id).where(User.username == username)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def mail_taken(self, mail: str, exclude_id: int | None = None) -> bool:
        query = select(User.id).where(User.mail == mail)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def create(
        self,
        username: str,
        password: str,
        mail: str | None = None,
        profile: str | None = None,
    ) -> User:
        user = User(
            username=username,
            password=password,
            mail=mail,
            profile=profile,
            enabled=True,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User, values: dict[str, Any]) -> User:
        for field, value in values.items():
            setattr(user, field, value)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def set_profile_url(self, user_id: int, profile_url: str) -> User | None:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        user.profile_url = profile_url
        await self.session.flush()
        return user

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
