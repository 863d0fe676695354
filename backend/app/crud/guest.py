from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.guest import Guest


class GuestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Guest]:
        result = await self.session.execute(
            select(Guest).order_by(Guest.created_on.desc(), Guest.id.desc())
        )
        return list(result.scalars().all())

    async def get_by_id(self, guest_id: int) -> Guest | None:
        return await self.session.get(Guest, guest_id)

    async def exists_with_username_or_mail(self, username: str, mail: str) -> bool:
        result = await self.session.execute(
            select(Guest.id)
            .where(or_(Guest.username == username, Guest.mail == mail))
            .limit(1)
        )
        return result.first() is not None

    async def username_taken(self, username: str, exclude_id: int) -> bool:
        result = await self.session.execute(
            select(Guest.id)
            .where(Guest.username == username, Guest.id != exclude_id)
            .limit(1)
        )
        return result.first() is not None

    async def mail_taken(self, mail: str, exclude_id: int) -> bool:
        result = await self.session.execute(
            select(Guest.id)
            .where(Guest.mail == mail, Guest.id != exclude_id)
            .limit(1)
        )
        return result.first() is not None

    async def create(self, username: str, mail: str, password: str, profile: str) -> Guest:
        guest = Guest(
            username=username,
            mail=mail,
            password=password,
            profile=profile,
            enabled=True,
        )
        self.session.add(guest)
        await self.session.flush()
        await self.session.refresh(guest)
        return guest

    async def update(self, guest: Guest, values: dict[str, Any]) -> Guest:
        for field, value in values.items():
            setattr(guest, field, value)
        await self.session.flush()
        await self.session.refresh(guest)
        return guest

    async def delete(self, guest: Guest) -> None:
        await self.session.delete(guest)
        await self.session.flush()

    async def usernames_for_ids(self, ids: list[int]) -> list[str]:
        result = await self.session.execute(
            select(Guest.username).where(Guest.id.in_(ids)).order_by(Guest.id)
        )
        return list(result.scalars().all())

    async def delete_many(self, ids: list[int]) -> int:
        result = await self.session.execute(
            delete(Guest).where(Guest.id.in_(ids)).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
