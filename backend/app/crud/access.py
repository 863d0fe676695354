from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.access import Access


class AccessRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_templates(self) -> list[Access]:
        result = await self.session.execute(
            select(Access).where(Access.user_id.is_(None)).order_by(Access.profile)
        )
        return list(result.scalars().all())

    async def get_template(self, profile: str) -> Access | None:
        result = await self.session.execute(
            select(Access).where(Access.user_id.is_(None), Access.profile == profile)
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, user_id: int) -> Access | None:
        result = await self.session.execute(
            select(Access).where(Access.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_grants_for_profile(self, profile: str) -> list[Access]:
        result = await self.session.execute(
            select(Access).where(Access.user_id.is_not(None), Access.profile == profile)
        )
        return list(result.scalars().all())

    async def count_grants_for_profile(self, profile: str) -> int:
        result = await self.session.execute(
            select(func.count(Access.id)).where(
                Access.user_id.is_not(None), Access.profile == profile
            )
        )
        return int(result.scalar() or 0)

    async def create_template(self, profile: str, flags: dict[str, bool]) -> Access:
        template = Access(profile=profile, user_id=None)
        template.apply_flags(flags)
        self.session.add(template)
        await self.session.flush()
        await self.session.refresh(template)
        return template

    async def grant_from_template(self, user_id: int, template: Access) -> Access:
        """Create or overwrite a user's grant with the template's flags."""
        grant = await self.get_for_user(user_id)
        if grant is None:
            grant = Access(user_id=user_id, profile=template.profile)
            self.session.add(grant)
        grant.profile = template.profile
        grant.apply_flags(template.flags())
        await self.session.flush()
        await self.session.refresh(grant)
        return grant

    async def update_flags(self, access: Access, flags: dict[str, bool]) -> Access:
        access.apply_flags(flags)
        await self.session.flush()
        await self.session.refresh(access)
        return access

    async def delete(self, access: Access) -> None:
        await self.session.delete(access)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
