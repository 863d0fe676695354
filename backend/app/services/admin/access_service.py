import logging
from datetime import datetime, timezone
from typing import Iterable

from ...admin.permissions import column_for, validate_flag_keys
from ...crud.access import AccessRepository
from ...crud.user import UserRepository
from ...errors import ConflictError, NotFoundError, ValidationError
from ...models.access import Access
from ...schemas.auth import SessionUser
from ..audit import ActivityLogger, EntityType

logger = logging.getLogger(__name__)


class AccessService:
    """Role templates and per-user access grants.

    A user's effective permissions are exactly the flags on their own grant
    row. Templates only matter when a grant is created or reset.
    """

    def __init__(
        self,
        access_repo: AccessRepository,
        user_repo: UserRepository,
        activity_logger: ActivityLogger,
    ):
        self.access_repo = access_repo
        self.user_repo = user_repo
        self.activity_logger = activity_logger

    async def has_access(self, user_id: int, slots: Iterable[int]) -> bool:
        """Check that the user's grant has every one of the given slots set.

        Users without a grant have no access at all.
        """
        columns = [column_for(slot) for slot in slots]
        grant = await self.access_repo.get_for_user(user_id)
        if grant is None:
            return False
        return all(grant.has_slot(column) for column in columns)

    async def get_my_slots(self, user_id: int) -> tuple[str | None, list[int]]:
        grant = await self.access_repo.get_for_user(user_id)
        if grant is None:
            return None, []
        return grant.profile, grant.enabled_slots()

    async def list_templates(self) -> list[Access]:
        return await self.access_repo.list_templates()

    async def _get_template_or_404(self, profile: str) -> Access:
        template = await self.access_repo.get_template(profile)
        if template is None:
            raise NotFoundError(f"Profile '{profile}' not found")
        return template

    async def create_template(
        self, profile: str, flags: dict[str, bool], actor: SessionUser
    ) -> Access:
        validate_flag_keys(flags.keys())
        if await self.access_repo.get_template(profile) is not None:
            raise ConflictError(f"Profile '{profile}' already exists")

        try:
            template = await self.access_repo.create_template(profile, flags)
            await self.access_repo.commit()
        except Exception:
            await self.access_repo.rollback()
            raise

        await self.activity_logger.log_create(
            actor.id,
            EntityType.PROGESTOR,
            f"Creó el perfil {profile}",
            datetime.now(timezone.utc),
            {"profile": profile, "slots": template.enabled_slots()},
        )
        return template

    async def update_template(
        self,
        profile: str,
        flags: dict[str, bool],
        actor: SessionUser,
        apply_to_users: bool = False,
    ) -> Access:
        validate_flag_keys(flags.keys())
        template = await self._get_template_or_404(profile)

        propagated = 0
        try:
            template = await self.access_repo.update_flags(template, flags)
            if apply_to_users:
                for grant in await self.access_repo.list_grants_for_profile(profile):
                    await self.access_repo.grant_from_template(grant.user_id, template)
                    propagated += 1
            await self.access_repo.commit()
        except Exception:
            await self.access_repo.rollback()
            raise

        await self.activity_logger.log_update(
            actor.id,
            EntityType.PROGESTOR,
            f"Actualizó el perfil {profile}",
            datetime.now(timezone.utc),
            {"profile": profile, "changes": flags, "applied_to_users": propagated},
        )
        return template

    async def delete_template(self, profile: str, actor: SessionUser) -> None:
        template = await self._get_template_or_404(profile)
        assigned = await self.access_repo.count_grants_for_profile(profile)
        if assigned:
            raise ConflictError(
                f"Profile '{profile}' is still assigned to {assigned} user(s)",
                details={"assigned_users": assigned},
            )

        try:
            await self.access_repo.delete(template)
            await self.access_repo.commit()
        except Exception:
            await self.access_repo.rollback()
            raise

        await self.activity_logger.log_delete(
            actor.id,
            EntityType.PROGESTOR,
            f"Eliminó el perfil {profile}",
            datetime.now(timezone.utc),
            {"profile": profile},
        )

    async def get_user_access(self, user_id: int) -> Access:
        grant = await self.access_repo.get_for_user(user_id)
        if grant is None:
            raise NotFoundError("Access not found for user")
        return grant

    async def update_user_access(
        self, user_id: int, flags: dict[str, bool], actor: SessionUser
    ) -> Access:
        validate_flag_keys(flags.keys())
        if not flags:
            raise ValidationError("No fields to update")
        grant = await self.get_user_access(user_id)
        user = await self.user_repo.get_by_id(user_id)

        try:
            grant = await self.access_repo.update_flags(grant, flags)
            await self.access_repo.commit()
        except Exception:
            await self.access_repo.rollback()
            raise

        username = user.username if user is not None else str(user_id)
        await self.activity_logger.log_update(
            actor.id,
            EntityType.PROGESTOR,
            f"Actualizó los permisos del usuario {username}",
            datetime.now(timezone.utc),
            {"user_id": user_id, "changes": flags},
        )
        return grant

    async def reset_user_access(
        self, user_id: int, actor: SessionUser, profile: str | None = None
    ) -> Access:
        """Overwrite a user's grant with a template's flags.

        Uses the user's own profile when none is given; a different profile
        also becomes the user's profile.
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        target_profile = profile or user.profile
        if not target_profile:
            raise ValidationError("User has no profile to reset access from")
        template = await self._get_template_or_404(target_profile)

        try:
            if user.profile != target_profile:
                await self.user_repo.update(user, {"profile": target_profile})
            grant = await self.access_repo.grant_from_template(user_id, template)
            await self.access_repo.commit()
        except Exception:
            await self.access_repo.rollback()
            raise

        await self.activity_logger.log_update(
            actor.id,
            EntityType.PROGESTOR,
            f"Restableció los permisos del usuario {user.username}",
            datetime.now(timezone.utc),
            {"user_id": user_id, "profile": target_profile},
        )
        return grant
