"""
Administrative user management.

Creating a user also creates their access grant by copying the flags of the
role template named by ``profile``; changing the profile re-copies them.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from ...crud.access import AccessRepository
from ...crud.user import UserRepository
from ...errors import ConflictError, NotFoundError, ValidationError
from ...models.access import Access
from ...models.user import User
from ...schemas.auth import SessionUser
from ...schemas.user import UserCreate, UserUpdate
from ..audit import ActivityLogger, EntityType

logger = logging.getLogger(__name__)


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class UserService:
    def __init__(
        self,
        user_repo: UserRepository,
        access_repo: AccessRepository,
        activity_logger: ActivityLogger,
    ):
        self.user_repo = user_repo
        self.access_repo = access_repo
        self.activity_logger = activity_logger

    async def list_users(self) -> list[User]:
        return await self.user_repo.list_all()

    async def _require_template(self, profile: str) -> Access:
        template = await self.access_repo.get_template(profile)
        if template is None:
            raise ValidationError(f"Unknown profile '{profile}'")
        return template

    async def create_user(self, payload: UserCreate, actor: SessionUser) -> User:
        if any(
            _blank(value)
            for value in (payload.username, payload.mail, payload.password, payload.profile)
        ):
            raise ValidationError("Username, mail, password, and profile are required")

        if await self.user_repo.username_taken(payload.username):
            raise ConflictError("El nombre de usuario ya está en uso")
        if await self.user_repo.mail_taken(payload.mail):
            raise ConflictError("El correo electrónico ya está en uso")

        template = await self._require_template(payload.profile)

        try:
            user = await self.user_repo.create(
                username=payload.username,
                password=payload.password,
                mail=payload.mail,
                profile=payload.profile,
            )
            await self.access_repo.grant_from_template(user.id, template)
            await self.user_repo.commit()
        except Exception:
            await self.user_repo.rollback()
            raise

        logger.info("User %s created by user_id=%s", user.id, actor.id)
        await self.activity_logger.log_create(
            actor.id,
            EntityType.PROGESTOR,
            f"Creó al usuario {user.username}",
            datetime.now(timezone.utc),
            {
                "id": user.id,
                "username": user.username,
                "mail": user.mail,
                "profile": user.profile,
            },
        )
        return user

    async def update_user(self, user_id: int, payload: UserUpdate, actor: SessionUser) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        updates: dict[str, Any] = {}
        template: Access | None = None

        if payload.username is not None:
            if await self.user_repo.username_taken(payload.username, exclude_id=user_id):
                raise ConflictError("El nombre de usuario ya está en uso")
            updates["username"] = payload.username

        if payload.mail is not None:
            if await self.user_repo.mail_taken(payload.mail, exclude_id=user_id):
                raise ConflictError("El correo electrónico ya está en uso")
            updates["mail"] = payload.mail

        if payload.password is not None and payload.password.strip() != "":
            updates["password"] = payload.password

        if payload.profile is not None:
            template = await self._require_template(payload.profile)
            updates["profile"] = payload.profile

        if payload.enabled is not None:
            updates["enabled"] = payload.enabled

        if not updates:
            raise ValidationError("No fields to update")

        try:
            user = await self.user_repo.update(user, updates)
            if template is not None:
                await self.access_repo.grant_from_template(user_id, template)
            await self.user_repo.commit()
        except Exception:
            await self.user_repo.rollback()
            raise

        await self.activity_logger.log_update(
            actor.id,
            EntityType.PROGESTOR,
            f"Actualizó los datos del usuario {user.username}",
            datetime.now(timezone.utc),
            {
                "id": user_id,
                "fields": sorted(updates),
                "values": {k: v for k, v in updates.items() if k != "password"},
            },
        )
        return user

    async def delete_user(self, user_id: int, actor: SessionUser) -> None:
        if user_id == actor.id:
            raise ValidationError("You cannot delete your own account")

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        username = user.username
        try:
            grant = await self.access_repo.get_for_user(user_id)
            if grant is not None:
                await self.access_repo.delete(grant)
            await self.user_repo.delete(user)
            await self.user_repo.commit()
        except Exception:
            await self.user_repo.rollback()
            raise

        await self.activity_logger.log_delete(
            actor.id,
            EntityType.PROGESTOR,
            f"Eliminó al usuario {username}",
            datetime.now(timezone.utc),
            {"id": user_id, "username": username},
        )

    async def update_profile_url(self, user_id: int, profile_url: str) -> None:
        try:
            user = await self.user_repo.set_profile_url(user_id, profile_url)
            if user is None:
                raise NotFoundError("User not found")
            await self.user_repo.commit()
        except Exception:
            await self.user_repo.rollback()
            raise
