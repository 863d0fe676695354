"""
Guest account management.

Every mutation commits first and then records an activity entry; the entry
is best-effort and never undoes the mutation.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from ...crud.guest import GuestRepository
from ...errors import ConflictError, NotFoundError, ValidationError
from ...models.guest import Guest
from ...schemas.auth import SessionUser
from ...schemas.guest import GuestCreate, GuestUpdate
from ..audit import ActivityLogger, EntityType

logger = logging.getLogger(__name__)


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class GuestService:
    def __init__(self, guest_repo: GuestRepository, activity_logger: ActivityLogger):
        self.guest_repo = guest_repo
        self.activity_logger = activity_logger

    async def list_guests(self) -> list[Guest]:
        return await self.guest_repo.list_all()

    async def create_guest(self, payload: GuestCreate, actor: SessionUser) -> Guest:
        if any(
            _blank(value)
            for value in (payload.username, payload.email, payload.password, payload.profile)
        ):
            raise ValidationError("Username, email, password, and profile are required")

        if await self.guest_repo.exists_with_username_or_mail(payload.username, payload.email):
            raise ConflictError("El invitado o correo ya existe")

        try:
            guest = await self.guest_repo.create(
                username=payload.username,
                mail=payload.email,
                password=payload.password,
                profile=payload.profile,
            )
            await self.guest_repo.commit()
        except Exception:
            await self.guest_repo.rollback()
            raise

        logger.info("Guest %s created by user_id=%s", guest.id, actor.id)
        await self.activity_logger.log_create(
            actor.id,
            EntityType.PROGESTOR,
            f"Creó al invitado {guest.username}",
            datetime.now(timezone.utc),
            {
                "id": guest.id,
                "username": guest.username,
                "mail": guest.mail,
                "profile": guest.profile,
            },
        )
        return guest

    async def update_guest(self, guest_id: int, payload: GuestUpdate, actor: SessionUser) -> Guest:
        guest = await self.guest_repo.get_by_id(guest_id)
        if guest is None:
            raise NotFoundError("Guest not found")

        updates: dict[str, Any] = {}

        if payload.username is not None:
            if await self.guest_repo.username_taken(payload.username, exclude_id=guest_id):
                raise ConflictError("El nombre de usuario ya está en uso")
            updates["username"] = payload.username

        if payload.mail is not None:
            if await self.guest_repo.mail_taken(payload.mail, exclude_id=guest_id):
                raise ConflictError("El correo electrónico ya está en uso")
            updates["mail"] = payload.mail

        # A blank password means "keep the current one"
        if payload.password is not None and payload.password.strip() != "":
            updates["password"] = payload.password

        if payload.profile is not None:
            updates["profile"] = payload.profile

        if payload.enabled is not None:
            updates["enabled"] = payload.enabled

        if not updates:
            raise ValidationError("No fields to update")

        try:
            guest = await self.guest_repo.update(guest, updates)
            await self.guest_repo.commit()
        except Exception:
            await self.guest_repo.rollback()
            raise

        changed = sorted(updates)
        await self.activity_logger.log_update(
            actor.id,
            EntityType.PROGESTOR,
            f"Actualizó los datos del invitado {guest.username}",
            datetime.now(timezone.utc),
            {
                "id": guest_id,
                "fields": changed,
                "values": {k: v for k, v in updates.items() if k != "password"},
            },
        )
        return guest

    async def delete_guest(self, guest_id: int, actor: SessionUser) -> None:
        guest = await self.guest_repo.get_by_id(guest_id)
        if guest is None:
            raise NotFoundError("Guest not found")

        username = guest.username
        try:
            await self.guest_repo.delete(guest)
            await self.guest_repo.commit()
        except Exception:
            await self.guest_repo.rollback()
            raise

        await self.activity_logger.log_delete(
            actor.id,
            EntityType.PROGESTOR,
            f"Eliminó al invitado {username}",
            datetime.now(timezone.utc),
            {"id": guest_id, "username": username},
        )

    async def bulk_delete_guests(self, ids: Any, actor: SessionUser) -> int:
        if not isinstance(ids, list) or not ids:
            raise ValidationError("No guest IDs provided")
        # Whole integers only; 1.9 must not turn into guest 1
        if not all(isinstance(value, int) and not isinstance(value, bool) for value in ids):
            raise ValidationError("No guest IDs provided", details={"ids": ids})
        guest_ids = list(ids)

        usernames = await self.guest_repo.usernames_for_ids(guest_ids)
        try:
            deleted = await self.guest_repo.delete_many(guest_ids)
            await self.guest_repo.commit()
        except Exception:
            await self.guest_repo.rollback()
            raise

        await self.activity_logger.log_delete(
            actor.id,
            EntityType.PROGESTOR,
            f"Eliminó a los invitados [{','.join(usernames)}]",
            datetime.now(timezone.utc),
            {"ids": guest_ids, "usernames": usernames},
        )
        return deleted
