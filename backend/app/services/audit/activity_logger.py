"""Best-effort activity logging for administrative actions.

Writing an activity record must never break the action being recorded:
every failure is logged and reported as ``False``.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ...crud.activity_log import ActivityLogRepository

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityType(str, Enum):
    """Modules an activity can belong to."""

    PROGESTOR = "progestor"
    BABYSITE = "babysite"
    RECLUTA = "recluta"
    BABYCLOUD = "babycloud"


class ActivityLogger:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ActivityLogRepository(session)

    async def log_activity(
        self,
        *,
        user_id: int | None,
        activity_type: ActivityType | str,
        entity_type: EntityType | str,
        description: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        """Insert one activity record.

        Args:
            user_id: ID of the user performing the action
            activity_type: login, logout, create, update or delete
            entity_type: module the action belongs to
            description: human readable description
            created_at: time of the action; defaults to now (UTC)
            metadata: extra JSON-serializable data

        Returns:
            True when the record was written, False otherwise
        """
        try:
            await self.repo.create(
                user_id=user_id,
                activity_type=ActivityType(activity_type).value,
                entity_type=EntityType(entity_type).value,
                description=description,
                created_at=created_at or datetime.now(timezone.utc),
                metadata=jsonable_encoder(metadata) if metadata is not None else None,
            )
        except Exception:
            logger.exception(
                "Activity logging failed type=%s entity=%s user_id=%s",
                activity_type,
                entity_type,
                user_id,
            )
            try:
                await self.repo.rollback()
            except Exception:
                logger.exception("Rollback after activity logging failure failed")
            return False
        return True

    async def log_login(
        self,
        user_id: int,
        username: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        return await self.log_activity(
            user_id=user_id,
            activity_type=ActivityType.LOGIN,
            entity_type=EntityType.PROGESTOR,
            description=f"Usuario {username} inició sesión",
            created_at=created_at,
            metadata=metadata,
        )

    async def log_logout(
        self,
        user_id: int,
        username: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        return await self.log_activity(
            user_id=user_id,
            activity_type=ActivityType.LOGOUT,
            entity_type=EntityType.PROGESTOR,
            description=f"Usuario {username} cerró sesión",
            created_at=created_at,
            metadata=metadata,
        )

    async def log_create(
        self,
        user_id: int,
        entity_type: EntityType | str,
        description: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        return await self.log_activity(
            user_id=user_id,
            activity_type=ActivityType.CREATE,
            entity_type=entity_type,
            description=description,
            created_at=created_at,
            metadata=metadata,
        )

    async def log_update(
        self,
        user_id: int,
        entity_type: EntityType | str,
        description: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        return await self.log_activity(
            user_id=user_id,
            activity_type=ActivityType.UPDATE,
            entity_type=entity_type,
            description=description,
            created_at=created_at,
            metadata=metadata,
        )

    async def log_delete(
        self,
        user_id: int,
        entity_type: EntityType | str,
        description: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> bool:
        return await self.log_activity(
            user_id=user_id,
            activity_type=ActivityType.DELETE,
            entity_type=entity_type,
            description=description,
            created_at=created_at,
            metadata=metadata,
        )
