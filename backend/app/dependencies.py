import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .crud.access import AccessRepository
from .crud.guest import GuestRepository
from .crud.user import UserRepository
from .database import get_session
from .errors import AuthError
from .schemas.auth import SessionUser
from .security.sessions import SessionContext, SessionManager
from .services.admin import AccessService, GuestService, UserService
from .services.audit import ActivityLogger, ActivityLogQueryService

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_guest_repository(db: AsyncSession = Depends(get_db)) -> GuestRepository:
    return GuestRepository(db)


def get_access_repository(db: AsyncSession = Depends(get_db)) -> AccessRepository:
    return AccessRepository(db)


def get_activity_logger(db: AsyncSession = Depends(get_db)) -> ActivityLogger:
    return ActivityLogger(db)


def get_activity_log_query_service(
    db: AsyncSession = Depends(get_db),
) -> ActivityLogQueryService:
    return ActivityLogQueryService(db)


def get_guest_service(
    guest_repo: GuestRepository = Depends(get_guest_repository),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> GuestService:
    return GuestService(guest_repo, activity_logger)


def get_user_service(
    user_repo: UserRepository = Depends(get_user_repository),
    access_repo: AccessRepository = Depends(get_access_repository),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> UserService:
    return UserService(user_repo, access_repo, activity_logger)


def get_access_service(
    access_repo: AccessRepository = Depends(get_access_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> AccessService:
    return AccessService(access_repo, user_repo, activity_logger)


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


async def get_session_context(
    request: Request,
    session_manager: SessionManager = Depends(get_session_manager),
) -> SessionContext | None:
    return await session_manager.load(request)


async def get_current_user(
    context: SessionContext | None = Depends(get_session_context),
) -> SessionUser:
    if context is None or not context.data.get("user"):
        raise AuthError()
    try:
        return SessionUser.model_validate(context.data["user"])
    except PydanticValidationError:
        logger.warning("Session %s holds a malformed user record", context.session_id[:8])
        raise AuthError() from None


async def get_current_session(
    context: SessionContext | None = Depends(get_session_context),
    user: SessionUser = Depends(get_current_user),
) -> SessionContext:
    """The authenticated caller's session, for handlers that modify it."""
    if context is None:
        raise AuthError()
    return context
