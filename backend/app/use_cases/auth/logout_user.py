import logging

from fastapi import Response
from pydantic import ValidationError as PydanticValidationError

from ...schemas.auth import SessionUser
from ...security.sessions import SessionContext, SessionManager
from ...services.audit import ActivityLogger

logger = logging.getLogger(__name__)


async def logout_user(
    session_manager: SessionManager,
    activity_logger: ActivityLogger,
    context: SessionContext | None,
    response: Response,
) -> None:
    """Destroy the session (if any) and clear the cookie.

    Logging out without a session is not an error.
    """
    user: SessionUser | None = None
    if context is not None and context.data.get("user"):
        try:
            user = SessionUser.model_validate(context.data["user"])
        except PydanticValidationError:
            logger.warning("Session %s holds a malformed user record", context.session_id[:8])

    await session_manager.destroy(response, context)

    if user is not None:
        await activity_logger.log_logout(user.id, user.username)
        logger.info("User %s logged out", user.id)
