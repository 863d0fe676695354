from fastapi import APIRouter, Depends, Request, Response

from ..application.auth_rate_limit import LoginRateLimiter, get_login_rate_limiter
from ..crud.user import UserRepository
from ..dependencies import (
    get_activity_logger,
    get_session_context,
    get_session_manager,
    get_user_repository,
)
from ..schemas.auth import LoginRequest
from ..schemas.common import SuccessResponse
from ..security.sessions import SessionContext, SessionManager
from ..services.audit import ActivityLogger
from ..use_cases.auth.login_user import login_user
from ..use_cases.auth.logout_user import logout_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_ip(request: Request) -> str:
    client_host = request.client.host if request.client else None
    return client_host or "unknown-ip"


@router.post("/login", response_model=SuccessResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    user_repo: UserRepository = Depends(get_user_repository),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    session_manager: SessionManager = Depends(get_session_manager),
    rate_limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
    context: SessionContext | None = Depends(get_session_context),
) -> SuccessResponse:
    session_user = await login_user(
        user_repo,
        activity_logger,
        payload.username,
        payload.password,
        rate_limiter,
        client_ip=_client_ip(request),
    )
    # A fresh id on every login; any previous session is dropped.
    if context is not None:
        await session_manager.store.delete(context.session_id)
    await session_manager.create(response, {"user": session_user.model_dump()})
    return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    session_manager: SessionManager = Depends(get_session_manager),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    context: SessionContext | None = Depends(get_session_context),
) -> SuccessResponse:
    await logout_user(session_manager, activity_logger, context, response)
    return SuccessResponse()
