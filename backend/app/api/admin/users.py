"""
User endpoints.

``/me`` and ``/profile-image`` only need a session. Listing and managing
other users needs the users-view / users-manage access slots.
"""
from fastapi import APIRouter, Depends, status

from ...admin.dependencies import require_access
from ...admin.permissions import AccessSlot
from ...config import settings
from ...dependencies import (
    get_current_session,
    get_current_user,
    get_session_manager,
    get_user_service,
)
from ...errors import ValidationError
from ...schemas.auth import ProfileImage, SessionUser
from ...schemas.common import SuccessResponse
from ...schemas.user import ProfileImageUpdate, UserCreate, UserRead, UserUpdate
from ...security.sessions import SessionContext, SessionManager
from ...services.admin import UserService
from ...services.upload_service import build_image_url

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=SessionUser)
async def read_me(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    return user


@router.put("/profile-image", response_model=SuccessResponse)
async def update_profile_image(
    payload: ProfileImageUpdate,
    user: SessionUser = Depends(get_current_user),
    context: SessionContext = Depends(get_current_session),
    session_manager: SessionManager = Depends(get_session_manager),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse:
    if not payload.profileUrl or not payload.publicId or not payload.version:
        raise ValidationError("Missing required fields")

    await service.update_profile_url(user.id, payload.profileUrl)

    user.profileImage = ProfileImage(
        publicId=payload.publicId,
        version=payload.version,
        url=build_image_url(settings.cloudinary_cloud_name, payload.publicId, payload.version),
    )
    context.data["user"] = user.model_dump()
    await session_manager.save(context)
    return SuccessResponse()


@router.get("", response_model=list[UserRead])
async def list_users(
    _: SessionUser = Depends(require_access(AccessSlot.USERS_VIEW)),
    service: UserService = Depends(get_user_service),
) -> list[UserRead]:
    users = await service.list_users()
    return [UserRead.model_validate(user) for user in users]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    actor: SessionUser = Depends(require_access(AccessSlot.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    user = await service.create_user(payload, actor)
    return UserRead.model_validate(user)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    actor: SessionUser = Depends(require_access(AccessSlot.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    user = await service.update_user(user_id, payload, actor)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    actor: SessionUser = Depends(require_access(AccessSlot.USERS_MANAGE)),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse:
    await service.delete_user(user_id, actor)
    return SuccessResponse()
