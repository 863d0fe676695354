"""
Access management endpoints: role templates and per-user grants.

Everything except ``/me`` requires the access-manage slot.
"""
from fastapi import APIRouter, Depends, status

from ...admin.dependencies import require_access
from ...admin.permissions import AccessSlot
from ...dependencies import get_access_service, get_current_user
from ...schemas.access import (
    AccessFlagsUpdate,
    AccessRead,
    AccessReset,
    MyAccessResponse,
    RoleTemplateCreate,
    RoleTemplateUpdate,
)
from ...schemas.auth import SessionUser
from ...schemas.common import SuccessResponse
from ...services.admin import AccessService

router = APIRouter(prefix="/access", tags=["access"])

manage_access = require_access(AccessSlot.ACCESS_MANAGE)


@router.get("/me", response_model=MyAccessResponse)
async def read_my_access(
    user: SessionUser = Depends(get_current_user),
    service: AccessService = Depends(get_access_service),
) -> MyAccessResponse:
    profile, slots = await service.get_my_slots(user.id)
    return MyAccessResponse(profile=profile, slots=slots)


@router.get("/roles", response_model=list[AccessRead])
async def list_roles(
    _: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> list[AccessRead]:
    return [AccessRead.from_access(template) for template in await service.list_templates()]


@router.post("/roles", response_model=AccessRead, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleTemplateCreate,
    actor: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> AccessRead:
    template = await service.create_template(payload.profile, payload.flags, actor)
    return AccessRead.from_access(template)


@router.put("/roles/{profile}", response_model=AccessRead)
async def update_role(
    profile: str,
    payload: RoleTemplateUpdate,
    actor: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> AccessRead:
    template = await service.update_template(
        profile, payload.flags, actor, apply_to_users=payload.apply_to_users
    )
    return AccessRead.from_access(template)


@router.delete("/roles/{profile}", response_model=SuccessResponse)
async def delete_role(
    profile: str,
    actor: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> SuccessResponse:
    await service.delete_template(profile, actor)
    return SuccessResponse()


@router.get("/users/{user_id}", response_model=AccessRead)
async def read_user_access(
    user_id: int,
    _: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> AccessRead:
    return AccessRead.from_access(await service.get_user_access(user_id))


@router.put("/users/{user_id}", response_model=AccessRead)
async def update_user_access(
    user_id: int,
    payload: AccessFlagsUpdate,
    actor: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> AccessRead:
    grant = await service.update_user_access(user_id, payload.flags, actor)
    return AccessRead.from_access(grant)


@router.post("/users/{user_id}/reset", response_model=AccessRead)
async def reset_user_access(
    user_id: int,
    payload: AccessReset | None = None,
    actor: SessionUser = Depends(manage_access),
    service: AccessService = Depends(get_access_service),
) -> AccessRead:
    profile = payload.profile if payload is not None else None
    grant = await service.reset_user_access(user_id, actor, profile=profile)
    return AccessRead.from_access(grant)
