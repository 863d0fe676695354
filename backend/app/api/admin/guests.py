from fastapi import APIRouter, Depends, status

from ...admin.dependencies import require_access
from ...admin.permissions import AccessSlot
from ...dependencies import get_guest_service
from ...schemas.auth import SessionUser
from ...schemas.common import SuccessResponse
from ...schemas.guest import (
    GuestBulkDelete,
    GuestBulkDeleteResponse,
    GuestCreate,
    GuestRead,
    GuestUpdate,
)
from ...services.admin import GuestService

router = APIRouter(prefix="/guests", tags=["guests"])


@router.get("", response_model=list[GuestRead])
async def list_guests(
    _: SessionUser = Depends(require_access(AccessSlot.GUESTS_VIEW)),
    service: GuestService = Depends(get_guest_service),
) -> list[GuestRead]:
    guests = await service.list_guests()
    return [GuestRead.model_validate(guest) for guest in guests]


@router.post("", response_model=GuestRead, status_code=status.HTTP_201_CREATED)
async def create_guest(
    payload: GuestCreate,
    actor: SessionUser = Depends(require_access(AccessSlot.GUESTS_MANAGE)),
    service: GuestService = Depends(get_guest_service),
) -> GuestRead:
    guest = await service.create_guest(payload, actor)
    return GuestRead.model_validate(guest)


@router.post("/bulk-delete", response_model=GuestBulkDeleteResponse)
async def bulk_delete_guests(
    payload: GuestBulkDelete,
    actor: SessionUser = Depends(require_access(AccessSlot.GUESTS_MANAGE)),
    service: GuestService = Depends(get_guest_service),
) -> GuestBulkDeleteResponse:
    deleted = await service.bulk_delete_guests(payload.ids, actor)
    return GuestBulkDeleteResponse(deleted=deleted)


@router.put("/{guest_id}", response_model=SuccessResponse)
async def update_guest(
    guest_id: int,
    payload: GuestUpdate,
    actor: SessionUser = Depends(require_access(AccessSlot.GUESTS_MANAGE)),
    service: GuestService = Depends(get_guest_service),
) -> SuccessResponse:
    await service.update_guest(guest_id, payload, actor)
    return SuccessResponse()


@router.delete("/{guest_id}", response_model=SuccessResponse)
async def delete_guest(
    guest_id: int,
    actor: SessionUser = Depends(require_access(AccessSlot.GUESTS_MANAGE)),
    service: GuestService = Depends(get_guest_service),
) -> SuccessResponse:
    await service.delete_guest(guest_id, actor)
    return SuccessResponse()
