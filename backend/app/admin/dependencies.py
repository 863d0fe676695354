"""
Access-slot enforcement for admin endpoints.

Checks, in order:
- a valid session exists (401 otherwise)
- the caller's grant has every required slot set (403 otherwise)
"""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Request

from .permissions import AccessSlot
from ..dependencies import get_access_service, get_current_user
from ..errors import PermissionError
from ..schemas.auth import SessionUser
from ..services.admin import AccessService

logger = logging.getLogger("progestor.access")


def require_access(*slots: AccessSlot) -> Callable:
    """
    Build a dependency that requires every one of ``slots``.

    The dependency returns the session user so handlers can use it as the
    acting user.
    """
    required = [int(slot) for slot in slots]

    async def dependency(
        request: Request,
        user: SessionUser = Depends(get_current_user),
        access_service: AccessService = Depends(get_access_service),
    ) -> SessionUser:
        if not await access_service.has_access(user.id, required):
            logger.warning(
                "Access denied user_id=%s required=%s method=%s path=%s",
                user.id,
                required,
                request.method,
                request.url.path,
            )
            raise PermissionError(details={"required_slots": required})
        return user

    return dependency
