from fastapi import APIRouter

from ..routers import auth
from . import upload
from .admin import access as admin_access
from .admin import guests as admin_guests
from .admin import logs as admin_logs
from .admin import users as admin_users

router = APIRouter(prefix="/api")

_auth_routers = [
    auth.router,
]

_admin_routers = [
    admin_users.router,
    admin_guests.router,
    admin_access.router,
    admin_logs.router,
]

_media_routers = [
    upload.router,
]

for _router in [*_auth_routers, *_admin_routers, *_media_routers]:
    router.include_router(_router)
