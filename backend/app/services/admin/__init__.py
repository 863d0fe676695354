from .access_service import AccessService
from .guest_service import GuestService
from .user_service import UserService

__all__ = ["AccessService", "GuestService", "UserService"]
