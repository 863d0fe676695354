"""
Access control for the admin backend.

- permissions: the access_1..access_83 bitfield and the slots reserved for
  this backend's own endpoints
- dependencies: ``require_access`` for gating routes on those slots
"""
from .permissions import ACCESS_COLUMNS, AccessSlot

__all__ = ["ACCESS_COLUMNS", "AccessSlot"]
