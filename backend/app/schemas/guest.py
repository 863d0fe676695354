from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class GuestCreate(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    profile: str | None = None


class GuestUpdate(BaseModel):
    username: str | None = None
    mail: str | None = None
    password: str | None = None
    profile: str | None = None
    enabled: bool | None = None


class GuestRead(BaseModel):
    id: int
    username: str
    password: str
    mail: str
    profile: str
    created_on: datetime
    enabled: bool

    model_config = ConfigDict(from_attributes=True)


class GuestBulkDelete(BaseModel):
    # Shape is validated by the service, which answers 400 for anything but
    # a non-empty list of ids.
    ids: Any = None


class GuestBulkDeleteResponse(BaseModel):
    success: bool = True
    deleted: int
