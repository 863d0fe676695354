from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class UserCreate(BaseModel):
    username: str | None = None
    mail: str | None = None
    password: str | None = None
    profile: str | None = None


class UserUpdate(BaseModel):
    username: str | None = None
    mail: str | None = None
    password: str | None = None
    profile: str | None = None
    enabled: bool | None = None


class UserRead(BaseModel):
    id: int
    username: str
    mail: str | None
    profile: str | None
    profile_url: str | None
    enabled: bool
    created_on: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileImageUpdate(BaseModel):
    profileUrl: str | None = None
    publicId: str | None = None
    version: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: object) -> object:
        # The image host reports versions as integers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
