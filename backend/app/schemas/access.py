from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..admin.permissions import validate_flag_keys


class _FlagsPayload(BaseModel):
    @field_validator("flags", check_fields=False)
    @classmethod
    def validate_flags(cls, value: dict[str, bool]) -> dict[str, bool]:
        validate_flag_keys(value.keys())
        return value


class AccessRead(BaseModel):
    id: int
    profile: str
    user_id: int | None
    flags: dict[str, bool]
    enabled_slots: list[int]

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_access(cls, access) -> "AccessRead":
        return cls(
            id=access.id,
            profile=access.profile,
            user_id=access.user_id,
            flags=access.flags(),
            enabled_slots=access.enabled_slots(),
        )


class RoleTemplateCreate(_FlagsPayload):
    profile: str = Field(..., min_length=1, max_length=100)
    flags: dict[str, bool] = Field(default_factory=dict)


class RoleTemplateUpdate(_FlagsPayload):
    flags: dict[str, bool] = Field(default_factory=dict)
    apply_to_users: bool = False


class AccessFlagsUpdate(_FlagsPayload):
    flags: dict[str, bool]


class AccessReset(BaseModel):
    profile: str | None = Field(None, min_length=1, max_length=100)


class MyAccessResponse(BaseModel):
    profile: str | None
    slots: list[int]
