from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    # Presence is checked by the login use case so the error message matches
    # the client's expectations instead of a generic 422.
    username: str | None = None
    password: str | None = None


class ProfileImage(BaseModel):
    url: str
    publicId: str | None = None
    version: str | None = None


class SessionUser(BaseModel):
    """The user record kept inside a server-side session."""

    id: int
    username: str
    profileImage: ProfileImage | None = None

    model_config = ConfigDict(extra="ignore")
