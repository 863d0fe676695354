from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Response

from app.application.auth_rate_limit import LoginRateLimiter
from app.errors import AuthError, PermissionError, RateLimitError, ValidationError
from app.security.sessions import MemorySessionStore, SessionContext, build_session_manager
from app.use_cases.auth.login_user import login_user
from app.use_cases.auth.logout_user import logout_user


@dataclass
class FakeUser:
    id: int
    username: str
    password: str
    enabled: bool = True
    profile_url: str | None = None


class FakeUserPort:
    def __init__(self, existing_user: FakeUser | None = None) -> None:
        self.existing_user = existing_user
        self.last_username: str | None = None

    async def get_by_username(self, username: str) -> FakeUser | None:
        self.last_username = username
        if self.existing_user and self.existing_user.username == username:
            return self.existing_user
        return None


MAX_ATTEMPTS = 3


@pytest.fixture
def rate_limiter() -> LoginRateLimiter:
    return LoginRateLimiter(max_attempts=MAX_ATTEMPTS, window_seconds=60)


@pytest.fixture
def activity_logger():
    logger = MagicMock()
    logger.log_login = AsyncMock(return_value=True)
    logger.log_logout = AsyncMock(return_value=True)
    return logger


@pytest.mark.anyio
async def test_login_returns_session_user(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw", profile_url="https://img/a.jpg"))

    user = await login_user(port, activity_logger, "ana", "pw", rate_limiter, client_ip="10.0.0.1")

    assert user.id == 4
    assert user.username == "ana"
    assert user.profileImage is not None
    assert user.profileImage.url == "https://img/a.jpg"
    activity_logger.log_login.assert_awaited_once_with(
        4, "ana", metadata={"ip_address": "10.0.0.1"}
    )


@pytest.mark.anyio
async def test_login_without_profile_image(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw"))

    user = await login_user(port, activity_logger, "ana", "pw", rate_limiter)

    assert user.profileImage is None


@pytest.mark.anyio
@pytest.mark.parametrize("username,password", [("", "pw"), ("ana", ""), (None, None)])
async def test_login_requires_credentials(activity_logger, rate_limiter, username, password) -> None:
    with pytest.raises(ValidationError, match="Ingrese usuario y contraseña"):
        await login_user(FakeUserPort(), activity_logger, username, password, rate_limiter)


@pytest.mark.anyio
async def test_login_unknown_user(activity_logger, rate_limiter) -> None:
    with pytest.raises(AuthError, match="El usuario no coincide con la contraseña"):
        await login_user(FakeUserPort(), activity_logger, "nadie", "pw", rate_limiter)
    activity_logger.log_login.assert_not_awaited()


@pytest.mark.anyio
async def test_login_wrong_password(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw"))

    with pytest.raises(AuthError, match="Contraseña incorrecta"):
        await login_user(port, activity_logger, "ana", "PW", rate_limiter)


@pytest.mark.anyio
async def test_login_disabled_user(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw", enabled=False))

    with pytest.raises(PermissionError, match="Usuario deshabilitado"):
        await login_user(port, activity_logger, "ana", "pw", rate_limiter)


@pytest.mark.anyio
async def test_login_rate_limited_after_repeated_failures(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw"))

    for _ in range(MAX_ATTEMPTS):
        with pytest.raises(AuthError):
            await login_user(port, activity_logger, "ana", "bad", rate_limiter, client_ip="10.0.0.1")

    with pytest.raises(RateLimitError):
        await login_user(port, activity_logger, "ana", "pw", rate_limiter, client_ip="10.0.0.1")

    # Other clients are not affected
    user = await login_user(port, activity_logger, "ana", "pw", rate_limiter, client_ip="10.0.0.2")
    assert user.id == 4


@pytest.mark.anyio
async def test_successful_login_resets_failures(activity_logger, rate_limiter) -> None:
    port = FakeUserPort(FakeUser(id=4, username="ana", password="pw"))

    for _ in range(MAX_ATTEMPTS - 1):
        with pytest.raises(AuthError):
            await login_user(port, activity_logger, "ana", "bad", rate_limiter, client_ip="10.0.0.1")
    await login_user(port, activity_logger, "ana", "pw", rate_limiter, client_ip="10.0.0.1")

    with pytest.raises(AuthError):
        await login_user(port, activity_logger, "ana", "bad", rate_limiter, client_ip="10.0.0.1")


@pytest.mark.anyio
async def test_logout_destroys_session_and_logs(activity_logger) -> None:
    store = MemorySessionStore()
    manager = build_session_manager(
        store, secret="s", cookie_name="progestor.sid", max_age_seconds=60, production=False
    )
    await store.set("sid-1", {"user": {"id": 4, "username": "ana"}}, 60)
    response = Response()

    await logout_user(manager, activity_logger, SessionContext("sid-1", {"user": {"id": 4, "username": "ana"}}), response)

    assert await store.get("sid-1") is None
    assert "progestor.sid=" in response.headers["set-cookie"]
    activity_logger.log_logout.assert_awaited_once_with(4, "ana")


@pytest.mark.anyio
async def test_logout_without_session_only_clears_cookie(activity_logger) -> None:
    manager = build_session_manager(
        MemorySessionStore(), secret="s", cookie_name="progestor.sid", max_age_seconds=60, production=False
    )
    response = Response()

    await logout_user(manager, activity_logger, None, response)

    assert "progestor.sid=" in response.headers["set-cookie"]
    activity_logger.log_logout.assert_not_awaited()


@pytest.mark.anyio
async def test_logout_with_malformed_session_user(activity_logger) -> None:
    store = MemorySessionStore()
    manager = build_session_manager(
        store, secret="s", cookie_name="progestor.sid", max_age_seconds=60, production=False
    )
    await store.set("sid-2", {"user": {"username": "ana"}}, 60)
    response = Response()

    await logout_user(manager, activity_logger, SessionContext("sid-2", {"user": {"username": "ana"}}), response)

    assert await store.get("sid-2") is None
    assert "progestor.sid=" in response.headers["set-cookie"]
    activity_logger.log_logout.assert_not_awaited()
