from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.errors import ConflictError, NotFoundError, ValidationError
from app.schemas.auth import SessionUser
from app.schemas.user import UserCreate, UserUpdate
from app.services.admin import UserService


ACTOR = SessionUser(id=1, username="admin")


def make_user(**overrides):
    values = {
        "id": 2,
        "username": "maria",
        "mail": "maria@example.com",
        "password": "pw",
        "profile": "operator",
        "profile_url": None,
        "enabled": True,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _async_mock_repo(*names: str) -> MagicMock:
    repo = MagicMock()
    for name in names:
        setattr(repo, name, AsyncMock())
    return repo


@pytest.fixture
def user_repo():
    repo = _async_mock_repo(
        "list_all",
        "get_by_id",
        "username_taken",
        "mail_taken",
        "create",
        "update",
        "set_profile_url",
        "delete",
        "commit",
        "rollback",
    )
    repo.username_taken.return_value = False
    repo.mail_taken.return_value = False
    return repo


@pytest.fixture
def access_repo():
    repo = _async_mock_repo("get_template", "get_for_user", "grant_from_template", "delete")
    repo.get_template.return_value = SimpleNamespace(profile="operator", user_id=None)
    return repo


@pytest.fixture
def activity_logger():
    logger = MagicMock()
    logger.log_create = AsyncMock(return_value=True)
    logger.log_update = AsyncMock(return_value=True)
    logger.log_delete = AsyncMock(return_value=True)
    return logger


@pytest.fixture
def service(user_repo, access_repo, activity_logger) -> UserService:
    return UserService(user_repo, access_repo, activity_logger)


@pytest.mark.anyio
async def test_create_user_grants_template_access(service, user_repo, access_repo, activity_logger):
    user_repo.create.return_value = make_user()

    user = await service.create_user(
        UserCreate(username="maria", mail="maria@example.com", password="pw", profile="operator"),
        ACTOR,
    )

    assert user.id == 2
    access_repo.get_template.assert_awaited_once_with("operator")
    access_repo.grant_from_template.assert_awaited_once_with(2, access_repo.get_template.return_value)
    user_repo.commit.assert_awaited_once()
    assert activity_logger.log_create.await_args.args[2] == "Creó al usuario maria"


@pytest.mark.anyio
async def test_create_user_requires_known_profile(service, user_repo, access_repo):
    access_repo.get_template.return_value = None

    with pytest.raises(ValidationError, match="Unknown profile 'ghost'"):
        await service.create_user(
            UserCreate(username="maria", mail="m@example.com", password="pw", profile="ghost"),
            ACTOR,
        )
    user_repo.create.assert_not_awaited()


@pytest.mark.anyio
async def test_create_user_requires_all_fields(service):
    with pytest.raises(ValidationError, match="Username, mail, password, and profile are required"):
        await service.create_user(UserCreate(username="maria", password="pw"), ACTOR)


@pytest.mark.anyio
async def test_create_user_conflicts(service, user_repo):
    user_repo.mail_taken.return_value = True

    with pytest.raises(ConflictError, match="El correo electrónico ya está en uso"):
        await service.create_user(
            UserCreate(username="maria", mail="m@example.com", password="pw", profile="operator"),
            ACTOR,
        )


@pytest.mark.anyio
async def test_create_user_rolls_back_when_grant_fails(service, user_repo, access_repo, activity_logger):
    user_repo.create.return_value = make_user()
    access_repo.grant_from_template.side_effect = RuntimeError("grant failed")

    with pytest.raises(RuntimeError):
        await service.create_user(
            UserCreate(username="maria", mail="m@example.com", password="pw", profile="operator"),
            ACTOR,
        )
    user_repo.rollback.assert_awaited_once()
    user_repo.commit.assert_not_awaited()
    activity_logger.log_create.assert_not_awaited()


@pytest.mark.anyio
async def test_update_user_profile_change_regrants(service, user_repo, access_repo):
    user = make_user()
    user_repo.get_by_id.return_value = user
    user_repo.update.return_value = make_user(profile="viewer")
    template = SimpleNamespace(profile="viewer", user_id=None)
    access_repo.get_template.return_value = template

    await service.update_user(2, UserUpdate(profile="viewer"), ACTOR)

    user_repo.update.assert_awaited_once_with(user, {"profile": "viewer"})
    access_repo.grant_from_template.assert_awaited_once_with(2, template)


@pytest.mark.anyio
async def test_update_user_without_profile_keeps_grant(service, user_repo, access_repo, activity_logger):
    user_repo.get_by_id.return_value = make_user()
    user_repo.update.return_value = make_user(enabled=False)

    await service.update_user(2, UserUpdate(enabled=False, password="secret"), ACTOR)

    access_repo.grant_from_template.assert_not_awaited()
    metadata = activity_logger.log_update.await_args.args[4]
    assert "password" in metadata["fields"]
    assert "password" not in metadata["values"]


@pytest.mark.anyio
async def test_update_missing_user(service, user_repo):
    user_repo.get_by_id.return_value = None

    with pytest.raises(NotFoundError, match="User not found"):
        await service.update_user(404, UserUpdate(enabled=True), ACTOR)


@pytest.mark.anyio
async def test_delete_own_account_is_rejected(service, user_repo):
    with pytest.raises(ValidationError, match="You cannot delete your own account"):
        await service.delete_user(ACTOR.id, ACTOR)
    user_repo.get_by_id.assert_not_awaited()


@pytest.mark.anyio
async def test_delete_user_removes_grant(service, user_repo, access_repo, activity_logger):
    user = make_user()
    grant = SimpleNamespace(user_id=2, profile="operator")
    user_repo.get_by_id.return_value = user
    access_repo.get_for_user.return_value = grant

    await service.delete_user(2, ACTOR)

    access_repo.delete.assert_awaited_once_with(grant)
    user_repo.delete.assert_awaited_once_with(user)
    assert activity_logger.log_delete.await_args.args[2] == "Eliminó al usuario maria"


@pytest.mark.anyio
async def test_update_profile_url_missing_user(service, user_repo):
    user_repo.set_profile_url.return_value = None

    with pytest.raises(NotFoundError):
        await service.update_profile_url(3, "https://img.test/a.jpg")
    user_repo.rollback.assert_awaited_once()
