import logging
import secrets

from ...application.auth_rate_limit import LoginRateLimiter
from ...crud.user import UserRepository
from ...errors import AuthError, PermissionError, RateLimitError, ValidationError
from ...schemas.auth import ProfileImage, SessionUser
from ...services.audit import ActivityLogger

logger = logging.getLogger(__name__)


async def login_user(
    user_repo: UserRepository,
    activity_logger: ActivityLogger,
    username: str | None,
    password: str | None,
    rate_limiter: LoginRateLimiter,
    *,
    client_ip: str | None = None,
) -> SessionUser:
    """Check plaintext credentials and return the user to store in the session."""
    if not username or not password:
        raise ValidationError("Ingrese usuario y contraseña")

    rate_limit_key = rate_limiter.key_for(username, client_ip)
    if rate_limiter.is_limited(rate_limit_key):
        logger.warning("Login rate limit hit for ip=%s", client_ip or "unknown")
        raise RateLimitError()

    user = await user_repo.get_by_username(username)
    if user is None:
        rate_limiter.record_failure(rate_limit_key)
        raise AuthError("El usuario no coincide con la contraseña")

    if not secrets.compare_digest(password.encode("utf-8"), user.password.encode("utf-8")):
        rate_limiter.record_failure(rate_limit_key)
        raise AuthError("Contraseña incorrecta")

    if not user.enabled:
        raise PermissionError("Usuario deshabilitado")

    rate_limiter.reset(rate_limit_key)

    session_user = SessionUser(
        id=user.id,
        username=user.username,
        profileImage=ProfileImage(url=user.profile_url) if user.profile_url else None,
    )
    await activity_logger.log_login(
        user.id, user.username, metadata={"ip_address": client_ip}
    )
    logger.info("User %s logged in", user.id)
    return session_user
