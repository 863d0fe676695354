import pytest

from app.application import auth_rate_limit
from app.application.auth_rate_limit import LoginRateLimiter, get_login_rate_limiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> LoginRateLimiter:
    return LoginRateLimiter(max_attempts=2, window_seconds=60, clock=clock)


def test_limited_after_max_failures(limiter) -> None:
    key = limiter.key_for("ana", "10.0.0.1")

    limiter.record_failure(key)
    assert limiter.is_limited(key) is False
    limiter.record_failure(key)

    assert limiter.is_limited(key) is True


def test_failures_age_out_of_window(limiter, clock) -> None:
    key = limiter.key_for("ana", "10.0.0.1")
    limiter.record_failure(key)
    clock.now += 30
    limiter.record_failure(key)

    clock.now += 31
    assert limiter.is_limited(key) is False

    clock.now += 30
    assert limiter.is_limited(key) is False
    assert key not in limiter._failures


def test_reset_clears_key(limiter) -> None:
    key = limiter.key_for("ana", "10.0.0.1")
    limiter.record_failure(key)
    limiter.record_failure(key)

    limiter.reset(key)

    assert limiter.is_limited(key) is False


def test_key_ignores_username_case_and_hides_it() -> None:
    key = LoginRateLimiter.key_for(" Ana ", "10.0.0.1")

    assert key == LoginRateLimiter.key_for("ana", "10.0.0.1")
    assert key.startswith("login:10.0.0.1:")
    assert "ana" not in key
    assert LoginRateLimiter.key_for("ana", None).startswith("login:unknown-ip:")


def test_shared_limiter_sized_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(auth_rate_limit, "_login_rate_limiter", None)
    monkeypatch.setenv("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "90")
    monkeypatch.setattr("app.config._settings_instance", None)

    limiter = get_login_rate_limiter()

    assert (limiter.max_attempts, limiter.window_seconds) == (7, 90)
    assert get_login_rate_limiter() is limiter
