"""Login throttling.

Failed logins are counted per (client IP, username) over a sliding window;
once a pair reaches the limit further attempts are refused until the oldest
failure ages out. A successful login clears the pair.
"""
import hashlib
import time
from collections import deque
from typing import Callable

from ..config import settings


class LoginRateLimiter:
    def __init__(
        self,
        max_attempts: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: dict[str, deque[float]] = {}

    @staticmethod
    def key_for(username: str, client_ip: str | None) -> str:
        # Usernames are hashed so raw login names never sit in memory as keys
        digest = hashlib.sha256(username.strip().lower().encode("utf-8")).hexdigest()
        return f"login:{client_ip or 'unknown-ip'}:{digest}"

    def _recent_failures(self, key: str, now: float) -> deque[float]:
        failures = self._failures.get(key, deque())
        cutoff = now - self.window_seconds
        while failures and failures[0] <= cutoff:
            failures.popleft()
        if not failures:
            self._failures.pop(key, None)
        return failures

    def is_limited(self, key: str) -> bool:
        return len(self._recent_failures(key, self._clock())) >= self.max_attempts

    def record_failure(self, key: str) -> None:
        now = self._clock()
        failures = self._recent_failures(key, now)
        failures.append(now)
        self._failures[key] = failures

    def reset(self, key: str) -> None:
        self._failures.pop(key, None)

    def clear(self) -> None:
        self._failures.clear()


_login_rate_limiter: LoginRateLimiter | None = None


def get_login_rate_limiter() -> LoginRateLimiter:
    """Process-wide limiter sized from settings on first use."""
    global _login_rate_limiter
    if _login_rate_limiter is None:
        _login_rate_limiter = LoginRateLimiter(
            max_attempts=settings.login_rate_limit_max_attempts,
            window_seconds=settings.login_rate_limit_window_seconds,
        )
    return _login_rate_limiter
