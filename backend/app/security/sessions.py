"""Server-side sessions keyed by a signed cookie.

The cookie carries only a random session id signed with the session secret;
the session record itself (the logged-in user) lives in a SessionStore.
"""
from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from fastapi import Request, Response
from itsdangerous import BadSignature, URLSafeTimedSerializer

from ..infrastructure.redis import RedisClient

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "sess:"
SESSION_SALT = "progestor-session"


class SessionStore(Protocol):
    async def get(self, session_id: str) -> dict[str, Any] | None: ...

    async def set(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...


class MemorySessionStore:
    """Process-local store for development; sessions vanish on restart."""

    def __init__(self) -> None:
        self._records: dict[str, tuple[float, dict[str, Any]]] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        record = self._records.get(session_id)
        if record is None:
            return None
        expires_at, data = record
        if expires_at <= time.monotonic():
            self._records.pop(session_id, None)
            return None
        return dict(data)

    async def set(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        now = time.monotonic()
        self._sweep(now)
        self._records[session_id] = (now + ttl_seconds, dict(data))

    def _sweep(self, now: float) -> None:
        expired = [sid for sid, (expires_at, _) in self._records.items() if expires_at <= now]
        for sid in expired:
            del self._records[sid]

    async def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._records)


class RedisSessionStore:
    """Shared store for production, one JSON string per session with a TTL."""

    def __init__(self, client: RedisClient, prefix: str = SESSION_KEY_PREFIX) -> None:
        self._client = client
        self._prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self._client.get_value(self._key(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed session record %s", session_id[:8])
            await self._client.delete_value(self._key(session_id))
            return None
        return data if isinstance(data, dict) else None

    async def set(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        await self._client.set_value(self._key(session_id), json.dumps(data), ttl_seconds)

    async def delete(self, session_id: str) -> None:
        await self._client.delete_value(self._key(session_id))


@dataclass
class SessionContext:
    session_id: str
    data: dict[str, Any] = field(default_factory=dict)


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        secret: str,
        *,
        cookie_name: str,
        max_age_seconds: int,
        secure: bool,
        same_site: str,
    ) -> None:
        self.store = store
        self.cookie_name = cookie_name
        self.max_age_seconds = max_age_seconds
        self.secure = secure
        self.same_site = same_site
        self._serializer = URLSafeTimedSerializer(secret, salt=SESSION_SALT)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def _read_session_id(self, request: Request) -> str | None:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return None
        try:
            session_id = self._serializer.loads(token, max_age=self.max_age_seconds)
        except BadSignature:
            # SignatureExpired is a BadSignature too
            logger.debug("Rejected session cookie with bad or expired signature")
            return None
        return session_id if isinstance(session_id, str) else None

    async def load(self, request: Request) -> SessionContext | None:
        session_id = self._read_session_id(request)
        if session_id is None:
            return None
        data = await self.store.get(session_id)
        if data is None:
            return None
        return SessionContext(session_id=session_id, data=data)

    async def create(self, response: Response, data: dict[str, Any]) -> SessionContext:
        session_id = secrets.token_urlsafe(32)
        await self.store.set(session_id, data, self.max_age_seconds)
        response.set_cookie(
            self.cookie_name,
            self.sign(session_id),
            max_age=self.max_age_seconds,
            httponly=True,
            secure=self.secure,
            samesite=self.same_site,
            path="/",
        )
        return SessionContext(session_id=session_id, data=data)

    async def save(self, context: SessionContext) -> None:
        await self.store.set(context.session_id, context.data, self.max_age_seconds)

    async def destroy(self, response: Response, context: SessionContext | None) -> None:
        if context is not None:
            await self.store.delete(context.session_id)
        self.clear_cookie(response)

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite=self.same_site,
        )


def build_session_manager(store: SessionStore, *, secret: str, cookie_name: str,
                          max_age_seconds: int, production: bool) -> SessionManager:
    """Cookie flags follow the deployment: cross-site HTTPS in production."""
    return SessionManager(
        store,
        secret,
        cookie_name=cookie_name,
        max_age_seconds=max_age_seconds,
        secure=production,
        same_site="none" if production else "lax",
    )
