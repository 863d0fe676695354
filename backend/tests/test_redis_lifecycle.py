"""Tests for the Redis singleton lifecycle used by the production session store.

Connections are lazy, so no Redis server is needed here.
"""
import pytest

from app.infrastructure import redis


@pytest.fixture(autouse=True)
def reset_redis_state():
    redis._reset_for_testing()
    yield
    redis._reset_for_testing()


@pytest.mark.anyio
async def test_init_redis_is_idempotent() -> None:
    client1 = await redis.init_redis("redis://localhost:6379/0")
    client2 = await redis.init_redis("redis://localhost:6379/0")

    assert client1 is client2
    assert redis._redis_state == redis._RedisLifecycleState.INITIALIZED
    assert redis.get_redis() is client1

    await redis.close_redis()


@pytest.mark.anyio
async def test_close_redis_is_idempotent() -> None:
    await redis.init_redis("redis://localhost:6379/0")

    await redis.close_redis()
    assert redis._redis_state == redis._RedisLifecycleState.CLOSED
    assert redis._redis_client is None

    await redis.close_redis()
    assert redis._redis_state == redis._RedisLifecycleState.CLOSED


@pytest.mark.anyio
async def test_close_without_init_is_safe() -> None:
    await redis.close_redis()

    assert redis._redis_state == redis._RedisLifecycleState.UNINITIALIZED


@pytest.mark.anyio
async def test_get_redis_after_close_raises_error() -> None:
    await redis.init_redis("redis://localhost:6379/0")
    await redis.close_redis()

    with pytest.raises(RuntimeError, match="not initialized"):
        redis.get_redis()


@pytest.mark.anyio
async def test_closed_client_can_be_reinitialized() -> None:
    await redis.init_redis("redis://localhost:6379/0")
    await redis.close_redis()

    client = await redis.init_redis("redis://localhost:6379/0")

    assert redis.get_redis() is client
    await redis.close_redis()
