from __future__ import annotations

import os

import redis


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis(url: str | None = None, *, timeout: float = 5.0) -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(
        url or get_redis_url(),
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def ping_or_raise(r: redis.Redis) -> None:
    """Fail fast when the move-event store is unreachable."""

    try:
        r.ping()
    except redis.RedisError as e:
        raise RuntimeError(f"Move-event store unreachable: {e}") from e
