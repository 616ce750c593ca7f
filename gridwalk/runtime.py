from __future__ import annotations

import logging
from dataclasses import dataclass

import redis

from gridwalk.config import Settings, settings_from_env
from gridwalk.dispatcher import CommandDispatcher
from gridwalk.infra.redis_client import create_redis, ping_or_raise
from gridwalk.registry import SessionRegistry
from gridwalk.sink import EventSink
from gridwalk.streams import MoveStream, RedisMoveEventStore
from gridwalk.websocket_hub import ConnectionHub

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Runtime:
    settings: Settings
    redis: redis.Redis
    store: RedisMoveEventStore
    hub: ConnectionHub
    sink: EventSink
    registry: SessionRegistry


_RUNTIME: Runtime | None = None


def init_runtime(*, settings: Settings, r: redis.Redis) -> Runtime:
    """Wire the store, transport and registry once and cache them.

    Safe to call multiple times; subsequent calls return the already built instance.
    """

    global _RUNTIME
    if _RUNTIME is None:
        store = RedisMoveEventStore(r=r, stream=MoveStream(key=settings.moves_stream, maxlen=settings.moves_stream_maxlen))
        hub = ConnectionHub()
        sink = EventSink(transport=hub, store=store, flush_timeout=settings.move_flush_timeout)
        registry = SessionRegistry(
            dispatcher=CommandDispatcher(sink=sink),
            sink=sink,
            inactivity_timeout=settings.inactivity_timeout,
        )
        _RUNTIME = Runtime(settings=settings, redis=r, store=store, hub=hub, sink=sink, registry=registry)
    return _RUNTIME


def init_runtime_for_app() -> Runtime:
    """Startup hook: build the runtime from the environment.

    Raises RuntimeError when Redis is unreachable so the server never starts serving
    without its move-event store.
    """

    if _RUNTIME is not None:
        return _RUNTIME

    settings = settings_from_env()
    r = create_redis(settings.redis_url, timeout=settings.redis_timeout)
    try:
        ping_or_raise(r)
    except RuntimeError:
        logger.error("cannot start: move-event store unreachable at %s", settings.redis_url)
        raise
    rt = init_runtime(settings=settings, r=r)
    logger.info(
        "server ready stream=%s inactivity_timeout_ms=%s",
        settings.moves_stream,
        settings.inactivity_timeout_ms,
    )
    return rt


def get_runtime() -> Runtime:
    if _RUNTIME is None:
        raise RuntimeError("Runtime not initialized. Call init_runtime() at startup.")
    return _RUNTIME


def reset_runtime_for_tests() -> None:
    global _RUNTIME
    _RUNTIME = None


async def shutdown_runtime() -> None:
    """Cancel pending deadlines, flush move-event writers and release Redis."""

    global _RUNTIME
    rt = _RUNTIME
    if rt is None:
        return
    await rt.registry.close_all()
    await rt.sink.close_all()
    try:
        rt.redis.close()
    except redis.RedisError:
        logger.warning("redis client did not close cleanly", exc_info=True)
    _RUNTIME = None
    logger.info("server stopped")
