from __future__ import annotations

import redis

from gridwalk.registry import SessionRegistry
from gridwalk.runtime import get_runtime
from gridwalk.streams import MoveStream


def get_redis() -> redis.Redis:
    return get_runtime().redis


def get_move_stream() -> MoveStream:
    return get_runtime().store.stream


def get_registry() -> SessionRegistry:
    return get_runtime().registry
