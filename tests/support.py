from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass

import redis

from gridwalk.api.models import MoveEvent
from gridwalk.dispatcher import CommandDispatcher
from gridwalk.registry import SessionRegistry
from gridwalk.sink import EventSink

TEST_STREAM = "test:moves"


class RecordingTransport:
    """In-memory transport: records every frame sent per connection.

    `delays` holds a connection's sends for that many seconds before recording them.
    """

    def __init__(self) -> None:
        self.sent: dict[str, list[dict[str, object]]] = defaultdict(list)
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}

    async def send(self, connection_id: str, payload: dict[str, object]) -> bool:
        delay = self.delays.get(connection_id)
        if delay:
            await asyncio.sleep(delay)
        if connection_id in self.failing:
            return False
        self.sent[connection_id].append(payload)
        return True

    def types(self, connection_id: str) -> list[object]:
        return [m["type"] for m in self.sent[connection_id]]


class MemoryStore:
    """In-memory move-event store; `latency` blocks each append like a slow Redis."""

    def __init__(self, *, latency: float = 0.0) -> None:
        self.records: list[MoveEvent] = []
        self.fail = False
        self.latency = latency

    def append(self, record: MoveEvent) -> str:
        if self.latency:
            time.sleep(self.latency)
        if self.fail:
            raise redis.ConnectionError("store is down")
        self.records.append(record)
        return f"0-{len(self.records)}"


@dataclass(slots=True)
class Harness:
    transport: RecordingTransport
    store: MemoryStore
    sink: EventSink
    registry: SessionRegistry


def make_harness(*, timeout: float, store: MemoryStore | None = None, flush_timeout: float = 2.0) -> Harness:
    transport = RecordingTransport()
    store = store if store is not None else MemoryStore()
    sink = EventSink(transport=transport, store=store, flush_timeout=flush_timeout)
    registry = SessionRegistry(dispatcher=CommandDispatcher(sink=sink), sink=sink, inactivity_timeout=timeout)
    return Harness(transport=transport, store=store, sink=sink, registry=registry)
