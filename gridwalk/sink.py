from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from gridwalk.api.models import MoveEvent, OutboundMessage, to_wire

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send(self, connection_id: str, payload: dict[str, object]) -> bool: ...


class MoveEventStore(Protocol):
    def append(self, record: MoveEvent) -> str: ...


class _MoveEventWriter:
    """Appends one connection's move events in submission order.

    Records are queued and written by a single background task so the caller never
    waits on the store, while per-connection append order is preserved.
    """

    def __init__(self, *, connection_id: str, store: MoveEventStore) -> None:
        self.connection_id = connection_id
        self._store = store
        self._queue: asyncio.Queue[MoveEvent | None] = asyncio.Queue()
        # Submitted but not yet written, counting the append in progress.
        self.pending = 0
        self._task = asyncio.create_task(self._run(), name=f"move-writer:{connection_id}")

    def submit(self, record: MoveEvent) -> None:
        self.pending += 1
        self._queue.put_nowait(record)

    async def aclose(self, *, timeout: float) -> int:
        """Flush queued records, then stop.

        Gives up after `timeout` seconds and cancels the writer; returns how many
        records were dropped.
        """

        self._queue.put_nowait(None)
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except TimeoutError:
            self._task.cancel()
            return self.pending
        return 0

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            if record is None:
                return
            try:
                # redis-py is synchronous; keep it off the event loop.
                await asyncio.to_thread(self._store.append, record)
            except Exception:
                logger.exception(
                    "move event not persisted game_id=%s connection=%s command=%s",
                    record.game_id,
                    self.connection_id,
                    record.command,
                )
            self.pending -= 1


class EventSink:
    """Maps session events to outbound frames and durable move-event records.

    Closing a connection waits at most `flush_timeout` seconds for its queued
    move events; whatever is still unwritten then is dropped and logged.
    """

    def __init__(self, *, transport: Transport, store: MoveEventStore, flush_timeout: float = 2.0) -> None:
        self._transport = transport
        self._store = store
        self._flush_timeout = flush_timeout
        self._writers: dict[str, _MoveEventWriter] = {}

    async def emit(self, connection_id: str, message: OutboundMessage) -> None:
        """Send one message. A failed send is logged, never raised."""

        if not await self._transport.send(connection_id, to_wire(message)):
            logger.warning("send failed connection=%s type=%s", connection_id, message.type)

    def persist(self, record: MoveEvent) -> None:
        writer = self._writers.get(record.client_id)
        if writer is None:
            writer = _MoveEventWriter(connection_id=record.client_id, store=self._store)
            self._writers[record.client_id] = writer
        writer.submit(record)

    async def release(self, connection_id: str) -> None:
        writer = self._writers.pop(connection_id, None)
        if writer is None:
            return
        dropped = await writer.aclose(timeout=self._flush_timeout)
        if dropped:
            logger.error(
                "move events dropped after flush timeout connection=%s dropped=%s timeout_s=%s",
                connection_id,
                dropped,
                self._flush_timeout,
            )

    async def close_all(self) -> None:
        for connection_id in list(self._writers):
            await self.release(connection_id)
