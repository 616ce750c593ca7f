from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from gridwalk.dispatcher import CommandDispatcher
from gridwalk.session import Session
from gridwalk.sink import EventSink

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class _Slot:
    session: Session
    # Serializes commands and deadline firings for this one connection.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    deadline: asyncio.Task[None] | None = None
    closed: bool = False

    def cancel_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None


class SessionRegistry:
    """Owns every connection's Session and its inactivity deadline.

    Contract:
      - `register` creates an idle Session and sends the initial state.
      - `on_command` runs validate -> transition -> side effects under the connection's lock.
      - `on_close` / `on_error` cancel the deadline and drop the Session (idempotent).

    The mapping is only touched from the event loop, so unrelated connections never
    contend; each connection's work is serialized by its own lock. Deadlines are tasks
    that sleep, then enter that same lock, and carry the Session's deadline version so
    a superseded firing is discarded.
    """

    def __init__(self, *, dispatcher: CommandDispatcher, sink: EventSink, inactivity_timeout: float) -> None:
        if inactivity_timeout <= 0:
            raise ValueError("inactivity_timeout must be positive")
        self._dispatcher = dispatcher
        self._sink = sink
        self._timeout = inactivity_timeout
        self._slots: dict[str, _Slot] = {}

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def get(self, connection_id: str) -> Session | None:
        slot = self._slots.get(connection_id)
        return slot.session if slot is not None else None

    async def register(self, connection_id: str) -> Session:
        if connection_id in self._slots:
            raise ValueError(f"Connection already registered: {connection_id}")

        slot = _Slot(session=Session(connection_id=connection_id))
        self._slots[connection_id] = slot
        logger.info("client connected connection=%s", connection_id)

        async with slot.lock:
            await self._dispatcher.greet(slot.session)
        return slot.session

    async def on_command(self, connection_id: str, raw: str | bytes) -> None:
        slot = self._slots.get(connection_id)
        if slot is None:
            logger.warning("message from unregistered connection dropped connection=%s", connection_id)
            return

        async with slot.lock:
            if slot.closed:
                logger.warning("message from unregistered connection dropped connection=%s", connection_id)
                return
            try:
                outcome = await self._dispatcher.handle_message(slot.session, raw)
            except Exception:
                logger.exception("error processing message connection=%s", connection_id)
                return
            if outcome is not None:
                self._arm(slot, outcome.deadline_version)

    async def on_close(self, connection_id: str) -> None:
        slot = self._slots.pop(connection_id, None)
        if slot is None:
            return

        slot.closed = True
        async with slot.lock:
            slot.cancel_deadline()
        await self._sink.release(connection_id)
        logger.info(
            "client disconnected connection=%s status=%s",
            connection_id,
            slot.session.status.value,
        )

    async def on_error(self, connection_id: str, err: BaseException) -> None:
        logger.error("connection error connection=%s error=%r", connection_id, err)
        await self.on_close(connection_id)

    async def close_all(self) -> None:
        """Drop every connection without emitting summaries (server shutdown)."""

        for connection_id in list(self._slots):
            await self.on_close(connection_id)

    def _arm(self, slot: _Slot, version: int) -> None:
        slot.cancel_deadline()
        slot.deadline = asyncio.create_task(
            self._fire_after_timeout(slot, version),
            name=f"deadline:{slot.session.connection_id}:{version}",
        )

    async def _fire_after_timeout(self, slot: _Slot, version: int) -> None:
        await asyncio.sleep(self._timeout)
        cid = slot.session.connection_id
        async with slot.lock:
            if slot.closed or self._slots.get(cid) is not slot:
                logger.debug("deadline for removed connection ignored connection=%s", cid)
                return
            if slot.deadline is asyncio.current_task():
                slot.deadline = None
            try:
                await self._dispatcher.handle_deadline(slot.session, version)
            except Exception:
                logger.exception("error closing session connection=%s", cid)
