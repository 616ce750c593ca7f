from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionHub:
    """In-process WebSocket transport keyed by connection id.

    Contract:
      - accept and track a socket via `connect(connection_id, websocket)`.
      - push one JSON object to a connection with `send(connection_id, payload)`.

    `send` reports failure by returning False; it never raises into the caller.
    """

    def __init__(self) -> None:
        self._by_connection: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    async def connect(self, connection_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_connection[connection_id] = websocket

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._by_connection.pop(connection_id, None)

    async def send(self, connection_id: str, payload: dict[str, object]) -> bool:
        async with self._lock:
            ws = self._by_connection.get(connection_id)

        if ws is None:
            return False

        try:
            await ws.send_json(payload)
        except Exception as e:
            logger.debug("send failed connection=%s error=%r", connection_id, e)
            async with self._lock:
                if self._by_connection.get(connection_id) is ws:
                    self._by_connection.pop(connection_id, None)
            return False
        return True

    def __len__(self) -> int:
        return len(self._by_connection)
