from __future__ import annotations

import pytest

from gridwalk.websocket_hub import ConnectionHub


class _FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.sent: list[dict[str, object]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict[str, object]) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


@pytest.mark.asyncio
async def test_send_reaches_connected_socket() -> None:
    hub = ConnectionHub()
    ws = _FakeSocket()
    await hub.connect("c1", ws)  # type: ignore[arg-type]

    assert ws.accepted
    assert await hub.send("c1", {"type": "positionUpdate", "x": 1, "y": 0}) is True
    assert ws.sent == [{"type": "positionUpdate", "x": 1, "y": 0}]


@pytest.mark.asyncio
async def test_send_to_unknown_connection_reports_failure() -> None:
    hub = ConnectionHub()
    assert await hub.send("nobody", {"type": "error", "message": "x"}) is False


@pytest.mark.asyncio
async def test_broken_socket_reports_failure_and_is_dropped() -> None:
    hub = ConnectionHub()
    await hub.connect("c1", _FakeSocket(broken=True))  # type: ignore[arg-type]

    assert await hub.send("c1", {"type": "initialState", "x": 0, "y": 0}) is False
    assert len(hub) == 0


@pytest.mark.asyncio
async def test_disconnect_is_idempotent() -> None:
    hub = ConnectionHub()
    await hub.connect("c1", _FakeSocket())  # type: ignore[arg-type]
    await hub.disconnect("c1")
    await hub.disconnect("c1")
    assert len(hub) == 0
