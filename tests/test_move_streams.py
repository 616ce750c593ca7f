from __future__ import annotations

from datetime import UTC, datetime

import fakeredis

from gridwalk.api.models import MoveEvent
from gridwalk.streams import MoveStream, RedisMoveEventStore, append_to_stream, read_move_events


def _event(command: str, x: int, y: int) -> MoveEvent:
    return MoveEvent(
        game_id="G_1_abcd",
        client_id="abcd-1234",
        command=command,
        x=x,
        y=y,
        timestamp=datetime(2025, 1, 1, tzinfo=UTC),
    )


def test_move_event_stream_fields_use_wire_names() -> None:
    fields = _event("up", 0, -1).to_stream_fields()
    assert fields == {
        "gameId": "G_1_abcd",
        "clientId": "abcd-1234",
        "command": "up",
        "x": "0",
        "y": "-1",
        "timestamp": "2025-01-01T00:00:00Z",
    }


def test_store_appends_in_order() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    store = RedisMoveEventStore(r=r, stream=MoveStream(key="moves"))

    store.append(_event("right", 1, 0))
    store.append(_event("up", 1, 1))

    entries = read_move_events(r=r, stream=store.stream)
    assert [(f["command"], f["x"], f["y"]) for _, f in entries] == [("right", "1", "0"), ("up", "1", "1")]


def test_read_respects_count() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    stream = MoveStream(key="moves")
    for i in range(5):
        append_to_stream(r=r, stream=stream, fields={"command": "up", "y": str(i)})

    assert len(read_move_events(r=r, stream=stream, count=2)) == 2


def test_maxlen_stream_still_accepts_appends() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    stream = MoveStream(key="moves", maxlen=1000)
    entry_id = append_to_stream(r=r, stream=stream, fields={"command": "left"})

    assert entry_id
    assert r.xlen("moves") == 1
