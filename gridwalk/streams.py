from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, cast

import redis

from gridwalk.api.models import MoveEvent


@dataclass(frozen=True, slots=True)
class MoveStream:
    key: str
    # Approximate MAXLEN trimming; None keeps every record.
    maxlen: int | None = None


def append_to_stream(*, r: redis.Redis, stream: MoveStream, fields: Mapping[str, str]) -> str:
    """Append one entry to a move-event stream."""

    # redis-py stubs expect field/value unions; in our app we only use string fields/values.
    payload = {str(k): str(v) for k, v in fields.items()}
    if stream.maxlen is not None:
        stream_id = r.xadd(stream.key, payload, maxlen=stream.maxlen, approximate=True)
    else:
        stream_id = r.xadd(stream.key, payload)
    return cast(str, stream_id)


def read_move_events(
    *,
    r: redis.Redis,
    stream: MoveStream,
    count: int = 20,
    start: str = "-",
    end: str = "+",
) -> list[tuple[str, dict[str, str]]]:
    entries = r.xrange(stream.key, min=start, max=end, count=count)
    return [(cast(str, mid), cast(dict[str, str], fields)) for mid, fields in entries]


class RedisMoveEventStore:
    """Durable, append-only move-event log backed by a Redis Stream.

    `append` is synchronous (redis-py); callers on the event loop run it in a thread.
    """

    def __init__(self, *, r: redis.Redis, stream: MoveStream) -> None:
        self._r = r
        self.stream = stream

    def append(self, record: MoveEvent) -> str:
        return append_to_stream(r=self._r, stream=self.stream, fields=record.to_stream_fields())
