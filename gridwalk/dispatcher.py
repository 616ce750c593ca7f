from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import ValidationError

from gridwalk.api.models import ErrorMessage, GameOver, InboundCommand, InitialState, MoveEvent, PositionUpdate
from gridwalk.position import Command, format_distance
from gridwalk.session import MoveOutcome, Session, SessionSummary
from gridwalk.sink import EventSink

logger = logging.getLogger(__name__)


class CommandRejectedError(ValueError):
    """An inbound frame that cannot be turned into a Command."""


class MalformedMessageError(CommandRejectedError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Error processing your command: {reason}")


class UnknownCommandError(CommandRejectedError):
    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Unrecognized command: {command}")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _describe(err: ValidationError) -> str:
    errors = err.errors()
    if any(e["type"] == "json_invalid" for e in errors):
        return "payload is not valid JSON"
    # An empty location means the top-level value itself had the wrong type.
    if any(not e["loc"] for e in errors):
        return "payload must be a JSON object"
    return "expected a string 'command' property"


def parse_command(raw: str | bytes) -> Command:
    try:
        msg = InboundCommand.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedMessageError(_describe(e)) from e

    try:
        return Command(msg.command)
    except ValueError:
        raise UnknownCommandError(msg.command) from None


class CommandDispatcher:
    """Validates inbound frames and drives a Session through its transitions.

    Callers must serialize calls per connection; the dispatcher itself holds no locks.
    """

    def __init__(self, *, sink: EventSink, clock: Callable[[], datetime] = _now) -> None:
        self._sink = sink
        self._clock = clock

    async def greet(self, session: Session) -> None:
        pos = session.current_position
        await self._sink.emit(session.connection_id, InitialState(x=pos.x, y=pos.y))

    async def handle_message(self, session: Session, raw: str | bytes) -> MoveOutcome | None:
        """Apply one inbound frame. Returns the outcome of an accepted move, else None."""

        cid = session.connection_id
        try:
            command = parse_command(raw)
        except UnknownCommandError as e:
            logger.warning("unrecognized command connection=%s command=%r", cid, e.command)
            await self._sink.emit(cid, ErrorMessage(message=str(e)))
            return None
        except MalformedMessageError as e:
            logger.error("malformed message connection=%s reason=%s raw=%r", cid, e.reason, raw)
            await self._sink.emit(cid, ErrorMessage(message=str(e)))
            return None

        logger.info("command received connection=%s command=%s", cid, command.value)
        outcome = session.accept(command, now=self._clock())
        if outcome.opened:
            start = outcome.start_position
            logger.info("session started game_id=%s connection=%s start=(%s,%s)", outcome.game_id, cid, start.x, start.y)

        self._sink.persist(
            MoveEvent(
                game_id=outcome.game_id,
                client_id=cid,
                command=command.value,
                x=outcome.position.x,
                y=outcome.position.y,
                timestamp=outcome.at,
            )
        )
        await self._sink.emit(cid, PositionUpdate(x=outcome.position.x, y=outcome.position.y))
        return outcome

    async def handle_deadline(self, session: Session, version: int) -> SessionSummary | None:
        """Close the session if the deadline armed at `version` is still the current one."""

        summary = session.summarize(version=version, now=self._clock())
        if summary is None:
            logger.debug("stale deadline ignored connection=%s version=%s", session.connection_id, version)
            return None

        cid = session.connection_id
        logger.info(
            "session ended by inactivity game_id=%s connection=%s start=(%s,%s) end=(%s,%s) distance=%s",
            summary.game_id,
            cid,
            summary.start_position.x,
            summary.start_position.y,
            summary.end_position.x,
            summary.end_position.y,
            format_distance(summary.distance),
        )
        await self._sink.emit(
            cid,
            GameOver(
                game_id=summary.game_id,
                distance=format_distance(summary.distance),
                start_time=summary.started_at,
                end_time=summary.ended_at,
            ),
        )
        session.finish()
        pos = session.current_position
        await self._sink.emit(cid, PositionUpdate(x=pos.x, y=pos.y))
        return summary
