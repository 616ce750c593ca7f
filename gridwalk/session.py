from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from gridwalk.fsm import SessionFSM, SessionStatus
from gridwalk.position import Command, Position, apply_command, distance


def new_game_id(*, connection_id: str, now: datetime) -> str:
    """Session ids are `G_<epoch ms>_<connection id prefix>`.

    Unique enough for concurrently open sessions; two sessions opened in the same
    millisecond by connections sharing a 4-char prefix would collide.
    """

    return f"G_{int(now.timestamp() * 1000)}_{connection_id[:4]}"


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    """Result of an accepted move.

    - `opened`: True when this move opened a new session.
    - `deadline_version`: the version the next inactivity deadline must carry.
    """

    game_id: str
    start_position: Position
    position: Position
    opened: bool
    deadline_version: int
    at: datetime


@dataclass(frozen=True, slots=True)
class SessionSummary:
    game_id: str
    start_position: Position
    end_position: Position
    distance: float
    started_at: datetime
    ended_at: datetime


@dataclass(slots=True)
class Session:
    """One connection's movement state.

    A connection starts idle at the origin. The first accepted move opens a session
    from wherever the player currently stands; the inactivity deadline closes it and
    sends the player back to the origin.
    """

    connection_id: str
    current_position: Position = field(default_factory=Position.origin)
    last_position: Position | None = None
    start_position: Position | None = None
    game_id: str | None = None
    started_at: datetime | None = None
    deadline_version: int = 0
    fsm: SessionFSM = field(default_factory=SessionFSM, repr=False)

    @property
    def status(self) -> SessionStatus:
        return self.fsm.status

    @property
    def is_active(self) -> bool:
        return self.fsm.current_state == self.fsm.playing

    def accept(self, command: Command, *, now: datetime) -> MoveOutcome:
        opened = False
        if not self.is_active:
            self.fsm.open_session()
            self.start_position = self.current_position
            self.game_id = new_game_id(connection_id=self.connection_id, now=now)
            self.started_at = now
            opened = True
        else:
            self.fsm.move()

        if self.game_id is None or self.start_position is None:
            raise RuntimeError(f"Active session without an id: connection={self.connection_id}")

        self.current_position = apply_command(self.current_position, command)
        self.last_position = self.current_position
        self.deadline_version += 1

        return MoveOutcome(
            game_id=self.game_id,
            start_position=self.start_position,
            position=self.current_position,
            opened=opened,
            deadline_version=self.deadline_version,
            at=now,
        )

    def summarize(self, *, version: int, now: datetime) -> SessionSummary | None:
        """Build the end-of-session summary for a deadline armed at `version`.

        Returns None for firings that no longer apply: the session is idle, or a
        later move already armed a newer deadline.
        """

        if not self.is_active or version != self.deadline_version:
            return None

        if self.start_position is None or self.game_id is None or self.started_at is None:
            raise RuntimeError(f"Active session without start state: connection={self.connection_id}")
        end = self.last_position if self.last_position is not None else self.start_position
        return SessionSummary(
            game_id=self.game_id,
            start_position=self.start_position,
            end_position=end,
            distance=distance(self.start_position, end),
            started_at=self.started_at,
            ended_at=now,
        )

    def finish(self) -> None:
        """Close the open session and return to the origin."""

        self.fsm.expire()
        self.start_position = None
        self.last_position = None
        self.game_id = None
        self.started_at = None
        self.current_position = Position.origin()
