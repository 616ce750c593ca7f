from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum


class Command(StrEnum):
    up = "up"
    down = "down"
    left = "left"
    right = "right"


@dataclass(frozen=True, slots=True)
class Position:
    x: int = 0
    y: int = 0

    @staticmethod
    def origin() -> "Position":
        return Position(0, 0)


_STEPS: dict[Command, tuple[int, int]] = {
    Command.up: (0, 1),
    Command.down: (0, -1),
    Command.left: (-1, 0),
    Command.right: (1, 0),
}


def apply_command(position: Position, command: Command) -> Position:
    """Return the position one unit step away in the command's direction."""

    dx, dy = _STEPS[command]
    return Position(position.x + dx, position.y + dy)


def distance(a: Position, b: Position) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def format_distance(value: float) -> str:
    # Reported distances are rounded; the float stays full precision internally.
    return f"{value:.2f}"
