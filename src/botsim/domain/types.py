"""Robot domain types: directions, the grid, robot state, and instructions.

Both RobotState and Instruction are closed unions of frozen dataclasses.
Coordinates and facing exist only on the ``Positioned`` variant, so an
unplaced robot has nothing to read.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

DEFAULT_GRID_WIDTH = 5
DEFAULT_GRID_HEIGHT = 5


class Direction(StrEnum):
    """Compass facing. Definition order is the clockwise turn cycle."""

    NORTH = "NORTH"
    EAST = "EAST"
    SOUTH = "SOUTH"
    WEST = "WEST"


@dataclass(frozen=True)
class Grid:
    """Axis-aligned table: ``0 <= x < width`` and ``0 <= y < height``."""

    width: int = DEFAULT_GRID_WIDTH
    height: int = DEFAULT_GRID_HEIGHT

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            msg = f"Grid dimensions must be positive, got {self.width}x{self.height}"
            raise ValueError(msg)

    def contains(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` lies on the grid."""
        return 0 <= x < self.width and 0 <= y < self.height


# --- Robot state ---


@dataclass(frozen=True)
class Unpositioned:
    """The robot has not been placed yet."""


@dataclass(frozen=True)
class Positioned:
    """The robot stands on the grid at ``(x, y)`` looking ``facing``."""

    x: int
    y: int
    facing: Direction


RobotState = Unpositioned | Positioned

UNPOSITIONED = Unpositioned()


# --- Instructions ---


@dataclass(frozen=True)
class Place:
    """Put the robot at ``(x, y)`` facing ``facing``. Bounds are not checked here."""

    x: int
    y: int
    facing: Direction


@dataclass(frozen=True)
class Move:
    """Advance one unit in the current facing."""


@dataclass(frozen=True)
class Left:
    """Rotate 90 degrees anticlockwise."""


@dataclass(frozen=True)
class Right:
    """Rotate 90 degrees clockwise."""


@dataclass(frozen=True)
class Report:
    """Emit the current position."""


Instruction = Place | Move | Left | Right | Report
