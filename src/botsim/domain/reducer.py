"""Robot state machine.

Transitions:
- PLACE on the grid moves the robot there from any state; off the grid it is ignored.
- MOVE, LEFT and RIGHT are ignored until the robot has been placed.
- MOVE that would leave the grid is ignored (clamp, never wrap).
- REPORT never changes state.

INVARIANT: an ignored instruction returns the *same* state object, so
callers can tell a no-op apart from a transition by identity.
"""

from __future__ import annotations

from dataclasses import replace

from botsim.domain.types import (
    Direction,
    Grid,
    Instruction,
    Left,
    Move,
    Place,
    Positioned,
    RobotState,
    Right,
)

TURN_CYCLE: tuple[Direction, ...] = tuple(Direction)

MOVE_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, -1),
    Direction.WEST: (-1, 0),
}


def turn(facing: Direction, steps: int) -> Direction:
    """Rotate *facing* by *steps* quarter turns (negative is anticlockwise)."""
    index = (TURN_CYCLE.index(facing) + steps) % len(TURN_CYCLE)
    return TURN_CYCLE[index]


def reduce(state: RobotState, instruction: Instruction, grid: Grid) -> RobotState:
    """Apply *instruction* to *state* on *grid* and return the resulting state.

    Never raises for any instruction; illegal effects leave *state* unchanged.
    """
    if isinstance(instruction, Place):
        if not grid.contains(instruction.x, instruction.y):
            return state
        return Positioned(instruction.x, instruction.y, instruction.facing)

    if not isinstance(state, Positioned):
        return state

    if isinstance(instruction, Move):
        dx, dy = MOVE_DELTAS[state.facing]
        x, y = state.x + dx, state.y + dy
        if not grid.contains(x, y):
            return state
        return replace(state, x=x, y=y)
    if isinstance(instruction, Left):
        return replace(state, facing=turn(state.facing, -1))
    if isinstance(instruction, Right):
        return replace(state, facing=turn(state.facing, 1))

    # Report
    return state
