"""Command grammar: one line of text in, at most one Instruction out.

Grammar (case-insensitive)::

    PLACE <x>,<y>,<FACING>
    MOVE | LEFT | RIGHT | REPORT

Pure functions, no state. The parser checks lexical shape only; whether a
PLACE lands on the grid is decided by the reducer.
"""

from __future__ import annotations

import re

from botsim.domain.types import Direction, Instruction, Left, Move, Place, Report, Right

# Anchored at the start of the line. The trailing lookahead enforces a token
# boundary so "MOVEforward" or "PLACE 1,1,NORTHWEST" never match a prefix.
# ASCII keeps case folding to A-Z, so "RİGHT" and "rıght" are not RIGHT.
COMMAND_PATTERN = re.compile(
    r"""
    ^\s*
    (?:
        (?P<keyword>MOVE|LEFT|RIGHT|REPORT)
      |
        PLACE\s+
        (?P<x>[0-9]+)\s*,\s*
        (?P<y>[0-9]+)\s*,\s*
        (?P<facing>NORTH|EAST|SOUTH|WEST)
    )
    (?=\s|$)
    """,
    re.ASCII | re.IGNORECASE | re.VERBOSE,
)

SIMPLE_INSTRUCTIONS: dict[str, Instruction] = {
    "MOVE": Move(),
    "LEFT": Left(),
    "RIGHT": Right(),
    "REPORT": Report(),
}


def parse_line(text: str) -> Instruction | None:
    """Parse a single logical line into an Instruction.

    Returns None when the line is not a well-formed command. Only the first
    command on a line counts: whitespace-separated trailing text is ignored,
    but anything glued onto a token rejects the whole line.

    Examples:
        >>> parse_line("  move ")
        Move()
        >>> parse_line("PLACE 1, 2, east")
        Place(x=1, y=2, facing=<Direction.EAST: 'EAST'>)
        >>> parse_line("MOVEforward") is None
        True
    """
    match = COMMAND_PATTERN.match(text)
    if match is None:
        return None

    keyword = match.group("keyword")
    if keyword is not None:
        return SIMPLE_INSTRUCTIONS[keyword.upper()]

    try:
        x, y = int(match.group("x")), int(match.group("y"))
    except ValueError:
        # Past the interpreter's integer string conversion limit.
        return None
    return Place(x=x, y=y, facing=Direction(match.group("facing").upper()))
