"""RunSummary: the outcome of one pass over an input stream.

Returned by :meth:`RobotEngine.run`. The CLI renders it for humans (Rich
table) or machines (``--json``); report lines themselves never pass
through it.
"""

from __future__ import annotations

from pydantic import BaseModel


class RunSummary(BaseModel):
    """Counters and final state for a completed run.

    Attributes:
        grid_width: Width of the grid the run used.
        grid_height: Height of the grid the run used.
        lines_read: Non-blank input lines seen.
        instructions: Lines that parsed into an instruction.
        rejected: Lines the parser rejected.
        ignored: Instructions the reducer absorbed without a state change.
        reports: Report lines written to the sink.
        final_state: ``"x,y,FACING"`` or None if the robot was never placed.
    """

    model_config = {"frozen": True}

    grid_width: int
    grid_height: int
    lines_read: int = 0
    instructions: int = 0
    rejected: int = 0
    ignored: int = 0
    reports: int = 0
    final_state: str | None = None
