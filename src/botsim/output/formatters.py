"""Text output for report lines and run summaries.

Report lines go to stdout, one per REPORT against a placed robot. The run
summary is adapted to the requested mode: a Rich table for humans, JSON
for machines (``--json``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from botsim.domain.types import Positioned

if TYPE_CHECKING:
    from botsim.domain.types import RobotState
    from botsim.pipeline.result import RunSummary

LINE_SEPARATOR = "\n"


def describe_state(state: RobotState) -> str | None:
    """Return ``"x,y,FACING"`` for a placed robot, else None."""
    if not isinstance(state, Positioned):
        return None
    return f"{state.x},{state.y},{state.facing.value}"


def format_report(state: RobotState) -> str | None:
    """Render a REPORT line, including its terminator.

    An unplaced robot reports nothing.
    """
    position = describe_state(state)
    if position is None:
        return None
    return position + LINE_SEPARATOR


def format_summary(summary: RunSummary, *, json_output: bool = False) -> str:
    """Format a RunSummary for display.

    Args:
        summary: The run summary to format.
        json_output: If True, return JSON; otherwise a Rich-rendered table.
    """
    if json_output:
        return summary.model_dump_json(indent=2)

    from botsim.output.renderers import render_summary

    return render_summary(summary)
