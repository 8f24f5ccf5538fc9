"""Rich renderer for RunSummary.

Writes to a Rich Console backed by StringIO and returns the text, so the
CLI decides where it goes (stderr, so piped reports stay clean).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text

from botsim.output.console import create_console, get_output

if TYPE_CHECKING:
    from botsim.pipeline.result import RunSummary

_COUNTERS: tuple[tuple[str, str], ...] = (
    ("lines_read", "lines read"),
    ("instructions", "instructions"),
    ("rejected", "rejected lines"),
    ("ignored", "ignored instructions"),
    ("reports", "reports"),
)


def render_summary(summary: RunSummary) -> str:
    """Render a RunSummary as a two-column table.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    table = Table(
        title=Text(f"botsim run ({summary.grid_width}x{summary.grid_height} grid)", style="bot.title"),
        show_header=False,
        box=None,
        pad_edge=False,
    )
    table.add_column("key", style="bot.key")
    table.add_column("value", justify="right")

    for field, label in _COUNTERS:
        value = getattr(summary, field)
        style = "bot.warning" if field == "rejected" and value else "bot.count"
        table.add_row(label, Text(str(value), style=style))

    if summary.final_state is None:
        table.add_row("final state", Text("unplaced", style="bot.unplaced"))
    else:
        table.add_row("final state", Text(summary.final_state, style="bot.position"))

    console.print(table)
    return get_output(console).rstrip("\n")
