"""Rich Console factory and theme for botsim output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_summary() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BOTSIM_THEME = Theme(
    {
        "bot.title": "bold cyan",
        "bot.key": "dim",
        "bot.count": "bold",
        "bot.warning": "bold yellow",
        "bot.position": "bold green",
        "bot.unplaced": "dim italic",
    }
)


def create_console(*, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=BOTSIM_THEME,
        highlight=False,
        width=width or 80,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
