"""AppContext: per-invocation wiring between settings and the CLI.

Configures logging once, builds the engine inputs from settings, routes the
run summary to stderr, and appends failure records to the error log.
"""

from __future__ import annotations

import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import click

from botsim.output.formatters import describe_state, format_summary

if TYPE_CHECKING:
    from botsim.config.settings import BotSimSettings
    from botsim.domain.types import Grid
    from botsim.pipeline.engine import PipelineError
    from botsim.pipeline.result import RunSummary


class AppContext:
    """Shared context for one ``botsim`` invocation."""

    def __init__(self, settings: BotSimSettings) -> None:
        self.settings = settings

        # Configure structured logging
        from botsim.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def grid(self) -> Grid:
        return self.settings.grid.to_grid()

    def emit_summary(self, summary: RunSummary) -> None:
        """Write the run summary to stderr when ``--summary`` or ``--json`` asked for it.

        stdout carries report lines only, so piped output stays clean.
        """
        if not (self.settings.summary or self.settings.json_output):
            return
        output = format_summary(summary, json_output=self.settings.json_output)
        click.echo(output, err=True)

    def record_failure(self, error: PipelineError) -> None:
        """Append a failure record to the configured error log.

        No-op when no error log is configured.
        """
        path = self.settings.error_log
        if path is None:
            return
        stamp = datetime.now(UTC).isoformat()
        state = describe_state(error.state) or "unplaced"
        stack = "".join(traceback.format_exception(error))
        with path.open("a", encoding="utf-8") as fh:
            fh.write(f"[{stamp}] Error while handling instructions: {error}\n")
            fh.write(f"Current state: {state}\n")
            fh.write(f"Stack trace: {stack}\n")
