"""Root CLI command for botsim: read commands, print reports."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO

import click

from botsim import __version__
from botsim._base import BotCommand
from botsim.config.settings import BotSimSettings
from botsim.context import AppContext
from botsim.pipeline.engine import PipelineError, run_pipeline
from botsim.pipeline.streams import FileSink, read_chunks


@click.command(
    cls=BotCommand,
    examples="""\
  botsim commands.txt
  printf 'PLACE 0,0,NORTH\\nMOVE\\nREPORT\\n' | botsim
  botsim --width 10 --height 10 commands.txt
  botsim --summary commands.txt
  botsim --json commands.txt 2> summary.json
  botsim --error-log robot-error.log commands.txt""",
)
@click.version_option(version=__version__, prog_name="botsim")
@click.argument("source", type=click.File("rb"), default="-", required=False)
@click.option("--width", type=click.IntRange(min=1), default=None, help="Grid width.")
@click.option("--height", type=click.IntRange(min=1), default=None, help="Grid height.")
@click.option("--summary", is_flag=True, help="Print a run summary to stderr.")
@click.option("--json", "json_output", is_flag=True, help="Run summary as JSON on stderr.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--error-log",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Append a failure record to this file if the run aborts.",
)
def cli(
    source: BinaryIO,
    width: int | None,
    height: int | None,
    summary: bool,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    error_log: Path | None,
) -> None:
    """Drive a toy robot around a grid.

    Reads PLACE X,Y,FACING / MOVE / LEFT / RIGHT / REPORT commands from
    SOURCE (stdin when omitted) and prints one X,Y,FACING line per REPORT.
    Malformed commands and moves off the grid are ignored.
    """
    # Unset flags stay None so TOML and env values are not overridden.
    settings = BotSimSettings.from_cli(
        config_path=config_path,
        width=width,
        height=height,
        summary=summary or None,
        json_output=json_output or None,
        verbose=verbose or None,
        log_json=log_json or None,
        error_log=error_log,
    )
    app = AppContext(settings)

    sink = FileSink(
        click.get_binary_stream("stdout"),
        high_water_mark=settings.stream.sink_high_water_mark,
    )
    try:
        result = asyncio.run(
            run_pipeline(
                read_chunks(source, settings.stream.chunk_size),
                sink,
                grid=app.grid,
                queue_size=settings.stream.queue_size,
            )
        )
    except PipelineError as exc:
        app.record_failure(exc)
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        click.echo("\nExiting.", err=True)
        return

    app.emit_summary(result)
