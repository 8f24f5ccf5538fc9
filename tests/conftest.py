"""Shared pytest fixtures and test helpers for botsim tests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Generator, Iterable
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from botsim.domain.types import Grid
from botsim.pipeline.engine import DEFAULT_QUEUE_SIZE, run_pipeline
from botsim.pipeline.result import RunSummary
from botsim.pipeline.streams import BufferSink

RunChunks = Callable[..., tuple[str, RunSummary]]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() so handlers never outlive a CliRunner stream."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    bot = logging.getLogger("botsim")
    bot_level = bot.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    bot.setLevel(bot_level)
    structlog.reset_defaults()


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp dir with no botsim config in the environment.

    Use via ``@pytest.mark.usefixtures("_isolated_cwd")``.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BOTSIM_CONFIG", raising=False)
    for name in ("BOTSIM_GRID__WIDTH", "BOTSIM_GRID__HEIGHT", "BOTSIM_VERBOSE", "BOTSIM_SUMMARY"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


async def _iter_chunks(chunks: Iterable[bytes | str]) -> AsyncIterator[bytes | str]:
    """Async source yielding *chunks* one by one."""
    for chunk in chunks:
        yield chunk


@pytest.fixture
def run_chunks() -> RunChunks:
    """Run the pipeline over a list of chunks; return ``(output, summary)``."""

    def _run(
        chunks: Iterable[bytes | str],
        *,
        grid: Grid | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        capacity: int = 16384,
    ) -> tuple[str, RunSummary]:
        sink = BufferSink(capacity)
        summary = asyncio.run(
            run_pipeline(_iter_chunks(list(chunks)), sink, grid=grid, queue_size=queue_size)
        )
        return sink.getvalue(), summary

    return _run
