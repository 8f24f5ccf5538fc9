"""RobotEngine: wires source, line buffer, reducer, formatter, and sink.

Two coroutines share one bounded queue:

- the producer reads chunks, decodes them, and feeds the LineBuffer, which
  parses lines and blocks on the queue when it is full;
- the consumer applies each instruction to the robot state and, on REPORT,
  writes the formatted line to the sink, draining whenever the sink reports
  saturation and whenever it has caught up with the input.

The consumer is the only code that touches the robot state. I/O failures on
either side cancel the other coroutine and surface as PipelineError.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import TYPE_CHECKING

import structlog

from botsim.domain.reducer import reduce
from botsim.domain.types import UNPOSITIONED, Grid, Instruction, Report, RobotState
from botsim.output.formatters import describe_state, format_report
from botsim.pipeline.line_buffer import LineBuffer
from botsim.pipeline.result import RunSummary
from botsim.pipeline.streams import BufferSink

if TYPE_CHECKING:
    from botsim.pipeline.streams import OutputSink

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 64

# Queue marker: the producer has flushed the last line.
_END_OF_INPUT = None


class PipelineError(Exception):
    """An I/O failure aborted the run.

    Attributes:
        state: The robot state when the run was aborted.
    """

    def __init__(self, message: str, state: RobotState) -> None:
        super().__init__(message)
        self.state = state


class RobotEngine:
    """Single-pass driver owning the grid and the one live robot state."""

    def __init__(self, grid: Grid | None = None, *, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        if queue_size < 1:
            msg = f"queue_size must be at least 1, got {queue_size}"
            raise ValueError(msg)
        self.grid = grid if grid is not None else Grid()
        self.state: RobotState = UNPOSITIONED
        self._queue_size = queue_size
        self._instructions = 0
        self._ignored = 0
        self._reports = 0

    async def run(
        self,
        source: AsyncIterable[bytes] | AsyncIterable[str],
        sink: OutputSink,
    ) -> RunSummary:
        """Process *source* to completion, writing reports to *sink*.

        The sink is closed once every instruction has been applied.

        Raises:
            PipelineError: reading the source or writing the sink failed.
        """
        self.state = UNPOSITIONED
        self._instructions = self._ignored = self._reports = 0

        queue: asyncio.Queue[Instruction | None] = asyncio.Queue(maxsize=self._queue_size)
        buffer = LineBuffer(queue)
        producer = asyncio.create_task(self._produce(source, buffer, queue))
        consumer = asyncio.create_task(self._consume(queue, sink))
        try:
            await asyncio.gather(producer, consumer)
            await sink.aclose()
        except OSError as exc:
            raise self._failure(exc) from exc
        finally:
            producer.cancel()
            consumer.cancel()
            await asyncio.gather(producer, consumer, return_exceptions=True)

        return RunSummary(
            grid_width=self.grid.width,
            grid_height=self.grid.height,
            lines_read=buffer.lines_read,
            instructions=self._instructions,
            rejected=buffer.rejected,
            ignored=self._ignored,
            reports=self._reports,
            final_state=describe_state(self.state),
        )

    async def _produce(
        self,
        source: AsyncIterable[bytes] | AsyncIterable[str],
        buffer: LineBuffer,
        queue: asyncio.Queue[Instruction | None],
    ) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        async for chunk in source:
            text = chunk if isinstance(chunk, str) else decoder.decode(chunk)
            if text:
                await buffer.feed(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            await buffer.feed(tail)
        await buffer.finish()
        await queue.put(_END_OF_INPUT)

    async def _consume(self, queue: asyncio.Queue[Instruction | None], sink: OutputSink) -> None:
        unflushed = False
        while True:
            if unflushed and queue.empty():
                # Caught up with the input: push buffered reports out now.
                await sink.drain()
                unflushed = False
            instruction = await queue.get()
            if instruction is _END_OF_INPUT:
                return
            self._instructions += 1

            if isinstance(instruction, Report):
                line = format_report(self.state)
                if line is None:
                    self._ignored += 1
                    logger.debug("Ignored REPORT: robot not placed")
                    continue
                self._reports += 1
                if not sink.write(line.encode("utf-8")):
                    logger.debug("Output sink saturated, draining")
                    await sink.drain()
                else:
                    unflushed = True
                continue

            new_state = reduce(self.state, instruction, self.grid)
            if new_state is self.state:
                self._ignored += 1
                logger.debug("Ignored %s in state %s", instruction, self.state)
            self.state = new_state

    def _failure(self, exc: OSError) -> PipelineError:
        log = structlog.get_logger("botsim.pipeline")
        log.error(
            "pipeline_failed",
            error=str(exc),
            state=describe_state(self.state) or "unplaced",
            exc_info=True,
        )
        return PipelineError(f"I/O failure while processing commands: {exc}", self.state)


async def run_pipeline(
    source: AsyncIterable[bytes] | AsyncIterable[str],
    sink: OutputSink,
    *,
    grid: Grid | None = None,
    queue_size: int = DEFAULT_QUEUE_SIZE,
) -> RunSummary:
    """Run a fresh engine over *source*, writing reports to *sink*."""
    engine = RobotEngine(grid, queue_size=queue_size)
    return await engine.run(source, sink)


def simulate(commands: str, *, grid: Grid | None = None) -> str:
    """Run *commands* through the pipeline and return the report output.

    Examples:
        >>> simulate("PLACE 0,0,NORTH\\nMOVE\\nREPORT\\n")
        '0,1,NORTH\\n'
    """

    async def _source() -> AsyncIterator[str]:
        yield commands

    sink = BufferSink()
    asyncio.run(run_pipeline(_source(), sink, grid=grid))
    return sink.getvalue()
