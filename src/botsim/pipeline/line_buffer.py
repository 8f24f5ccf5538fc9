"""Chunk reassembly: arbitrary text chunks in, parsed instructions out.

Chunks may split a line anywhere, including mid-keyword, mid-number, or
between ``\\r`` and ``\\n``. The buffer keeps the trailing partial line until
its terminator (or end of input) arrives, parses each complete line, and
forwards instructions to a bounded queue in input order.

INVARIANT: when the queue is full the buffer waits for capacity. It never
drops, reorders, or parses ahead of an instruction it could not forward.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING

from botsim.domain.parser import parse_line

if TYPE_CHECKING:
    from botsim.domain.types import Instruction

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r?\n")


class LineBuffer:
    """Reassemble lines across chunk boundaries and forward parsed instructions.

    Usage::

        queue: asyncio.Queue[Instruction | None] = asyncio.Queue(maxsize=64)
        buffer = LineBuffer(queue)
        async for chunk in source:
            await buffer.feed(chunk)
        await buffer.finish()

    Attributes:
        lines_read: Non-blank lines handed to the parser so far.
        rejected: Lines the parser rejected.
    """

    def __init__(self, queue: asyncio.Queue[Instruction | None]) -> None:
        self._queue = queue
        self._fragments: list[str] = []
        self.lines_read = 0
        self.rejected = 0

    @property
    def pending(self) -> str:
        """The partial line waiting for its terminator."""
        return "".join(self._fragments)

    async def feed(self, chunk: str) -> None:
        """Consume one chunk, forwarding every line it completes."""
        if "\n" not in chunk:
            # Fragments are joined only when a terminator completes the line.
            self._fragments.append(chunk)
            return
        lines = LINE_BREAK.split(self.pending + chunk)
        self._fragments = [lines.pop()]
        for line in lines:
            await self._process(line)

    async def finish(self) -> None:
        """Treat any residual partial line as the final line of input."""
        residual, self._fragments = self.pending, []
        await self._process(residual)

    async def _process(self, line: str) -> None:
        if not line.strip():
            return
        self.lines_read += 1
        instruction = parse_line(line)
        if instruction is None:
            self.rejected += 1
            logger.debug("Rejected line: %r", line)
            return
        await self._forward(instruction)

    async def _forward(self, instruction: Instruction) -> None:
        try:
            self._queue.put_nowait(instruction)
        except asyncio.QueueFull:
            logger.debug("Instruction queue saturated, waiting for capacity")
            await self._queue.put(instruction)
