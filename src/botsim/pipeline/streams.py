"""Byte sources and output sinks for the pipeline.

A source is any ``AsyncIterable`` of ``bytes`` or ``str`` chunks. A sink
follows the write/drain contract of :class:`asyncio.StreamWriter`, with
one addition: ``write()`` returns False once the sink is saturated, and
the caller must ``await drain()`` before writing again.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import os
import threading
from collections.abc import AsyncIterator, Callable
from typing import BinaryIO, Protocol

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65536
DEFAULT_HIGH_WATER_MARK = 16384


class OutputSink(Protocol):
    """Destination for report lines."""

    def write(self, data: bytes) -> bool:
        """Queue *data*; return False when the caller should drain first."""
        ...

    async def drain(self) -> None:
        """Wait until the sink can accept more data."""
        ...

    async def aclose(self) -> None:
        """Flush anything pending and release the sink."""
        ...


async def read_chunks(
    stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Yield chunks from a binary file object until EOF.

    Each chunk is whatever one unbuffered read returns, so data from a pipe
    arrives as soon as it is written rather than once *chunk_size* bytes
    have accumulated. Reads happen on a daemon thread that holds at most
    one chunk ahead of the consumer; a read blocked on an idle pipe never
    keeps the event loop (or Ctrl-C) waiting.

    Raises:
        OSError: reading the stream failed.
    """
    loop = asyncio.get_running_loop()
    chunks: asyncio.Queue[bytes | Exception] = asyncio.Queue(maxsize=1)
    reader = threading.Thread(
        target=_pump,
        args=(stream, chunk_size, loop, chunks),
        name="botsim-reader",
        daemon=True,
    )
    reader.start()
    while True:
        item = await chunks.get()
        if isinstance(item, Exception):
            raise item
        if not item:
            return
        yield item


def _raw_reader(stream: BinaryIO) -> Callable[[int], bytes]:
    """Return a read function that bypasses the stream's buffer lock.

    A daemon thread parked inside ``BufferedReader.read`` holds that lock,
    and the interpreter aborts at shutdown if it cannot take it back. Reading
    the file descriptor directly holds no lock; in-memory streams have no
    descriptor and fall back to ``read1``.
    """
    try:
        fd = stream.fileno()
    except (OSError, ValueError):
        return getattr(stream, "read1", stream.read)
    return functools.partial(os.read, fd)


def _pump(
    stream: BinaryIO,
    chunk_size: int,
    loop: asyncio.AbstractEventLoop,
    chunks: asyncio.Queue[bytes | Exception],
) -> None:
    read = _raw_reader(stream)
    while True:
        try:
            chunk = read(chunk_size)
        except Exception as exc:
            # Re-raised on the consuming side.
            _deliver(loop, chunks, exc)
            return
        if not _deliver(loop, chunks, chunk) or not chunk:
            return


def _deliver(
    loop: asyncio.AbstractEventLoop,
    chunks: asyncio.Queue[bytes | Exception],
    item: bytes | Exception,
) -> bool:
    """Hand *item* to the loop, blocking while the consumer is a chunk behind.

    Returns False once the loop has gone away.
    """
    try:
        asyncio.run_coroutine_threadsafe(chunks.put(item), loop).result()
    except (RuntimeError, concurrent.futures.CancelledError):
        logger.debug("Reader stopped: event loop no longer accepting chunks")
        return False
    return True


class FileSink:
    """Buffered sink over a binary file object (stdout, an open file).

    ``write()`` only appends to an in-memory buffer and reports saturation
    once it holds *high_water_mark* bytes; ``drain()`` pushes the buffer to
    the stream from a worker thread.
    """

    def __init__(
        self,
        stream: BinaryIO,
        *,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
        close_stream: bool = False,
    ) -> None:
        self._stream = stream
        self._high_water_mark = high_water_mark
        self._close_stream = close_stream
        self._buffer = bytearray()
        self._closed = False

    def write(self, data: bytes) -> bool:
        if self._closed:
            raise ValueError("write to closed sink")
        self._buffer.extend(data)
        return len(self._buffer) < self._high_water_mark

    async def drain(self) -> None:
        if not self._buffer:
            return
        pending = bytes(self._buffer)
        self._buffer.clear()
        logger.debug("Flushing %d bytes to output stream", len(pending))
        await asyncio.to_thread(self._flush, pending)

    async def aclose(self) -> None:
        if self._closed:
            return
        await self.drain()
        self._closed = True
        if self._close_stream:
            await asyncio.to_thread(self._stream.close)

    def _flush(self, data: bytes) -> None:
        self._stream.write(data)
        self._stream.flush()


class BufferSink:
    """In-memory sink that saturates every *capacity* bytes.

    ``drain()`` moves buffered bytes into :attr:`data`, so ``getvalue()``
    always sees everything written so far.
    """

    def __init__(self, capacity: int = DEFAULT_HIGH_WATER_MARK) -> None:
        self._capacity = capacity
        self._pending = bytearray()
        self.data = bytearray()
        self.drains = 0
        self.closed = False

    def write(self, data: bytes) -> bool:
        if self.closed:
            raise ValueError("write to closed sink")
        self._pending.extend(data)
        return len(self._pending) < self._capacity

    async def drain(self) -> None:
        self.drains += 1
        self.data.extend(self._pending)
        self._pending.clear()
        # Let other tasks run, as a real transport would while flushing.
        await asyncio.sleep(0)

    async def aclose(self) -> None:
        await self.drain()
        self.closed = True

    def getvalue(self) -> str:
        """Return everything written so far, decoded as UTF-8."""
        return bytes(self.data + self._pending).decode("utf-8")
