"""Line annotator: re-emits a byte stream line by line with a timestamp prefix."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .sink import OutputSink

__all__ = [
    "TAG_INFO",
    "TAG_STDERR",
    "TAG_STDOUT",
    "LineAnnotator",
    "read_chunk",
]

logger = logging.getLogger(__name__)

TAG_INFO = "I"
TAG_STDOUT = "O"
TAG_STDERR = "E"


async def read_chunk(stream: asyncio.StreamReader) -> bytes:
    """Read up to and including the next newline, or until end-of-stream.

    Lines longer than the stream's buffer limit are accumulated so that a
    long line is still returned in one piece.

    Returns:
        The chunk; ``b""`` only at end-of-stream
    """
    parts: list[bytes] = []
    while True:
        try:
            parts.append(await stream.readuntil(b"\n"))
            break
        except asyncio.IncompleteReadError as e:
            # EOF: whatever is left, possibly nothing
            parts.append(e.partial)
            break
        except asyncio.LimitOverrunError as e:
            parts.append(await stream.readexactly(e.consumed))
    return b"".join(parts)


class LineAnnotator:
    """Annotates one child stream.

    Attributes:
        tag: Stream tag written after the timestamp ("O" or "E")
        sink: Shared output sink
        timestamp: Zero-argument callable producing the current timestamp
    """

    def __init__(
        self,
        tag: str,
        sink: OutputSink,
        timestamp: Callable[[], str],
    ) -> None:
        self.tag = tag
        self.sink = sink
        self.timestamp = timestamp

    async def run(self, stream: asyncio.StreamReader) -> None:
        """Copy ``stream`` to the sink until end-of-stream.

        Raises:
            OSError: On the first read or write failure. Records already
                written stay written.
        """
        lines = 0
        while True:
            chunk = await read_chunk(stream)
            if not chunk:
                break
            await self.sink.emit_record(self.timestamp(), self.tag, chunk)
            lines += 1

        logger.debug(f"Stream {self.tag} reached EOF after {lines} line(s)")
