"""OS pipes feeding the child's output back to the annotators.

The write end of each pipe is handed to the child and closed in the parent
right after spawn. The read end is owned by exactly one reader task, which
opens it as an ``asyncio.StreamReader`` and closes it after end-of-stream.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from types import TracebackType
from typing import BinaryIO

from .errors import ResourceError

__all__ = [
    "DEFAULT_READ_LIMIT",
    "Pipe",
    "PipeReader",
    "create_pipe",
]

logger = logging.getLogger(__name__)

# StreamReader buffer limit; longer lines are still read whole
DEFAULT_READ_LIMIT = 64 * 1024


@dataclass
class Pipe:
    """A unidirectional byte pipe.

    Attributes:
        read_fd: Read end, ``None`` once handed over or closed
        write_fd: Write end, ``None`` once closed
    """

    read_fd: int | None
    write_fd: int | None

    def close_write(self) -> None:
        if self.write_fd is not None:
            os.close(self.write_fd)
            self.write_fd = None

    def close_read(self) -> None:
        if self.read_fd is not None:
            os.close(self.read_fd)
            self.read_fd = None

    def close(self) -> None:
        self.close_write()
        self.close_read()

    def take_reader(self, limit: int = DEFAULT_READ_LIMIT) -> PipeReader:
        """Transfer ownership of the read end to a PipeReader."""
        if self.read_fd is None:
            raise ValueError("read end already taken or closed")
        reader = PipeReader(self.read_fd, limit=limit)
        self.read_fd = None
        return reader


def create_pipe() -> Pipe:
    """Create a pipe.

    Raises:
        ResourceError: If the OS refuses (descriptor exhaustion etc.)
    """
    try:
        read_fd, write_fd = os.pipe()
    except OSError as e:
        raise ResourceError(f"cannot create pipe: {e}") from e
    logger.debug(f"Created pipe read_fd={read_fd} write_fd={write_fd}")
    return Pipe(read_fd=read_fd, write_fd=write_fd)


class PipeReader:
    """Read end of a pipe, usable as an async context manager.

    Entering connects the descriptor to the running event loop and returns a
    StreamReader; leaving releases the descriptor. A reader that is never
    entered can be released with ``close()``.

    Example:
        async with pipe.take_reader() as stream:
            line = await stream.readline()
    """

    def __init__(self, fd: int, *, limit: int = DEFAULT_READ_LIMIT) -> None:
        self._fd: int | None = fd
        self._limit = limit
        self._file: BinaryIO | None = None
        self._transport: asyncio.BaseTransport | None = None

    @property
    def fd(self) -> int | None:
        """The descriptor while this reader still owns it."""
        if self._file is not None:
            return self._file.fileno()
        return self._fd

    async def __aenter__(self) -> asyncio.StreamReader:
        if self._fd is None:
            raise ValueError("pipe reader is closed")

        loop = asyncio.get_running_loop()
        stream = asyncio.StreamReader(limit=self._limit)
        protocol = asyncio.StreamReaderProtocol(stream)

        # The file object owns the descriptor from here on
        self._file = os.fdopen(self._fd, "rb", buffering=0)
        self._fd = None
        try:
            self._transport, _ = await loop.connect_read_pipe(lambda: protocol, self._file)
        except BaseException:
            self.close()
            raise
        return stream

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the descriptor now.

        The transport only closes its file on the next loop iteration, so the
        file is closed here as well; closing it twice is harmless.
        """
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None
