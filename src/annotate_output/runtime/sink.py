"""Shared output sink.

All annotated records (banners and child lines) end up on one binary stream.
Each record is written with a single ``write`` call followed by ``flush``
while holding the sink lock, so records from different writers never mix.

The event loop never performs these writes itself: ``emit_record`` and
``emit_text`` run them in a worker thread, so a stalled stdout reader cannot
keep signal handlers from running.
"""

from __future__ import annotations

import sys
import threading
from typing import BinaryIO

import anyio.to_thread

__all__ = ["OutputSink"]

# argv and locale-formatted timestamps may carry undecodable bytes
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class OutputSink:
    """Lock-protected record writer.

    Example:
        sink = OutputSink()  # sys.stdout.buffer
        await sink.emit_record("12:00:00", "O", b"hello\\n")
    """

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer
        self._lock = threading.Lock()

    def write_record(self, timestamp: str, tag: str, body: bytes) -> None:
        """Write ``"<timestamp> <tag>: <body>"`` as one record.

        A newline is appended when ``body`` does not end with one. Blocks
        until the stream accepted the record.

        Raises:
            OSError: If writing or flushing the stream fails
        """
        prefix = f"{timestamp} {tag}: ".encode(_ENCODING, _ERRORS)
        record = prefix + body
        if not record.endswith(b"\n"):
            record += b"\n"

        with self._lock:
            self._stream.write(record)
            self._stream.flush()

    def write_text(self, timestamp: str, tag: str, text: str) -> None:
        """Write a record whose body is text (banners, spawn errors)."""
        self.write_record(timestamp, tag, text.encode(_ENCODING, _ERRORS))

    async def emit_record(self, timestamp: str, tag: str, body: bytes) -> None:
        """write_record() in a worker thread.

        On cancellation the caller returns at once; a worker blocked in the
        write is abandoned.
        """
        await anyio.to_thread.run_sync(
            self.write_record, timestamp, tag, body, abandon_on_cancel=True
        )

    async def emit_text(self, timestamp: str, tag: str, text: str) -> None:
        """write_text() in a worker thread."""
        await anyio.to_thread.run_sync(
            self.write_text, timestamp, tag, text, abandon_on_cancel=True
        )
