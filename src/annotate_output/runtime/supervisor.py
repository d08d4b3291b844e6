"""Stream supervisor: drains both child streams concurrently.

Both annotators run in one anyio task group. A failing annotator does not
cancel its sibling; it keeps reading and discarding its own stream so the
child never blocks on a full pipe. ``supervise()`` returns only after both
streams hit end-of-stream and both read ends were released.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import anyio

from .annotator import TAG_STDERR, TAG_STDOUT, LineAnnotator
from .errors import DrainError
from .pipes import PipeReader
from .sink import OutputSink

__all__ = ["StreamSupervisor"]

logger = logging.getLogger(__name__)

_DISCARD_CHUNK = 64 * 1024


async def _discard(stream: asyncio.StreamReader, tag: str) -> None:
    """Read ``stream`` to end-of-stream, dropping the data."""
    try:
        while await stream.read(_DISCARD_CHUNK):
            pass
    except OSError as e:
        logger.debug(f"Stream {tag} unreadable while discarding: {e}")


class StreamSupervisor:
    """Runs the stdout ("O") and stderr ("E") annotators side by side.

    Example:
        supervisor = StreamSupervisor(sink, lambda: format_now("%T"))
        await supervisor.supervise(stdout_reader, stderr_reader)
    """

    def __init__(self, sink: OutputSink, timestamp: Callable[[], str]) -> None:
        self.sink = sink
        self.timestamp = timestamp

    async def supervise(self, stdout_source: PipeReader, stderr_source: PipeReader) -> None:
        """Drain both sources.

        Raises:
            DrainError: If either stream failed, after both are done
        """
        failures: list[OSError] = []

        async with anyio.create_task_group() as tg:
            tg.start_soon(self._drain, TAG_STDOUT, stdout_source, failures)
            tg.start_soon(self._drain, TAG_STDERR, stderr_source, failures)

        if failures:
            raise DrainError(failures) from failures[0]

    async def _drain(self, tag: str, source: PipeReader, failures: list[OSError]) -> None:
        annotator = LineAnnotator(tag, self.sink, self.timestamp)
        try:
            async with source as stream:
                try:
                    await annotator.run(stream)
                except OSError:
                    await _discard(stream, tag)
                    raise
        except OSError as e:
            logger.debug(f"Annotator {tag} failed: {e}")
            failures.append(e)
        finally:
            source.close()
