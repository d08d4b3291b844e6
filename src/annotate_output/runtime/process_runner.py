"""Process runner: spawns the child and sequences annotated output.

annotate-output runtime module v0.1.0

This module provides:
- Child spawn with stdout/stderr on two dedicated pipes (stdin inherited)
- Concurrent draining of both pipes while waiting for the child
- Start/finish banners ordered around all child output
- Exit status mapping (signal N -> 128 + N, exec failure -> 127/126)

Key design points:
- The parent closes its copies of the write ends right after spawn, so the
  readers see end-of-stream once the child (and its descendants) exit
- The finish timestamp is taken when the exit status is known, but the
  banner is written only after both streams are drained
- The child stays in the caller's session and process group
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass

import anyio

from .annotator import TAG_INFO, TAG_STDERR
from .errors import (
    EXIT_FAILURE,
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
    SIGNAL_EXIT_BASE,
    DrainError,
    SpawnError,
    WaitError,
)
from .pipes import DEFAULT_READ_LIMIT, Pipe, PipeReader, create_pipe
from .sink import OutputSink
from .supervisor import StreamSupervisor
from .timestamp import DEFAULT_TIMESTAMP_FORMAT, format_now

__all__ = [
    "ProcessRunner",
    "ProcessSpec",
    "spawn_child",
    "wait_for_exit",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessSpec:
    """Specification for a child to run.

    Attributes:
        argv: Command line arguments (first element is the program)
        timestamp_format: strftime-style pattern for every timestamp
    """

    argv: list[str]
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("argv must name a program")

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)


async def spawn_child(
    argv: list[str],
    stdout_fd: int,
    stderr_fd: int,
) -> asyncio.subprocess.Process:
    """Start ``argv`` with its stdout and stderr on the given descriptors.

    Raises:
        SpawnError: If the program cannot be found or executed
    """
    try:
        return await asyncio.create_subprocess_exec(
            *argv,
            stdout=stdout_fd,
            stderr=stderr_fd,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        raise SpawnError(argv[0], e.strerror or str(e), EXIT_NOT_FOUND) from e
    except OSError as e:
        raise SpawnError(argv[0], e.strerror or str(e), EXIT_NOT_EXECUTABLE) from e


def exit_code_from_returncode(returncode: int) -> int:
    """Map a Popen-style return code to a shell-style exit code."""
    if returncode < 0:
        return SIGNAL_EXIT_BASE - returncode
    return returncode


async def wait_for_exit(process: asyncio.subprocess.Process) -> int:
    """Wait for the child and return its exit code.

    Interrupted waits are retried; a child killed by signal N yields 128 + N.

    Raises:
        WaitError: If the status cannot be obtained
    """
    while True:
        try:
            returncode = await process.wait()
        except InterruptedError:
            logger.debug(f"Wait for pid={process.pid} interrupted, retrying")
            continue
        except OSError as e:
            raise WaitError(f"cannot wait for pid={process.pid}: {e}") from e
        break

    exit_code = exit_code_from_returncode(returncode)
    logger.debug(f"Child pid={process.pid} returncode={returncode} exit_code={exit_code}")
    return exit_code


@dataclass
class ProcessRunner:
    """Runs one child and annotates its output onto a shared sink.

    Example:
        runner = ProcessRunner()
        spec = ProcessSpec(argv=["make", "-j4"], timestamp_format="%T")
        exit_code = await runner.run(spec)

    Attributes:
        sink: Output for banners and annotated lines (default: stdout)
        clock: ``pattern -> timestamp`` formatter
        read_limit: StreamReader buffer limit for the child pipes
    """

    sink: OutputSink | None = None
    clock: Callable[[str], str] = format_now
    read_limit: int = DEFAULT_READ_LIMIT

    def __post_init__(self) -> None:
        if self.sink is None:
            self.sink = OutputSink()
        self._output_failed = False

    @property
    def output_failed(self) -> bool:
        """Whether any annotated record could not be written in the last run."""
        return self._output_failed

    async def run(self, spec: ProcessSpec) -> int:
        """Run the child to completion.

        This method:
        1. Creates the stdout and stderr pipes
        2. Spawns the child on the pipes' write ends
        3. Closes the parent's write ends and emits the start banner
        4. Drains both pipes while waiting for the child
        5. Emits the finish banner once everything is drained

        Args:
            spec: What to run and how to stamp it

        Returns:
            The child's exit code; EXIT_FAILURE instead of 0 if the annotated
            output could not be written

        Raises:
            ResourceError: If the pipes cannot be created
            WaitError: If the child's status cannot be obtained
        """
        self._output_failed = False
        timestamp = functools.partial(self.clock, spec.timestamp_format)

        stdout_pipe = create_pipe()
        try:
            stderr_pipe = create_pipe()
        except BaseException:
            stdout_pipe.close()
            raise

        try:
            process = await self._spawn(spec, stdout_pipe, stderr_pipe)
        except SpawnError as e:
            stdout_pipe.close()
            stderr_pipe.close()
            return await self._report_spawn_failure(spec, timestamp, e)
        except BaseException:
            stdout_pipe.close()
            stderr_pipe.close()
            raise

        logger.debug(f"Started child pid={process.pid} argv={spec.argv}")

        stdout_source = stdout_pipe.take_reader(self.read_limit)
        stderr_source = stderr_pipe.take_reader(self.read_limit)
        supervisor = StreamSupervisor(self.sink, timestamp)
        wait_error: WaitError | None = None
        exit_code = EXIT_FAILURE
        finished_at = ""

        try:
            await self._announce(timestamp(), f"Started {spec.command_line}")
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._supervise, supervisor, stdout_source, stderr_source)
                try:
                    exit_code = await wait_for_exit(process)
                except WaitError as e:
                    wait_error = e
                    tg.cancel_scope.cancel()
                else:
                    finished_at = timestamp()
        finally:
            stdout_source.close()
            stderr_source.close()

        if wait_error is not None:
            raise wait_error

        await self._announce(finished_at, f"Finished with exitcode {exit_code}")

        if self._output_failed and exit_code == 0:
            return EXIT_FAILURE
        return exit_code

    async def _spawn(
        self,
        spec: ProcessSpec,
        stdout_pipe: Pipe,
        stderr_pipe: Pipe,
    ) -> asyncio.subprocess.Process:
        """Spawn the child and drop the parent's write ends either way."""
        assert stdout_pipe.write_fd is not None and stderr_pipe.write_fd is not None
        try:
            return await spawn_child(spec.argv, stdout_pipe.write_fd, stderr_pipe.write_fd)
        finally:
            stdout_pipe.close_write()
            stderr_pipe.close_write()

    async def _supervise(
        self,
        supervisor: StreamSupervisor,
        stdout_source: PipeReader,
        stderr_source: PipeReader,
    ) -> None:
        try:
            await supervisor.supervise(stdout_source, stderr_source)
        except DrainError as e:
            logger.error(f"Annotated output incomplete: {e}")
            self._output_failed = True

    async def _report_spawn_failure(
        self,
        spec: ProcessSpec,
        timestamp: Callable[[], str],
        error: SpawnError,
    ) -> int:
        """Render an exec failure the way the child would have reported it."""
        logger.error(f"Cannot execute {spec.argv[0]!r}: {error.reason}")
        await self._announce(timestamp(), f"Started {spec.command_line}")
        await self._write(timestamp(), TAG_STDERR, str(error))
        await self._announce(timestamp(), f"Finished with exitcode {error.exit_code}")
        return error.exit_code

    async def _announce(self, when: str, message: str) -> None:
        await self._write(when, TAG_INFO, message)

    async def _write(self, when: str, tag: str, text: str) -> None:
        try:
            await self.sink.emit_text(when, tag, text)
        except OSError as e:
            logger.error(f"Cannot write {tag} record: {e}")
            self._output_failed = True
