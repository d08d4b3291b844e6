"""annotate-output application entry.

Contains the run lifecycle (signal manager + runner) and the main entry point.
"""

from __future__ import annotations

import asyncio
import locale
import logging
import os
import sys
from collections.abc import Sequence

import anyio

from .cli import parse_args, program_name, usage
from .config import Config, get_config
from .runtime.errors import EXIT_FAILURE, RunError
from .runtime.process_runner import ProcessRunner, ProcessSpec
from .runtime.sink import OutputSink
from .signal_manager import SignalManager

__all__ = ["run_annotated", "main"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


async def run_annotated(
    spec: ProcessSpec,
    runner: ProcessRunner | None = None,
    signal_manager: SignalManager | None = None,
) -> int:
    """Run the child under the signal manager.

    Two activities share one task group:
    - the runner, as the host of the group
    - shutdown_watcher: cancels the group when a forced exit is requested

    Returns:
        The child's exit code, 128 + signal on forced exit, or EXIT_FAILURE
        when the runner itself failed
    """
    if runner is None:
        runner = ProcessRunner()
    if signal_manager is None:
        signal_manager = SignalManager()

    exit_code: int | None = None

    async def _watch_shutdown(scope: anyio.CancelScope) -> None:
        await signal_manager.wait_for_shutdown()
        logger.info("Forced exit requested, abandoning the child")
        scope.cancel()

    await signal_manager.start()
    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(_watch_shutdown, tg.cancel_scope)
            try:
                exit_code = await runner.run(spec)
            except RunError as e:
                logger.error(f"Run failed: {type(e).__name__}: {e}")
                exit_code = EXIT_FAILURE
            finally:
                tg.cancel_scope.cancel()
    finally:
        await signal_manager.stop()

    forced = signal_manager.exit_code
    if forced is not None:
        logger.warning(f"Exiting with {forced} after signal {signal_manager.exit_signal}")
        return forced

    assert exit_code is not None
    return exit_code


def _configure_logging(config: Config) -> None:
    """Configure logging.

    stdout carries the annotated output and stderr belongs to the caller, so
    logging is silent unless AO_LOG_DEBUG / AO_LOG_FILE asks for a file.
    """
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        log_handlers.append(logging.NullHandler())
        log_level = logging.WARNING

    # Third-party loggers stay at WARNING
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("annotate_output").setLevel(log_level)


def _apply_locale() -> None:
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as e:
        logger.debug(f"Keeping C locale for timestamps: {e}")


def _silence_broken_stdout() -> None:
    """Point stdout at /dev/null if the reader went away.

    Otherwise the interpreter reports the failed final flush on stderr.
    """
    try:
        sys.stdout.flush()
    except BrokenPipeError:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        os.close(devnull)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Exit status for the wrapper process
    """
    if argv is None:
        argv = sys.argv[1:]

    config = get_config()
    spec = parse_args(argv, default_format=config.timestamp_format)
    if spec is None:
        print(usage(program_name(sys.argv[0] if sys.argv else None)), end="")
        return 0

    _configure_logging(config)
    _apply_locale()
    logger.debug(f"Starting annotate-output: {config} argv={spec.argv}")

    runner = ProcessRunner(sink=OutputSink(sys.stdout.buffer))
    signal_manager = SignalManager()
    try:
        exit_code = asyncio.run(
            run_annotated(spec, runner=runner, signal_manager=signal_manager)
        )
    finally:
        if signal_manager.exit_code is None:
            _silence_broken_stdout()

    if signal_manager.exit_code is not None:
        _exit_now(exit_code)

    logger.debug(f"annotate-output exiting with {exit_code}")
    return exit_code


def _exit_now(exit_code: int) -> None:
    """Leave without flushing stdout or joining worker threads.

    After a forced exit a worker may still be blocked writing to a stdout
    nobody reads, holding the buffer lock a flush would need.
    """
    logger.debug(f"annotate-output forced exit with {exit_code}")
    logging.shutdown()
    os._exit(exit_code)


if __name__ == "__main__":
    sys.exit(main())
