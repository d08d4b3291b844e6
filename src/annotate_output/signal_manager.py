"""Signal handling for the wrapper process.

Signals are never forwarded to the child. This module only decides what a
signal delivered to the wrapper itself means:
- SIGINT (mode=wait): the child shares the terminal's process group and gets
  the same interrupt, so keep draining and report how it ended
- SIGINT (mode=exit), SIGTERM, or a second SIGINT within the double tap
  window: stop the run and exit with 128 + signal

Supported configuration:
- AO_SIGINT_MODE: wait | exit
- AO_SIGINT_DOUBLE_TAP_WINDOW: double tap window in seconds
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import time
from typing import Optional

from .config import SigintMode, get_config
from .runtime.errors import SIGNAL_EXIT_BASE

__all__ = ["SignalManager", "SigintMode"]

logger = logging.getLogger(__name__)


class SignalManager:
    """Signal manager.

    Example:
        ```python
        signal_manager = SignalManager()

        async def main():
            await signal_manager.start()
            try:
                await runner.run(spec)
            finally:
                await signal_manager.stop()
        ```

    Attributes:
        sigint_mode: SIGINT handling mode
        double_tap_window: Double tap window in seconds
    """

    def __init__(
        self,
        sigint_mode: Optional[SigintMode] = None,
        double_tap_window: Optional[float] = None,
    ) -> None:
        """Create a signal manager.

        Args:
            sigint_mode: SIGINT handling mode (default from config)
            double_tap_window: Double tap window (default from config)
        """
        config = get_config()
        self.sigint_mode = sigint_mode if sigint_mode is not None else config.sigint_mode
        self.double_tap_window = (
            double_tap_window if double_tap_window is not None else config.sigint_double_tap_window
        )

        self._last_sigint_time: float = 0.0
        self._exit_signal: Optional[int] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._running: bool = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_shutdown_requested(self) -> bool:
        """Whether a forced exit was requested."""
        return self._exit_signal is not None

    @property
    def exit_signal(self) -> Optional[int]:
        """The signal that forced the exit, if any."""
        return self._exit_signal

    @property
    def exit_code(self) -> Optional[int]:
        """Exit status matching the forcing signal (128 + N)."""
        if self._exit_signal is None:
            return None
        return SIGNAL_EXIT_BASE + self._exit_signal

    async def start(self) -> None:
        """Install SIGINT and SIGTERM handlers.

        Must be called from the running event loop. Does nothing on Windows.
        """
        if self._running:
            logger.warning("SignalManager already running")
            return

        self._loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        self._running = True

        if sys.platform != "win32":
            self._loop.add_signal_handler(signal.SIGINT, self._handle_sigint)
            self._loop.add_signal_handler(signal.SIGTERM, self._handle_sigterm)
            logger.debug(
                f"Signal handlers installed (mode={self.sigint_mode.value}, "
                f"double_tap_window={self.double_tap_window}s)"
            )

    async def stop(self) -> None:
        """Remove the handlers installed by start()."""
        if not self._running:
            return

        self._running = False

        if sys.platform != "win32" and self._loop:
            try:
                self._loop.remove_signal_handler(signal.SIGINT)
                self._loop.remove_signal_handler(signal.SIGTERM)
            except (RuntimeError, ValueError) as e:
                logger.debug(f"Error removing signal handlers: {e}")

        logger.debug("Signal handlers removed")

    async def wait_for_shutdown(self) -> None:
        """Return once a forced exit is requested."""
        if self._shutdown_event:
            await self._shutdown_event.wait()

    def _handle_sigint(self) -> None:
        current_time = time.time()
        time_since_last = current_time - self._last_sigint_time
        self._last_sigint_time = current_time

        if time_since_last < self.double_tap_window:
            logger.warning("Double SIGINT detected, forcing exit")
            self._request_shutdown(signal.SIGINT)
            return

        if self.sigint_mode == SigintMode.EXIT:
            logger.info("SIGINT received (mode=exit), forcing exit")
            self._request_shutdown(signal.SIGINT)
        else:
            logger.info(
                "SIGINT received (mode=wait), waiting for the child. "
                f"Press Ctrl+C again within {self.double_tap_window}s to exit."
            )

    def _handle_sigterm(self) -> None:
        logger.info("SIGTERM received, forcing exit")
        self._request_shutdown(signal.SIGTERM)

    def _request_shutdown(self, signum: int) -> None:
        if self._exit_signal is None:
            self._exit_signal = int(signum)

        if self._shutdown_event and self._loop:
            self._loop.call_soon_threadsafe(self._shutdown_event.set)
