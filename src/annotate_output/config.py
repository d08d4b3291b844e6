"""annotate-output environment configuration.

Environment variables:
    AO_FORMAT: Timestamp pattern used when no +FORMAT argument is given
        - strftime directives plus %N (nanoseconds)
        - default "%H:%M:%S"

    AO_LOG_DEBUG: Debug logging
        - true/1/yes/on = write DEBUG logs to a temp file
        - false/0/no/off = no logging output (default)

    AO_LOG_FILE: Explicit debug log path
        - when set, debug logging goes there (implies AO_LOG_DEBUG)

    AO_SIGINT_MODE: What SIGINT delivered to the wrapper does
        - wait = keep draining, the child decides how to react (default)
        - exit = exit immediately with status 130

    AO_SIGINT_DOUBLE_TAP_WINDOW: Double tap window in seconds
        - default 1.0
        - a second SIGINT within this window always forces exit
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .runtime.timestamp import DEFAULT_TIMESTAMP_FORMAT

__all__ = ["Config", "SigintMode", "get_config", "load_config", "reload_config"]


class SigintMode(Enum):
    """SIGINT handling mode.

    - WAIT: ignore the first SIGINT and keep reporting the child
    - EXIT: exit the wrapper right away
    """

    WAIT = "wait"
    EXIT = "exit"

    @classmethod
    def from_string(cls, value: str) -> "SigintMode":
        """Parse a mode name, case-insensitively.

        Returns:
            The matching mode, WAIT for unknown values
        """
        value = value.lower().strip()
        for mode in cls:
            if mode.value == value:
                return mode
        return cls.WAIT


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class Config:
    """annotate-output configuration.

    Attributes:
        timestamp_format: Default timestamp pattern
        log_debug: Debug logging to a file
        log_file: Log file path (set whenever log_debug is True)
        sigint_mode: SIGINT handling mode
        sigint_double_tap_window: Double tap window in seconds
    """

    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    log_debug: bool = False
    log_file: str | None = None
    sigint_mode: SigintMode = SigintMode.WAIT
    sigint_double_tap_window: float = 1.0

    def __repr__(self) -> str:
        return (
            f"Config(timestamp_format={self.timestamp_format!r}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file}, "
            f"sigint_mode={self.sigint_mode.value}, "
            f"sigint_double_tap_window={self.sigint_double_tap_window})"
        )


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "annotate-output"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"ao_debug_{timestamp}.log"

    return str(log_file.resolve())


def _parse_sigint_mode(value: str | None) -> SigintMode:
    if not value:
        return SigintMode.WAIT
    return SigintMode.from_string(value)


def _parse_double_tap_window(value: str | None) -> float:
    if not value:
        return 1.0
    try:
        window = float(value)
        return max(0.1, min(window, 10.0))
    except ValueError:
        return 1.0


def load_config() -> Config:
    """Load configuration from the environment."""
    log_file = os.environ.get("AO_LOG_FILE") or None
    log_debug = log_file is not None or _parse_bool(os.environ.get("AO_LOG_DEBUG"))
    if log_debug and log_file is None:
        log_file = _generate_log_file_path()

    return Config(
        timestamp_format=os.environ.get("AO_FORMAT") or DEFAULT_TIMESTAMP_FORMAT,
        log_debug=log_debug,
        log_file=log_file,
        sigint_mode=_parse_sigint_mode(os.environ.get("AO_SIGINT_MODE")),
        sigint_double_tap_window=_parse_double_tap_window(
            os.environ.get("AO_SIGINT_DOUBLE_TAP_WINDOW")
        ),
    )


# Global instance, loaded lazily
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the global configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
