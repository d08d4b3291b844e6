"""Runtime module for running a child and annotating its output.

This module spawns the child on two pipes, drains both pipes concurrently and
writes timestamped, tagged records to a single output sink.
"""

from __future__ import annotations

from .errors import DrainError, ResourceError, RunError, SpawnError, WaitError
from .process_runner import ProcessRunner, ProcessSpec
from .sink import OutputSink
from .timestamp import DEFAULT_TIMESTAMP_FORMAT, format_now

__all__ = [
    "DEFAULT_TIMESTAMP_FORMAT",
    "DrainError",
    "OutputSink",
    "ProcessRunner",
    "ProcessSpec",
    "ResourceError",
    "RunError",
    "SpawnError",
    "WaitError",
    "format_now",
]
