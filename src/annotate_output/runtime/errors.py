"""Runtime exceptions and exit status constants.

annotate-output runtime module v0.1.0
"""

from __future__ import annotations

__all__ = [
    "RunError",
    "ResourceError",
    "SpawnError",
    "DrainError",
    "WaitError",
    "EXIT_FAILURE",
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "SIGNAL_EXIT_BASE",
]

EXIT_FAILURE = 1
EXIT_NOT_EXECUTABLE = 126  # program exists but exec failed
EXIT_NOT_FOUND = 127
SIGNAL_EXIT_BASE = 128  # killed by signal N -> 128 + N


class RunError(Exception):
    """Base class for runner failures."""
    pass


class ResourceError(RunError):
    """Pipe or descriptor creation failed."""
    pass


class SpawnError(RunError):
    """The child program could not be executed.

    Attributes:
        program: argv[0] as given by the caller
        reason: Human readable cause (strerror)
        exit_code: Status reported for the child (127 or 126)
    """

    def __init__(self, program: str, reason: str, exit_code: int) -> None:
        self.program = program
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(f"{program}: {reason}")


class DrainError(RunError):
    """Reading a child stream or writing the annotated output failed.

    Attributes:
        errors: Every failure observed, first one first
    """

    def __init__(self, errors: list[OSError]) -> None:
        self.errors = errors
        super().__init__(f"output drain failed: {errors[0]}")


class WaitError(RunError):
    """Querying the child's exit status failed."""
    pass
