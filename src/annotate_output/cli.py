"""Command line parsing.

The command line is ``[+FORMAT] [-h|-help|--help] program [args ...]``.
Everything from ``program`` on belongs to the child, including options, so
the tokens are inspected by hand instead of going through an option parser.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

from .runtime.process_runner import ProcessSpec
from .runtime.timestamp import DEFAULT_TIMESTAMP_FORMAT

__all__ = ["HELP_FLAGS", "parse_args", "program_name", "usage"]

HELP_FLAGS = frozenset({"-h", "-help", "--help"})
DEFAULT_PROGRAM_NAME = "annotate-output"


def parse_args(
    args: Sequence[str],
    default_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> ProcessSpec | None:
    """Turn the wrapper's arguments (without argv[0]) into a ProcessSpec.

    Returns:
        The spec to run, or None when usage should be shown
    """
    tokens = list(args)
    timestamp_format = default_format

    if tokens and tokens[0].startswith("+"):
        timestamp_format = tokens.pop(0)[1:]

    if not tokens or tokens[0] in HELP_FLAGS:
        return None

    return ProcessSpec(argv=tokens, timestamp_format=timestamp_format)


def program_name(argv0: str | None) -> str:
    """Name shown in the usage text."""
    if not argv0:
        return DEFAULT_PROGRAM_NAME
    name = os.path.basename(argv0)
    if not name or name == "__main__.py":
        return DEFAULT_PROGRAM_NAME
    return name


def usage(prog: str) -> str:
    return (
        f"Usage: {prog} [options] program [args ...]\n"
        "  Run program and annotate STDOUT/STDERR with a timestamp.\n"
        "\n"
        "  Options:\n"
        "   +FORMAT    - Controls the timestamp format as per date(1)\n"
        "   -h, --help - Show this message\n"
    )
