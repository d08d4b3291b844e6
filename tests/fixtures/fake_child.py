#!/usr/bin/env python3
"""Fake child for integration testing.

This script writes numbered lines to stdout and/or stderr and then exits
with a chosen code or kills itself with a signal.

Usage:
    python fake_child.py [--stdout-lines N] [--stderr-lines N] [--line-size BYTES]
                         [--stdout-tail TEXT] [--exit-code CODE] [--kill-signal NAME]

Arguments:
    --stdout-lines: Number of "out-<i>" lines written to stdout
    --stderr-lines: Number of "err-<i>" lines written to stderr
    --line-size: Pad every line with "x" up to this many bytes (newline included)
    --stdout-tail: Text written to stdout last, without a newline
    --exit-code: Exit code (default 0)
    --kill-signal: Signal name to kill itself with instead of exiting

Lines are alternated between the streams and flushed one by one so that
both pipes are busy at the same time.
"""

from __future__ import annotations

import argparse
import os
import signal
import sys
from typing import NoReturn


def make_line(label: str, index: int, size: int) -> bytes:
    """Build one newline-terminated line of at least ``size`` bytes."""
    body = f"{label}-{index} "
    padding = max(0, size - len(body) - 1)
    return (body + "x" * padding + "\n").encode()


def main() -> NoReturn:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Fake child for testing")
    parser.add_argument("--stdout-lines", type=int, default=0, help="Lines on stdout")
    parser.add_argument("--stderr-lines", type=int, default=0, help="Lines on stderr")
    parser.add_argument("--line-size", type=int, default=0, help="Minimum line size")
    parser.add_argument("--stdout-tail", type=str, default=None, help="Unterminated stdout tail")
    parser.add_argument("--exit-code", type=int, default=0, help="Exit code")
    parser.add_argument("--kill-signal", type=str, default=None, help="Die by this signal")

    args = parser.parse_args()

    stdout = sys.stdout.buffer
    stderr = sys.stderr.buffer

    for i in range(max(args.stdout_lines, args.stderr_lines)):
        if i < args.stdout_lines:
            stdout.write(make_line("out", i, args.line_size))
            stdout.flush()
        if i < args.stderr_lines:
            stderr.write(make_line("err", i, args.line_size))
            stderr.flush()

    if args.stdout_tail is not None:
        stdout.write(args.stdout_tail.encode())
        stdout.flush()

    if args.kill_signal:
        os.kill(os.getpid(), signal.Signals[args.kill_signal])

    sys.exit(args.exit_code)


if __name__ == "__main__":
    main()
