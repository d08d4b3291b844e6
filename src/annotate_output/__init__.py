"""annotate-output - run a program and timestamp every line it prints.

Environment variables:
    AO_FORMAT: Default timestamp pattern (default "%H:%M:%S")
    AO_LOG_DEBUG: Write a debug log to a temp file (default false)
    AO_SIGINT_MODE: wait | exit (default wait)

Usage:
    annotate-output [+FORMAT] program [args ...]
"""

__version__ = "0.1.0"

from .app import main

__all__ = ["__version__", "main"]
