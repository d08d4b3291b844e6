"""Timestamp formatting with date(1) flavoured patterns."""

from __future__ import annotations

import re
from datetime import datetime

__all__ = ["DEFAULT_TIMESTAMP_FORMAT", "format_now"]

DEFAULT_TIMESTAMP_FORMAT = "%H:%M:%S"

# "%%" must be matched first so that "%%N" stays a literal "%N"
_DATE_EXTENSIONS = re.compile(r"%([%N])")


def format_now(pattern: str, now: datetime | None = None) -> str:
    """Format the current local time.

    Supports everything ``datetime.strftime`` does plus ``%N`` (nanoseconds,
    9 digits). Python clocks only carry microseconds, so the last three
    digits are always zero.

    Args:
        pattern: strftime-style pattern
        now: Time to format (default: current local time)

    Returns:
        The formatted timestamp
    """
    if now is None:
        now = datetime.now()

    def _expand(match: re.Match[str]) -> str:
        if match.group(1) == "%":
            return "%%"
        return f"{now.microsecond * 1000:09d}"

    return now.strftime(_DATE_EXTENSIONS.sub(_expand, pattern))
