"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
FAKE_CHILD_PATH = FIXTURES_DIR / "fake_child.py"

from annotate_output.runtime.sink import OutputSink  # noqa: E402

FIXED_TIMESTAMP = "TS"


def fixed_clock(pattern: str) -> str:
    """Clock that ignores the pattern, for byte-exact assertions."""
    return FIXED_TIMESTAMP


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def fake_child() -> list[str]:
    """argv prefix running the fake child script."""
    return [sys.executable, str(FAKE_CHILD_PATH)]


@pytest.fixture
def output() -> io.BytesIO:
    """In-memory stand-in for stdout."""
    return io.BytesIO()


@pytest.fixture
def sink(output: io.BytesIO) -> OutputSink:
    return OutputSink(output)


def output_lines(output: io.BytesIO) -> list[bytes]:
    """Annotated records without their trailing newline."""
    return output.getvalue().split(b"\n")[:-1]
