"""Command line parsing tests."""

from __future__ import annotations

import pytest

from annotate_output.cli import HELP_FLAGS, parse_args, program_name, usage


class TestParseArgs:
    """Test parse_args()."""

    def test_program_only(self):
        """Without options the whole argv goes to the child."""
        spec = parse_args(["ls", "-l"])
        assert spec is not None
        assert spec.argv == ["ls", "-l"]
        assert spec.timestamp_format == "%H:%M:%S"

    def test_format_option(self):
        """A leading +FORMAT sets the timestamp pattern."""
        spec = parse_args(["+%Y-%m-%d %T", "make"])
        assert spec is not None
        assert spec.timestamp_format == "%Y-%m-%d %T"
        assert spec.argv == ["make"]

    def test_empty_format(self):
        """A bare '+' means an empty pattern."""
        spec = parse_args(["+", "true"])
        assert spec is not None
        assert spec.timestamp_format == ""

    def test_default_format_override(self):
        """The configured default is used when no +FORMAT is given."""
        spec = parse_args(["true"], default_format="%s")
        assert spec is not None
        assert spec.timestamp_format == "%s"

    def test_only_first_plus_token_is_format(self):
        """A second +token belongs to the child."""
        spec = parse_args(["+%T", "+x", "y"])
        assert spec is not None
        assert spec.argv == ["+x", "y"]

    def test_plus_in_child_args(self):
        """+ tokens after the program are passed through."""
        spec = parse_args(["date", "+%s"])
        assert spec is not None
        assert spec.argv == ["date", "+%s"]
        assert spec.timestamp_format == "%H:%M:%S"

    @pytest.mark.parametrize("flag", sorted(HELP_FLAGS))
    def test_help_flags(self, flag: str):
        """-h, -help and --help request usage."""
        assert parse_args([flag]) is None

    def test_help_after_format(self):
        """Help is recognised after a +FORMAT."""
        assert parse_args(["+%T", "--help"]) is None

    def test_help_flag_after_program_belongs_to_child(self):
        """-h after the program is the child's option."""
        spec = parse_args(["grep", "-h", "x"])
        assert spec is not None
        assert spec.argv == ["grep", "-h", "x"]

    def test_no_arguments(self):
        """No program means usage."""
        assert parse_args([]) is None

    def test_format_without_program(self):
        """Only a +FORMAT means usage."""
        assert parse_args(["+%T"]) is None

    def test_unknown_option_is_program(self):
        """Unknown dash tokens are not wrapper options."""
        spec = parse_args(["--version"])
        assert spec is not None
        assert spec.argv == ["--version"]


class TestUsage:
    """Test usage text."""

    def test_usage_mentions_program_and_options(self):
        text = usage("annotate-output")
        assert text.startswith("Usage: annotate-output [options] program [args ...]\n")
        assert "+FORMAT" in text
        assert "-h, --help" in text

    @pytest.mark.parametrize(
        ("argv0", "expected"),
        [
            ("/usr/bin/annotate-output", "annotate-output"),
            ("ao", "ao"),
            ("", "annotate-output"),
            (None, "annotate-output"),
            ("/src/annotate_output/__main__.py", "annotate-output"),
        ],
    )
    def test_program_name(self, argv0, expected):
        assert program_name(argv0) == expected
