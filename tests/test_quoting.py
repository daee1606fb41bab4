"""Tests for single-quote escaping."""

import subprocess
from pathlib import Path

import pytest

from safeshell.quoting import escape, escape_args


def shell_echo(token: str) -> str:
    """Have /bin/sh print a single escaped token back verbatim."""
    completed = subprocess.run(
        f"printf '%s' {token}",
        shell=True,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout


class TestEscape:
    """Tests for escape."""

    def test_wraps_in_single_quotes(self):
        assert escape("hello") == "'hello'"

    def test_escapes_embedded_single_quote(self):
        assert escape("it's") == "'it'\\''s'"

    def test_empty_string(self):
        assert escape("") == "''"

    def test_only_single_quote(self):
        assert escape("'") == "''\\'''"

    def test_spaces(self):
        assert escape("hello world") == "'hello world'"

    def test_metacharacters_left_alone(self):
        """Nothing except the single quote is rewritten."""
        assert escape("$HOME") == "'$HOME'"
        assert escape("a;b|c&d") == "'a;b|c&d'"
        assert escape('"double"') == "'\"double\"'"

    def test_converts_numbers(self):
        assert escape(42) == "'42'"

    def test_converts_paths(self):
        assert escape(Path("/tmp/my file")) == "'/tmp/my file'"

    def test_decodes_bytes(self):
        assert escape(b"abc") == "'abc'"
        assert escape(b"it's") == "'it'\\''s'"

    def test_nul_byte_passes_through(self):
        assert escape("a\x00b") == "'a\x00b'"


class TestEscapeArgs:
    """Tests for escape_args."""

    def test_escapes_and_joins(self):
        assert escape_args(["a", "b", "c"]) == "'a' 'b' 'c'"

    def test_empty_list(self):
        assert escape_args([]) == ""

    def test_none(self):
        assert escape_args(None) == ""

    def test_single_arg(self):
        assert escape_args(["hello world"]) == "'hello world'"

    def test_no_trailing_separator(self):
        assert not escape_args(["a", "b"]).endswith(" ")


@pytest.mark.posix
class TestShellRoundTrip:
    """The shell must read every escaped token back as the original text."""

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "'",
            "''",
            "it's",
            "hello world",
            "; rm -rf /",
            "`id`",
            "$(whoami)",
            "${HOME}",
            "a\nb\tc",
            "!#~<>[]{}()&|",
            "\\'\\\"",
            "--flag=value",
        ],
    )
    def test_round_trip(self, value):
        assert shell_echo(escape(value)) == value

    @pytest.mark.parametrize("adversarial", ["; rm -rf /", "`id`", "$(whoami)", "x' ; echo pwned ; '"])
    def test_adversarial_input_is_one_argument(self, adversarial):
        """The shell sees exactly one argument, never extra syntax."""
        completed = subprocess.run(
            f"set -- {escape_args([adversarial])}; printf '%s|%s' \"$#\" \"$1\"",
            shell=True,
            capture_output=True,
            text=True,
            check=True,
        )
        assert completed.stdout == f"1|{adversarial}"
