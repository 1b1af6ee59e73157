"""Tests for PHP string literal decoding."""

from php2js.frontend.strings import (
    decode_double_quoted,
    decode_single_quoted,
    dedent_heredoc,
    strip_quotes,
)


# ── Double quotes ──


def test_simple_escapes():
    assert decode_double_quoted(r"a\nb\tc") == "a\nb\tc"
    assert decode_double_quoted(r"\$x") == "$x"
    assert decode_double_quoted(r"say \"hi\"") == 'say "hi"'
    assert decode_double_quoted(r"back\\slash") == "back\\slash"


def test_numeric_escapes():
    assert decode_double_quoted(r"\101") == "A"
    assert decode_double_quoted(r"\x41") == "A"
    assert decode_double_quoted(r"\u{1F600}") == "\U0001F600"


def test_unknown_escape_kept():
    assert decode_double_quoted(r"\q") == "\\q"


def test_out_of_range_codepoint_kept():
    assert decode_double_quoted(r"\u{110000}") == r"\u{110000}"


def test_heredoc_keeps_escaped_quote():
    assert decode_double_quoted(r"\"x\"", heredoc=True) == r"\"x\""


# ── Single quotes ──


def test_single_quoted_escapes():
    assert decode_single_quoted(r"it\'s") == "it's"
    assert decode_single_quoted(r"a\\b") == "a\\b"
    assert decode_single_quoted(r"a\nb") == "a\\nb"


def test_strip_quotes():
    assert strip_quotes("'abc'") == ("'", "abc")
    assert strip_quotes('"abc"') == ('"', "abc")
    assert strip_quotes("b'abc'") == ("'", "abc")


# ── Heredoc ──


def test_dedent_heredoc():
    assert dedent_heredoc(["    a", "      b", "c"], "    ") == ["a", "  b", "c"]


def test_dedent_heredoc_no_indent():
    assert dedent_heredoc(["  a"], "") == ["  a"]
