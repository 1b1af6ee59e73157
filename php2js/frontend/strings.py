"""Decoding of PHP string literal escapes."""

from __future__ import annotations

import re

_DOUBLE_ESCAPE = re.compile(
    r"\\(?:(?P<simple>[nrtvef\\$\"])"
    r"|(?P<oct>[0-7]{1,3})"
    r"|x(?P<hex>[0-9A-Fa-f]{1,2})"
    r"|u\{(?P<uni>[0-9A-Fa-f]+)\})"
)

_SINGLE_ESCAPE = re.compile(r"\\([\\'])")

_SIMPLE: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "e": "\x1b",
    "f": "\f",
    "\\": "\\",
    "$": "$",
    '"': '"',
}


def decode_double_quoted(raw: str, heredoc: bool = False) -> str:
    """Decode escapes of a double-quoted or heredoc fragment.

    Unrecognized sequences keep their backslash, as PHP does. Inside a
    heredoc `\\"` is not an escape.
    """

    def replace(m: re.Match[str]) -> str:
        simple = m.group("simple")
        if simple is not None:
            if heredoc and simple == '"':
                return m.group(0)
            return _SIMPLE[simple]
        if m.group("oct") is not None:
            return chr(int(m.group("oct"), 8) & 0xFF)
        if m.group("hex") is not None:
            return chr(int(m.group("hex"), 16))
        code = int(m.group("uni"), 16)
        if code > 0x10FFFF:
            return m.group(0)
        return chr(code)

    return _DOUBLE_ESCAPE.sub(replace, raw)


def decode_single_quoted(raw: str) -> str:
    """Decode a single-quoted body: only `\\\\` and `\\'` are escapes."""
    return _SINGLE_ESCAPE.sub(lambda m: m.group(1), raw)


def strip_quotes(text: str) -> tuple[str, str]:
    """Split a quoted literal into (quote char, body), dropping a `b` prefix."""
    if text[:1] in ("b", "B"):
        text = text[1:]
    quote = text[:1]
    if len(text) >= 2 and text[-1] == quote:
        return quote, text[1:-1]
    return quote, text[1:]


def dedent_heredoc(lines: list[str], indent: str) -> list[str]:
    """Remove the closing marker's indentation from every body line (PHP 7.3+)."""
    if not indent:
        return lines
    return [line[len(indent) :] if line.startswith(indent) else line.lstrip(" \t") for line in lines]
