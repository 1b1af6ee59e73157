"""Identifier and literal rendering shared by the JavaScript backend."""

from __future__ import annotations

import re

# Words that cannot name a JS binding; a trailing underscore is appended.
JS_RESERVED: frozenset[str] = frozenset(
    {
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "finally",
        "for",
        "function",
        "if",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "new",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "static",
        "switch",
        "throw",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)

# PHP constants with a direct JS spelling.
KNOWN_CONSTANTS: dict[str, str] = {
    "PHP_EOL": '"\\n"',
    "PHP_INT_MAX": "Number.MAX_SAFE_INTEGER",
    "PHP_INT_MIN": "Number.MIN_SAFE_INTEGER",
    "PHP_FLOAT_EPSILON": "Number.EPSILON",
    "M_PI": "Math.PI",
    "NAN": "NaN",
    "INF": "Infinity",
}

_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\u2028\u2029]")
_LEGACY_OCTAL = re.compile(r"0[0-7_]+")


def safe_name(name: str) -> str:
    """Escape a name that collides with a JS reserved word or the `_` shim binding."""
    if name == "_":
        return "_$"
    if name in JS_RESERVED:
        return name + "_"
    return name


def render_name(name: str) -> str:
    """Render a possibly qualified PHP name: `\\Foo\\Bar` -> `Foo_Bar`."""
    return name.lstrip("\\").replace("\\", "_")


def short_name(name: str) -> str:
    """Last segment of a qualified name."""
    return name.lstrip("\\").rsplit("\\", 1)[-1]


def _escape_control(value: str) -> str:
    return _CONTROL.sub(lambda m: f"\\u{ord(m.group(0)):04x}", value)


def escape_double(value: str) -> str:
    """Escape for a double-quoted JS string literal."""
    return _escape_control(
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def escape_single(value: str) -> str:
    """Escape for a single-quoted JS string literal.

    Backslash and quote are the only escapes PHP single quotes know; line
    terminators are escaped too since a JS literal cannot span lines.
    """
    return _escape_control(
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def escape_template(value: str) -> str:
    """Escape literal text for a template literal."""
    return _escape_control(
        value.replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("${", "\\${")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def string_literal(value: str, double_quoted: bool) -> str:
    if double_quoted:
        return f'"{escape_double(value)}"'
    return f"'{escape_single(value)}'"


def number_literal(raw: str) -> str:
    """PHP legacy octal `017` is a syntax error in strict JS; spell it `0o17`."""
    if _LEGACY_OCTAL.fullmatch(raw) and raw.strip("0_"):
        return "0o" + raw[1:]
    return raw


def module_identifier(name: str) -> str:
    """Turn a module name such as `php-utils` into a namespace binding."""
    ident = re.sub(r"\W", "_", name.removesuffix(".js"))
    if not ident or ident[0].isdigit():
        ident = "_" + ident
    return safe_name(ident)


_PARAM_TAG = re.compile(r"@param\s+([\w|\\\[\]]+)\s+")
_RETURN_TAG = re.compile(r"@return\s+([\w|\\\[\]]+)(?=\s|$)")


def phpdoc_to_jsdoc(doc: str) -> list[str]:
    """Convert a PHPDoc block into JSDoc lines (without indentation).

    `$` sigils are dropped, `@param type $x` becomes `@param {type} x` and
    `@return type` becomes `@returns {type}`.
    """
    lines: list[str] = []
    for raw in doc.strip().split("\n"):
        line = raw.strip()
        line = re.sub(r"\$(\w)", r"\1", line)
        line = _PARAM_TAG.sub(r"@param {\1} ", line)
        line = _RETURN_TAG.sub(r"@returns {\1}", line)
        if line.startswith("*"):
            line = " " + line
        lines.append(line)
    return lines
