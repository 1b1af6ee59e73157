"""Tests for identifier and literal rendering helpers."""

from php2js.backend.util import (
    escape_double,
    escape_single,
    escape_template,
    module_identifier,
    number_literal,
    phpdoc_to_jsdoc,
    render_name,
    safe_name,
    short_name,
    string_literal,
)


def test_safe_name():
    assert safe_name("class") == "class_"
    assert safe_name("default") == "default_"
    assert safe_name("value") == "value"
    assert safe_name("_") == "_$"


def test_render_name():
    assert render_name("\\Foo\\Bar") == "Foo_Bar"
    assert render_name("Baz") == "Baz"


def test_short_name():
    assert short_name("\\App\\Models\\User") == "User"
    assert short_name("User") == "User"


def test_escape_double():
    assert escape_double('a"b\\c\n') == 'a\\"b\\\\c\\n'


def test_escape_single():
    assert escape_single("it's\n") == "it\\'s\\n"


def test_escape_template():
    assert escape_template("`${x}`") == "\\`\\${x}\\`"
    assert escape_template("$x {y}") == "$x {y}"


def test_line_separators_escaped():
    assert escape_single("a\u2028b") == "a\\u2028b"
    assert escape_template("a\x00b") == "a\\u0000b"


def test_string_literal():
    assert string_literal("x", True) == '"x"'
    assert string_literal("x", False) == "'x'"


def test_number_literal():
    assert number_literal("017") == "0o17"
    assert number_literal("0") == "0"
    assert number_literal("00") == "00"
    assert number_literal("0x1F") == "0x1F"
    assert number_literal("1.5e3") == "1.5e3"
    assert number_literal("1_000") == "1_000"


def test_module_identifier():
    assert module_identifier("php-utils") == "php_utils"
    assert module_identifier("helpers.js") == "helpers"
    assert module_identifier("2utils") == "_2utils"
    assert module_identifier("class") == "class_"


def test_phpdoc_to_jsdoc():
    doc = "/**\n * Sum.\n * @param int|float $a first\n * @return int\n */"
    assert phpdoc_to_jsdoc(doc) == [
        "/**",
        " * Sum.",
        " * @param {int|float} a first",
        " * @returns {int}",
        " */",
    ]
