"""Tests for superglobal shim injection."""

from php2js.backend.inject import SHIM_COMMENT, SHIM_DECL, inject_superglobal_shim

HEADER = "//\n// Transpiled\n//\n\n"


def test_inserted_after_header():
    code = HEADER + "const a = 1;\n"
    lines = inject_superglobal_shim(code).split("\n")
    assert lines[:4] == ["//", "// Transpiled", "//", ""]
    assert lines[4:7] == [SHIM_COMMENT, SHIM_DECL, ""]
    assert lines[7] == "const a = 1;"


def test_idempotent():
    once = inject_superglobal_shim(HEADER + "x();\n")
    assert inject_superglobal_shim(once) == once


def test_comment_only_input():
    out = inject_superglobal_shim("// only\n")
    assert SHIM_DECL in out.split("\n")
    assert out.startswith("// only\n")
