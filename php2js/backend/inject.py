"""Superglobal shim injection, applied to fully rendered output."""

from __future__ import annotations

# PHP superglobal (without `$`) -> JS expression through the shim binding.
SUPERGLOBALS: dict[str, str] = {
    "_GET": "_.GET",
    "_POST": "_.POST",
    "_SERVER": "_.SERVER",
    "_COOKIE": "_.COOKIE",
    "_SESSION": "_.SESSION",
    "_REQUEST": "_.REQUEST",
    "_FILES": "_.FILES",
    "_ENV": "_.ENV",
    "GLOBALS": "_",
}

SHIM_COMMENT = "// Superglobal reference for $_GET, $_POST, $_SERVER, etc."
SHIM_DECL = (
    "const _ = typeof globalThis !== 'undefined' ? globalThis : "
    "(typeof window !== 'undefined' ? window : global);"
)


def inject_superglobal_shim(code: str) -> str:
    """Insert the shared `_` binding before the first real statement.

    Leading comment and blank lines (the file header) stay on top. Text that
    already carries the shim is returned unchanged.
    """
    lines = code.split("\n")
    if SHIM_DECL in lines:
        return code
    insert_at = len(lines)
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped and not stripped.startswith("//"):
            insert_at = i
            break
    lines[insert_at:insert_at] = [SHIM_COMMENT, SHIM_DECL, ""]
    return "\n".join(lines)
