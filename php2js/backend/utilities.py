"""PHP helper functions with no native JS equivalent.

Each helper is realized under one of three strategies:

| style  | call site                 | definition                                  |
|--------|---------------------------|---------------------------------------------|
| inline | `__empty(x)`              | emitted once at the end of the file         |
| module | `php_utils.empty(x)`      | shared module file, imported by namespace   |
| none   | `!x`                      | none, an approximate expression is inlined  |
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from ..options import UTILITY_STYLES
from .util import module_identifier

logger = logging.getLogger(__name__)

_SIMPLE_OPERAND = re.compile(r"[\w$.]+(\[[^\[\]]*\])*|'[^'\\\n]*'")


def _paren(expr: str) -> str:
    if _SIMPLE_OPERAND.fullmatch(expr):
        return expr
    return f"({expr})"


@dataclass(frozen=True)
class Helper:
    """One helper: JS signature, body lines and the `none`-style fallback."""

    name: str
    params: str
    body: tuple[str, ...]
    fallback: Callable[[list[str]], str]


HELPERS: dict[str, Helper] = {
    h.name: h
    for h in (
        Helper(
            "empty",
            "val",
            (
                "if (val === null || val === undefined || val === false) return true;",
                'if (val === 0 || val === "0" || val === "") return true;',
                "if (Array.isArray(val) && val.length === 0) return true;",
                "if (typeof val === 'object' && Object.getPrototypeOf(val) === Object.prototype && Object.keys(val).length === 0) return true;",
                "return false;",
            ),
            lambda args: "!" + _paren(args[0]),
        ),
        Helper(
            "isset",
            "...vars",
            ("return vars.every((v) => v !== undefined && v !== null);",),
            lambda args: "(" + " && ".join(f"{_paren(a)} !== undefined && {_paren(a)} !== null" for a in args) + ")",
        ),
        Helper(
            "array_key_exists",
            "key, arr",
            (
                "if (arr === null || arr === undefined) return false;",
                "if (arr instanceof Map) return arr.has(key);",
                "return Object.prototype.hasOwnProperty.call(arr, key);",
            ),
            lambda args: f"({_paren(args[0])} in {_paren(args[1])})",
        ),
        Helper(
            "in_array",
            "needle, haystack, strict = false",
            (
                "const values = Array.isArray(haystack) ? haystack : Object.values(haystack ?? {});",
                "return strict ? values.includes(needle) : values.some((v) => v == needle);",
            ),
            lambda args: f"Object.values({args[1]}).includes({args[0]})",
        ),
        Helper(
            "is_array",
            "val",
            (
                "if (Array.isArray(val)) return true;",
                "return val !== null && typeof val === 'object' && Object.getPrototypeOf(val) === Object.prototype;",
            ),
            lambda args: f"(Array.isArray({args[0]}) || ({_paren(args[0])} !== null && typeof {_paren(args[0])} === 'object'))",
        ),
    )
}

_EXPORTED_FUNCTION = re.compile(r"^export function (\w+)\(", re.MULTILINE)


class UtilityRegistry:
    """Append-only set of referenced helper names.

    May be shared by concurrent transpile calls that feed one helper module.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._names: set[str] = set(names)

    def register(self, name: str) -> None:
        with self._lock:
            self._names.add(name)

    def names(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._names)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._names

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)


def _ordered(names: Iterable[str]) -> list[str]:
    wanted = set(names)
    return [name for name in HELPERS if name in wanted]


def render_module(functions: Iterable[str]) -> str:
    """Source text of the shared helper module."""
    names = _ordered(functions)
    lines = [
        "//",
        "// PHP Utility Functions Module",
        "// Generated by php2js; shared by transpiled modules.",
        "//",
        "",
    ]
    for name in names:
        helper = HELPERS[name]
        lines.append(f"export function {name}({helper.params}) {{")
        lines.extend("    " + body for body in helper.body)
        lines.append("}")
        lines.append("")
    lines.append("export default {")
    lines.extend(f"    {name}," for name in names)
    lines.append("};")
    return "\n".join(lines) + "\n"


class UtilityManager:
    """Per-file helper bookkeeping under one utility style."""

    def __init__(
        self,
        style: str = "inline",
        module_name: str = "php-utils",
        registry: UtilityRegistry | None = None,
    ) -> None:
        if style not in UTILITY_STYLES:
            logger.warning("unknown utility style %r, falling back to 'inline'", style)
            style = "inline"
        self.style = style
        self.module_name = module_name
        self.namespace = module_identifier(module_name)
        self.registry = registry if registry is not None else UtilityRegistry()
        self.used: list[str] = []

    @property
    def module_filename(self) -> str:
        if self.module_name.endswith(".js"):
            return self.module_name
        return self.module_name + ".js"

    def register_function(self, name: str) -> None:
        if name not in HELPERS:
            logger.warning("unknown helper %r ignored", name)
            return
        if name not in self.used:
            self.used.append(name)

    def commit(self) -> None:
        """Record this file's helpers in the shared registry."""
        for name in self.used:
            self.registry.register(name)

    def call(self, name: str, args: list[str]) -> str:
        """Render a call to helper `name` under the configured style."""
        helper = HELPERS[name]
        if self.style == "none":
            return helper.fallback(args)
        self.register_function(name)
        joined = ", ".join(args)
        if self.style == "module":
            return f"{self.namespace}.{name}({joined})"
        return f"__{name}({joined})"

    def module_import(self) -> str | None:
        if self.style != "module" or not self.used:
            return None
        return f"import * as {self.namespace} from './{self.module_filename}';"

    def inline_definitions(self) -> list[str]:
        """Definitions of the helpers this file used, for the inline style."""
        if self.style != "inline":
            return []
        lines: list[str] = []
        for name in _ordered(self.used):
            helper = HELPERS[name]
            lines.append(f"function __{name}({helper.params}) {{")
            lines.extend("    " + body for body in helper.body)
            lines.append("}")
            lines.append("")
        return lines

    def generate_utility_module(self, target_dir: str | Path, functions: Iterable[str] | None) -> Path:
        """Write the helper module into target_dir; None writes every helper."""
        path = Path(target_dir) / self.module_filename
        names = list(HELPERS) if functions is None else _ordered(functions)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_module(names), encoding="utf-8")
        logger.info("wrote utility module %s (%s)", path, ", ".join(names) or "empty")
        return path

    def ensure_utility_module(self, target_dir: str | Path) -> Path | None:
        """Merge registered helpers into the module file, never dropping any."""
        if self.style != "module":
            return None
        path = Path(target_dir) / self.module_filename
        existing: set[str] = set()
        if path.exists():
            existing = set(_EXPORTED_FUNCTION.findall(path.read_text(encoding="utf-8")))
        return self.generate_utility_module(target_dir, existing | self.registry.names() | set(self.used))
