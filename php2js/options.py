"""Transpiler options with validated, warn-and-fallback values."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

INTERFACE_STYLES: dict[str, str] = {
    "abstract-class": "abstract-class",
    "abstract-class-with-throwing-stubs": "abstract-class",
    "comment": "comment",
    "comment-block": "comment",
    "jsdoc": "jsdoc",
    "documentation-only-empty-class": "jsdoc",
    "empty-class": "empty-class",
}

UTILITY_STYLES = ("inline", "module", "none")
UNSET_STYLES = ("delete", "comment")
DEFINE_STYLES = ("const", "export-const", "comment")

_CHOICES: dict[str, tuple[str, ...]] = {
    "interface_style": tuple(INTERFACE_STYLES),
    "utility_style": UTILITY_STYLES,
    "unset_style": UNSET_STYLES,
    "define_style": DEFINE_STYLES,
}


@dataclass(frozen=True)
class Options:
    """Rewrite strategies for one transpile call.

    Unrecognized values never raise: each falls back to its default and a
    warning names the offending field. Interface style aliases are folded to
    their short spelling.
    """

    interface_style: str = "abstract-class"
    utility_style: str = "inline"
    utility_module: str = "php-utils"
    unset_style: str = "comment"
    define_style: str = "const"

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            choices = _CHOICES.get(f.name)
            if choices is not None:
                valid = isinstance(value, str) and value in choices
            else:
                valid = isinstance(value, str) and value.strip() != ""
            if not valid:
                logger.warning(
                    "invalid %s %r, falling back to %r", f.name, value, f.default
                )
                object.__setattr__(self, f.name, f.default)
        object.__setattr__(
            self, "interface_style", INTERFACE_STYLES[self.interface_style]
        )
