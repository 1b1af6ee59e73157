"""Scope and export-placement tracking for the JavaScript backend."""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator


class Scope(Enum):
    NONE = "none"
    NAMESPACE = "namespace"
    FUNCTION = "function"
    CLASS_METHOD = "class_method"


class ScopeTracker:
    """Lexical nesting and conditional depth for one transpile call.

    Invariants:
    - conditional_depth >= 0, and is 0 again once a body is left
    - function bodies start at conditional_depth 0 and restore the
      enclosing depth on exit
    """

    def __init__(self) -> None:
        self.scope = Scope.NONE
        self.conditional_depth = 0

    def is_top_level(self) -> bool:
        """True where a declaration is exported: outside any namespace and block."""
        return self.scope is Scope.NONE and self.conditional_depth == 0

    def is_module_level(self) -> bool:
        """True where a static `import` is legal; namespace bodies count."""
        return self.scope in (Scope.NONE, Scope.NAMESPACE) and self.conditional_depth == 0

    @contextmanager
    def conditional(self) -> Iterator[None]:
        self.conditional_depth += 1
        try:
            yield
        finally:
            self.conditional_depth -= 1

    @contextmanager
    def enter(self, scope: Scope) -> Iterator[None]:
        """Enter a namespace, function or method body."""
        saved_scope, saved_depth = self.scope, self.conditional_depth
        self.scope = scope
        if scope is not Scope.NAMESPACE:
            self.conditional_depth = 0
        try:
            yield
        finally:
            self.scope, self.conditional_depth = saved_scope, saved_depth
