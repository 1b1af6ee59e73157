"""AST analysis passes (read-only, no transformations)."""

from .hoisting import collect_locals, declared_names

__all__ = ["collect_locals", "declared_names"]
