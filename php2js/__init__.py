"""php2js - transpile PHP source into JavaScript ES modules."""

from .backend.utilities import UtilityManager, UtilityRegistry
from .errors import ParseError, TranspileError
from .options import Options
from .transpiler import transpile

__all__ = [
    "Options",
    "ParseError",
    "TranspileError",
    "UtilityManager",
    "UtilityRegistry",
    "transpile",
]
