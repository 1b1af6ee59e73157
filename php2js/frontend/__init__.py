"""Frontend package - converts PHP source to php2js nodes."""

from .. import nodes
from .lowering import Lowerer, lower
from .parse import ParsedSource, parse


def compile(source: str, filename: str = "<string>") -> nodes.Program:
    """Frontend pipeline: source -> Program. Raises ParseError on bad syntax."""
    return lower(parse(source, filename))


__all__ = ["Lowerer", "ParsedSource", "compile", "lower", "parse"]
