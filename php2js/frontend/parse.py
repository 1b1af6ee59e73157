"""Parse PHP source with tree-sitter and surface syntax errors.

tree-sitter never fails outright: malformed input yields ERROR and missing
nodes inside an otherwise complete tree. The first such node is reported as
a ParseError so a file either lowers cleanly or not at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tree_sitter_php as tsphp
from tree_sitter import Language, Node, Parser, Tree

from ..errors import ParseError

logger = logging.getLogger(__name__)

PHP_LANGUAGE = Language(tsphp.language_php())

OPEN_TAG = "<?php\n"


@dataclass
class ParsedSource:
    """A tree plus the exact bytes it was parsed from."""

    tree: Tree
    source: bytes
    line_offset: int  # lines prepended before parsing


def _get_parser() -> Parser:
    return Parser(PHP_LANGUAGE)


def parse(source: str, filename: str = "<string>") -> ParsedSource:
    """Parse PHP source. Tagless snippets are treated as pure PHP code."""
    line_offset = 0
    if "<?" not in source:
        source = OPEN_TAG + source
        line_offset = 1
    data = source.encode("utf-8")
    tree = _get_parser().parse(data)
    bad = _first_error(tree.root_node)
    if bad is not None:
        row, col = bad.start_point[0], bad.start_point[1]
        lineno = max(row + 1 - line_offset, 1)
        raise ParseError(_describe(bad, data), filename, lineno, col + 1)
    logger.debug("parsed %s (%d bytes)", filename, len(data))
    return ParsedSource(tree, data, line_offset)


def _first_error(node: Node) -> Node | None:
    """Depth-first search for the first ERROR or missing node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return None


def _describe(node: Node, data: bytes) -> str:
    if node.is_missing:
        return f"syntax error, missing {node.type!r}"
    snippet = data[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
    snippet = snippet.strip().splitlines()[0] if snippet.strip() else ""
    if len(snippet) > 30:
        snippet = snippet[:30] + "..."
    if snippet:
        return f"syntax error, unexpected {snippet!r}"
    return "syntax error"
