"""
Tree-sitter parsing and query surface for JavaScript and TypeScript sources.

A failed parse is never an error for callers: parse() returns None and every
structural feature downstream falls back to "no information available".
"""

import logging
from collections.abc import Callable, Iterator
from typing import Any

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Parser

from ..models.import_models import SourceRange

logger = logging.getLogger(__name__)


class Grammar:
    """tree-sitter-typescript grammars."""

    TYPESCRIPT = "typescript"
    TSX = "tsx"


# Language ids and file extensions mapped to the grammar that parses them
DIALECT_GRAMMARS = {
    "typescript": Grammar.TYPESCRIPT,
    "ts": Grammar.TYPESCRIPT,
    "mts": Grammar.TYPESCRIPT,
    "cts": Grammar.TYPESCRIPT,
    "typescriptreact": Grammar.TSX,
    "tsx": Grammar.TSX,
    "javascript": Grammar.TSX,
    "javascriptreact": Grammar.TSX,
    "js": Grammar.TSX,
    "jsx": Grammar.TSX,
    "mjs": Grammar.TSX,
    "cjs": Grammar.TSX,
}

_parsers: dict[str, Parser] = {}


def grammar_for(dialect: str) -> str | None:
    return DIALECT_GRAMMARS.get((dialect or "").lower())


def is_supported(dialect: str) -> bool:
    return grammar_for(dialect) is not None


LANGUAGE_IDS = {
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "typescriptreact",
    "js": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "jsx": "javascriptreact",
}


def language_id_for(extension: str) -> str:
    """Editor language id of a file extension; unknown extensions map to themselves."""
    return LANGUAGE_IDS.get(extension.lower(), extension.lower())


def _get_parser(grammar: str) -> Parser:
    parser = _parsers.get(grammar)
    if parser is None:
        parser = Parser()
        if grammar == Grammar.TSX:
            parser.language = Language(ts_typescript.language_tsx())
        else:
            parser.language = Language(ts_typescript.language_typescript())
        _parsers[grammar] = parser
    return parser


class SyntaxTree:
    """A successful parse of one buffer, with offset helpers for its text."""

    def __init__(self, tree: Any, text: str, dialect: str):
        self.tree = tree
        self.root = tree.root_node
        self.text = text
        self.source = text.encode("utf-8")
        self.dialect = dialect
        self._ascii = len(self.source) == len(text)

    def node_text(self, node: Any) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def char_offset(self, byte_offset: int) -> int:
        """Convert a UTF-8 byte offset into a character offset of self.text."""
        if self._ascii:
            return byte_offset
        return len(self.source[:byte_offset].decode("utf-8", errors="ignore"))

    def start(self, node: Any) -> int:
        return self.char_offset(node.start_byte)

    def end(self, node: Any) -> int:
        return self.char_offset(node.end_byte)

    def source_range(self, node: Any) -> SourceRange:
        return make_range(self.text, self.start(node), self.end(node))

    def top_level(self) -> list[Any]:
        """Top-level statements of the program in source order."""
        return [node for node in self.root.named_children if node.type != "comment"]


def make_range(text: str, start: int, end: int) -> SourceRange:
    start_line = text.count("\n", 0, start)
    end_line = start_line + text.count("\n", start, end)
    return SourceRange(
        start_offset=start,
        end_offset=end,
        start_line=start_line,
        start_column=start - (text.rfind("\n", 0, start) + 1),
        end_line=end_line,
        end_column=end - (text.rfind("\n", 0, end) + 1),
    )


def parse(text: str, dialect: str) -> SyntaxTree | None:
    """
    Parse source text into a SyntaxTree.

    Args:
        text: Source text
        dialect: Language id ("typescript", "javascriptreact", ...) or file extension

    Returns:
        SyntaxTree, or None when the dialect is unsupported or the text has syntax errors
    """
    grammar = grammar_for(dialect)
    if grammar is None:
        logger.debug(f"No grammar for dialect '{dialect}'")
        return None

    try:
        tree = _get_parser(grammar).parse(text.encode("utf-8"))
    except Exception as e:
        logger.debug(f"Failed to parse {dialect} source: {e}")
        return None

    if tree.root_node.has_error:
        error_nodes = _find_error_nodes(tree.root_node)
        line = error_nodes[0].start_point[0] + 1 if error_nodes else "?"
        logger.debug(f"Syntax error at line {line} in {dialect} source")
        return None

    return SyntaxTree(tree, text, dialect)


def _find_error_nodes(node: Any) -> list[Any]:
    """Recursively find all error or missing nodes in the AST."""
    errors = []
    if node.type == "ERROR" or node.is_missing:
        errors.append(node)
    for child in node.children:
        if child.has_error or child.is_missing:
            errors.extend(_find_error_nodes(child))
    return errors


def find_all(tree: SyntaxTree | None, predicate: Callable[[Any], bool]) -> Iterator[Any]:
    """
    Depth-first search for nodes matching a predicate.

    Each call walks again from the root, so the result can be restarted by
    calling again. Nodes already visited in this walk are skipped.
    """
    if tree is None:
        return

    visited = set()
    stack = [tree.root]
    while stack:
        node = stack.pop()
        if node.id in visited:
            continue
        visited.add(node.id)

        if predicate(node):
            yield node

        stack.extend(reversed(node.children))


def string_value(tree: SyntaxTree, node: Any) -> str:
    """Contents of a string literal node without its quotes."""
    text = tree.node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def first_child_of_type(node: Any, *types: str) -> Any | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def has_child_token(node: Any, token: str) -> bool:
    """Whether an anonymous child token (like "default" or "*") is present."""
    return any(not child.is_named and child.type == token for child in node.children)


def require_call_source(tree: SyntaxTree, node: Any) -> str | None:
    """Module path of a `require('...')` call expression, else None."""
    if node is None or node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None or function.type != "identifier" or tree.node_text(function) != "require":
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count != 1:
        return None
    argument = arguments.named_children[0]
    if argument.type != "string":
        return None
    return string_value(tree, argument)
