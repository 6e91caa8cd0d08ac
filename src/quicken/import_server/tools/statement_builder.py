"""
Statement text synthesis and placement for JavaScript and TypeScript imports.

Quote characters and semicolons are either fixed by configuration or inferred
from the nearest existing import statements: first the destination buffer,
then sibling files, walking up one directory at a time.
"""

import asyncio
import logging
import os
from collections import Counter
from dataclasses import dataclass

from ..models.import_models import ImportKind, ImportRecord, ImportSyntax, InsertAt
from .import_analyzer import list_imports
from .session_state import CancellationToken
from .syntax_index import SyntaxTree, is_supported, parse

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = ("js", "jsx", "mjs", "cjs", "ts", "tsx", "mts", "cts")


class QuoteStyle:
    SINGLE = "single"
    DOUBLE = "double"
    AUTO = "auto"


class SemicolonStyle:
    ALWAYS = "always"
    NEVER = "never"
    AUTO = "auto"


@dataclass
class ImportStyle:
    """Formatting applied to synthesized statements."""

    quote: str = "'"
    semicolon: bool = True
    eol: str = "\n"
    indent: str = "\t"


def detect_eol(text: str, default: str = "\n") -> str:
    if "\r\n" in text:
        return "\r\n"
    if "\n" in text:
        return "\n"
    return default


def build_clause(name: str, kind: str) -> str:
    if kind == ImportKind.NAMESPACE:
        return f"* as {name}"
    if kind == ImportKind.NAMED:
        return f"{{ {name} }}"
    return name


def build_statement(
    name: str | None, module_path: str, kind: str, style: ImportStyle, syntax: str = ImportSyntax.IMPORT
) -> str:
    """
    Build one import statement without a trailing line ending.

    Examples (single quotes, semicolons):
        import format from './utils/format';
        import * as fs from 'fs';
        import './polyfills';
        const path = require('path');
        require('./setup');
    """
    quoted = f"{style.quote}{module_path}{style.quote}"
    end = ";" if style.semicolon else ""

    if kind == ImportKind.SIDE_EFFECT or not name:
        if syntax == ImportSyntax.IMPORT:
            return f"import {quoted}{end}"
        return f"require({quoted}){end}"

    if syntax == ImportSyntax.IMPORT:
        return f"import {build_clause(name, kind)} from {quoted}{end}"

    if syntax == ImportSyntax.REQUIRE_CALL:
        return f"require({quoted}){end}"

    if kind == ImportKind.NAMED:
        return f"const {{ {name} }} = require({quoted}){end}"
    return f"const {name} = require({quoted}){end}"


def _line_start(text: str, offset: int) -> int:
    return text.rfind("\n", 0, offset) + 1


def _next_line_start(text: str, offset: int) -> int:
    newline = text.find("\n", offset)
    return len(text) if newline == -1 else newline + 1


def _top_offset(text: str) -> int:
    # Keep a shebang line first
    if text.startswith("#!"):
        return _next_line_start(text, 0)
    return 0


def insertion_point(
    text: str, records: list[ImportRecord], insert_at: str, cursor_offset: int | None = None
) -> tuple[int, bool]:
    """
    Offset where a new statement goes for an anchor.

    Returns:
        (offset, needs_leading_eol) where needs_leading_eol is True when the
        offset sits at the end of a line that has no line break yet
    """
    if insert_at == InsertAt.AT_CURSOR and cursor_offset is not None:
        return min(max(cursor_offset, 0), len(text)), False

    if insert_at == InsertAt.BOTTOM:
        return len(text), bool(text) and not text.endswith("\n")

    if insert_at == InsertAt.AFTER_LAST_IMPORT and records:
        last_end = max(record.range.end_offset for record in records)
        offset = _next_line_start(text, last_end)
        return offset, offset == len(text) and not text.endswith("\n")

    if insert_at in (InsertAt.BEFORE_FIRST_IMPORT, InsertAt.AFTER_LAST_IMPORT) and records:
        first_start = min(record.range.start_offset for record in records)
        return _line_start(text, first_start), False

    offset = _top_offset(text)
    return offset, offset == len(text) and bool(text) and not text.endswith("\n")


def _evidence_from_tree(tree: SyntaxTree | None) -> tuple[list[str], list[bool]]:
    quotes = []
    semicolons = []
    for record in list_imports(tree):
        statement = tree.text[record.range.start_offset : record.range.end_offset]
        index = statement.find(record.module_path)
        if index > 0 and statement[index - 1] in "'\"":
            quotes.append(statement[index - 1])
        if record.syntax != ImportSyntax.REQUIRE_CALL or statement.rstrip().endswith(";"):
            semicolons.append(statement.rstrip().endswith(";"))
    return quotes, semicolons


def _read_directory_evidence(directory: str, exclude: str) -> tuple[list[str], list[bool]]:
    quotes = []
    semicolons = []
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return quotes, semicolons

    for entry in entries:
        extension = os.path.splitext(entry.name)[1][1:]
        if extension.lower() not in SCRIPT_EXTENSIONS or entry.path == exclude or not entry.is_file():
            continue
        try:
            with open(entry.path, encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping {entry.path}: {e}")
            continue
        file_quotes, file_semicolons = _evidence_from_tree(parse(content, extension))
        quotes.extend(file_quotes)
        semicolons.extend(file_semicolons)

    return quotes, semicolons


def _majority(values: list) -> object:
    return Counter(values).most_common(1)[0][0]


async def resolve_style(
    document_text: str,
    document_path: str,
    dialect: str,
    quotes: str = QuoteStyle.AUTO,
    semicolons: str = SemicolonStyle.AUTO,
    indent: str = "\t",
    root_path: str | None = None,
    token: CancellationToken | None = None,
) -> ImportStyle:
    """
    Work out quote, semicolon and line-ending style for a destination buffer.

    Auto settings look at the buffer first, then at script files in the
    buffer's directory and its ancestors (up to root_path), settling each
    setting at the first directory that yields evidence for it. Without any
    evidence the result is single quotes with semicolons.
    """
    style = ImportStyle(eol=detect_eol(document_text), indent=indent)
    quote = {QuoteStyle.SINGLE: "'", QuoteStyle.DOUBLE: '"'}.get(quotes)
    semicolon = {SemicolonStyle.ALWAYS: True, SemicolonStyle.NEVER: False}.get(semicolons)

    if quote is None or semicolon is None:
        tree = parse(document_text, dialect) if is_supported(dialect) else None
        found_quotes, found_semicolons = _evidence_from_tree(tree)
        if quote is None and found_quotes:
            quote = _majority(found_quotes)
        if semicolon is None and found_semicolons:
            semicolon = _majority(found_semicolons)

    directory = os.path.dirname(os.path.abspath(document_path))
    root = os.path.abspath(root_path) if root_path else None
    while quote is None or semicolon is None:
        if token is not None and token.is_cancelled:
            break

        found_quotes, found_semicolons = await asyncio.to_thread(
            _read_directory_evidence, directory, os.path.abspath(document_path)
        )
        if quote is None and found_quotes:
            quote = _majority(found_quotes)
        if semicolon is None and found_semicolons:
            semicolon = _majority(found_semicolons)

        parent = os.path.dirname(directory)
        if directory == root or parent == directory:
            break
        if root is not None and os.path.commonpath([root, parent]) != root:
            break
        directory = parent

    style.quote = quote if quote is not None else "'"
    style.semicolon = semicolon if semicolon is not None else True
    return style
