"""
Import synthesis response models for FastMCP integration.

These dataclasses describe the values passed between the import engine's
components and the typed responses returned by the import server tools.
"""

from dataclasses import dataclass, field


class ImportKind:
    """Clause shape of an import statement."""

    NAMESPACE = "namespace"  # import * as X from '...'
    DEFAULT = "default"  # import X from '...'
    NAMED = "named"  # import { X } from '...'
    SIDE_EFFECT = "side_effect"  # import '...' or bare require('...')


class ImportSyntax:
    """Statement family an import was written with."""

    IMPORT = "import"  # ES module declaration
    REQUIRE = "require"  # const x = require('...')
    REQUIRE_CALL = "require_call"  # require('...')


class MergeAction:
    """Outcome of planning a new import against existing ones."""

    NEW = "NEW"
    MERGE_INTO_EXISTING = "MERGE_INTO_EXISTING"
    REJECT_DUPLICATE = "REJECT_DUPLICATE"


class InsertAt:
    """Anchors where brand-new statement text may be inserted."""

    TOP = "top"
    BOTTOM = "bottom"
    BEFORE_FIRST_IMPORT = "beforeFirstImport"
    AFTER_LAST_IMPORT = "afterLastImport"
    AT_CURSOR = "atCursor"

    ALL = (TOP, BOTTOM, BEFORE_FIRST_IMPORT, AFTER_LAST_IMPORT, AT_CURSOR)


@dataclass
class AnalysisError:
    """Standard error information for import operations."""

    code: str  # Error code like "PARSE_ERROR", "NOT_FOUND", etc.
    message: str  # Human-readable error message
    file: str | None = None  # File path where error occurred
    line: int | None = None  # Line number where error occurred


@dataclass
class SourceRange:
    """Character range of a statement in a buffer."""

    start_offset: int  # 0-based character offset
    end_offset: int
    start_line: int  # 0-based line
    start_column: int  # 0-based column
    end_line: int
    end_column: int


@dataclass
class TextEdit:
    """A single replacement in a buffer; insertions have equal offsets."""

    start_offset: int
    end_offset: int
    new_text: str
    line: int = 0  # 0-based line of start_offset
    column: int = 0  # 0-based column of start_offset

    def apply(self, text: str) -> str:
        return text[: self.start_offset] + self.new_text + text[self.end_offset :]


@dataclass
class ImportRecord:
    """An import or require statement found at the top level of a file."""

    module_path: str  # Specifier as written, one trailing "/" removed
    syntax: str  # ImportSyntax value
    clause: str  # ImportKind value describing the clause shape
    range: SourceRange
    default_name: str | None = None
    namespace_name: str | None = None
    named_names: list[str] = field(default_factory=list)  # Imported (not local) names
    type_only: bool = False  # TypeScript `import type ...`
    # Offsets used to build in-place edits
    clause_start: int | None = None  # First character of the import clause
    default_end: int | None = None  # End of the default binding identifier
    brace_open: int | None = None  # Offset of "{" in a named clause
    brace_close: int | None = None  # Offset of "}" in a named clause
    last_named_end: int | None = None  # End of the last import specifier


@dataclass
class MergePlan:
    """Decision for inserting one import into a destination file."""

    action: str  # MergeAction value
    detail: str  # Human-readable explanation
    edit: TextEdit | None = None  # In-place change for MERGE_INTO_EXISTING
    statement: str | None = None  # Full statement text for NEW, without line ending
    statement_range: SourceRange | None = None  # Existing statement involved
    covering_names: list[str] = field(default_factory=list)  # Bindings already covering the module


@dataclass
class ExportedIdentifier:
    """One entry of a file's export record."""

    name: str
    text: str | None  # Defining snippet, or None when only the name is known
    path_list: list[str]  # Provenance chain, nearest file first


@dataclass
class GetExportedIdentifiersResponse:
    """Response for get_exported_identifiers tool."""

    file_path: str
    identifiers: list[ExportedIdentifier]
    total: int
    errors: list[AnalysisError]


@dataclass
class ImportCandidate:
    """A file or package that can be imported into the active document."""

    kind: str  # "file", "node" or "text"
    label: str  # Display name (directory name for index files)
    description: str  # Directory relative to root, package version, or text snippet
    path: str  # Absolute file path, package name or text rule name
    module_path: str  # Specifier that would be written, empty for texts
    sort_path: str  # Rank bucket string
    sort_name: str  # Secondary ordering key
    recent: bool = False  # Selected recently in a document of the same language


@dataclass
class ListImportCandidatesResponse:
    """Response for list_import_candidates tool."""

    candidates: list[ImportCandidate]
    total: int
    errors: list[AnalysisError]


@dataclass
class AddImportResponse:
    """Response for add_import tool."""

    action: str  # MergeAction value, or "NEEDS_SELECTION"
    file_path: str
    module_path: str | None = None
    name: str | None = None
    kind: str | None = None  # ImportKind value actually used
    detail: str = ""
    edit: TextEdit | None = None
    new_content: str | None = None  # Destination text after the edit
    statement_range: SourceRange | None = None  # Focus location for REJECT
    options: list[str] = field(default_factory=list)  # Identifier choices when a selection is needed
    applied: bool = False  # Whether the destination file was written
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class InsertTextResponse:
    """Response for insert_text tool."""

    file_path: str
    name: str  # Text rule name
    text: str = ""  # Rendered text with tab stop defaults filled in
    snippet: str = ""  # Editor snippet form with ${n:value} tab stops
    edit: TextEdit | None = None
    new_content: str | None = None
    applied: bool = False
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class BrokenImport:
    """A relative import whose target no longer exists."""

    module_path: str
    line: int  # 0-based line of the statement
    status: str  # "fixed", "ambiguous" or "not_found"
    replacement: str | None = None
    candidates: list[str] = field(default_factory=list)


@dataclass
class FixBrokenImportsResponse:
    """Response for fix_broken_imports tool."""

    file_path: str
    imports: list[BrokenImport]
    fixed: int
    ambiguous: int
    not_found: int
    new_content: str | None = None
    applied: bool = False
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class InvalidateCacheResponse:
    """Response for invalidate_export_cache tool."""

    invalidated: int
    remaining: int
