"""
Insert an import of a file or package into a destination document.

The destination buffer is only ever changed through the single TextEdit
returned in the response; with write=True that edit is also saved to disk.
"""

import asyncio
import logging
import os

from ..models.import_models import (
    AddImportResponse,
    AnalysisError,
    ImportKind,
    ImportRecord,
    ImportSyntax,
    InsertAt,
    MergeAction,
    TextEdit,
)
from .identifier_picker import NAMESPACE_OPTION, NEEDS_SELECTION, pick_identifier
from .import_analyzer import list_imports
from .import_merger import find_existing, plan
from .path_model import FileDescriptor, describe, module_path_for
from .project import (
    TYPESCRIPT_EXTENSIONS,
    ImportProject,
    file_template_context,
    mark_selected,
    node_template_context,
    open_project,
    package_binding_name,
    when_context,
)
from .rules import FileRule, NodeRule
from .session_state import CancellationToken
from .statement_builder import ImportStyle, insertion_point, resolve_style
from .syntax_index import is_supported, make_range, parse

logger = logging.getLogger(__name__)

SYNTAX_CHOICES = (ImportSyntax.IMPORT, ImportSyntax.REQUIRE)
KIND_CHOICES = (ImportKind.DEFAULT, ImportKind.NAMESPACE, ImportKind.NAMED, ImportKind.SIDE_EFFECT)


def offset_of(text: str, line: int, column: int) -> int:
    """Offset of a 0-based line and column, clamped to the end of that line."""
    offset = 0
    for _ in range(line):
        newline = text.find("\n", offset)
        if newline == -1:
            return len(text)
        offset = newline + 1
    line_end = text.find("\n", offset)
    line_end = len(text) if line_end == -1 else line_end
    return min(offset + max(column, 0), line_end)


def _insertion_edit(
    text: str, records: list[ImportRecord], statement: str, insert_at: str, style: ImportStyle, cursor: int | None
) -> TextEdit:
    offset, needs_leading_eol = insertion_point(text, records, insert_at, cursor)
    new_text = (style.eol if needs_leading_eol else "") + statement
    if not new_text.endswith(style.eol):
        new_text += style.eol
    position = make_range(text, offset, offset)
    return TextEdit(
        start_offset=offset,
        end_offset=offset,
        new_text=new_text,
        line=position.start_line,
        column=position.start_column,
    )


def _default_syntax(document: FileDescriptor, records: list[ImportRecord]) -> str:
    """Follow the destination: require() only when it already uses require() and never import."""
    if document.extension_is(*TYPESCRIPT_EXTENSIONS) or document.extension_is("mjs", "mts"):
        return ImportSyntax.IMPORT
    syntaxes = {record.syntax for record in records}
    if syntaxes and ImportSyntax.IMPORT not in syntaxes:
        return ImportSyntax.REQUIRE
    return ImportSyntax.IMPORT


def _selection_for(kind: str | None, name: str | None) -> str | None:
    if kind == ImportKind.NAMESPACE:
        return NAMESPACE_OPTION
    if kind == ImportKind.DEFAULT:
        return "default"
    if kind == ImportKind.NAMED:
        if not name:
            raise ValueError("A named import needs a name")
        return name
    return name


class _Destination:
    """The document being edited and everything derived from it once."""

    def __init__(self, document: FileDescriptor, text: str):
        self.document = document
        self.text = text
        tree = parse(text, document.extension) if is_supported(document.extension) else None
        self.records = list_imports(tree)


async def add_import_async(
    file_path: str,
    target: str,
    kind: str | None = None,
    name: str | None = None,
    syntax: str | None = None,
    quotes: str | None = None,
    semicolons: str | None = None,
    insert_at: str | None = None,
    cursor_line: int | None = None,
    cursor_column: int | None = None,
    write: bool = False,
    project: ImportProject | None = None,
    token: CancellationToken | None = None,
) -> AddImportResponse:
    """Coroutine behind add_import_impl; see there for the arguments."""
    project = project or open_project()

    if kind is not None and kind not in KIND_CHOICES:
        raise ValueError(f"kind must be one of {list(KIND_CHOICES)}, got {kind!r}")
    if syntax is not None and syntax not in SYNTAX_CHOICES:
        raise ValueError(f"syntax must be one of {list(SYNTAX_CHOICES)}, got {syntax!r}")
    if insert_at is not None and insert_at not in InsertAt.ALL:
        raise ValueError(f"insert_at must be one of {list(InsertAt.ALL)}, got {insert_at!r}")

    document = describe(project.resolve_file(file_path))
    destination = _Destination(document, await project.read_document(document.full_path))

    style = await resolve_style(
        destination.text,
        document.full_path,
        document.extension,
        quotes or project.config.quotes,
        semicolons or project.config.semicolons,
        project.config.indent_unit,
        project.root_path,
        token,
    )
    syntax = syntax or _default_syntax(document, destination.records)

    cursor = None
    if cursor_line is not None:
        cursor = offset_of(destination.text, cursor_line, cursor_column or 0)

    target_path = _as_project_file(project, target)
    if target_path is not None:
        response = await _add_file_import(
            project, destination, describe(target_path), kind, name, syntax, style, insert_at, cursor, token
        )
    else:
        response = await _add_package_import(
            project, destination, target, kind, name, syntax, style, insert_at, cursor
        )

    if response.action in (MergeAction.NEW, MergeAction.MERGE_INTO_EXISTING):
        if target_path is not None:
            mark_selected(project, document, "file", target_path)
        else:
            mark_selected(project, document, "node", target)

    if response.edit is not None:
        response.new_content = response.edit.apply(destination.text)
        if write:
            try:
                await asyncio.to_thread(project.write_document, document.full_path, response.new_content)
            except OSError as e:
                logger.error(f"Failed to add import to {file_path}: {e}")
                response.action = "ERROR"
                response.errors.append(AnalysisError(code="WRITE_ERROR", message=str(e), file=file_path))
                return response
            response.applied = True

    return response


def _as_project_file(project: ImportProject, target: str) -> str | None:
    """Absolute path when target names a project file, None when it names a package."""
    if not target:
        raise ValueError("Target cannot be empty")
    candidate = target if os.path.isabs(target) else os.path.join(project.root_path, target)
    if os.path.isfile(candidate):
        return project.resolve_file(target)
    if target.startswith((".", "/")) or os.path.isabs(target):
        raise ValueError(f"File not found: {target}")
    return None


def _first_applicable(rules: list[FileRule] | list[NodeRule], context: dict) -> FileRule | NodeRule | None:
    for rule in rules:
        if rule.applies_to(context):
            return rule
    return None


def _reject_response(document: FileDescriptor, record: ImportRecord, module_path: str) -> AddImportResponse:
    return AddImportResponse(
        action=MergeAction.REJECT_DUPLICATE,
        file_path=document.full_path,
        module_path=module_path,
        detail=f"'{module_path}' is already imported",
        statement_range=record.range,
    )


async def _add_file_import(
    project: ImportProject,
    destination: _Destination,
    target: FileDescriptor,
    kind: str | None,
    name: str | None,
    syntax: str,
    style: ImportStyle,
    insert_at: str | None,
    cursor: int | None,
    token: CancellationToken | None,
) -> AddImportResponse:
    document = destination.document
    if target == document:
        raise ValueError("Cannot import a file into itself")

    relative = project.workspace.relative(target.full_path)
    rule = _first_applicable(project.rules.file_rules_for(relative), when_context(project, document))
    if rule is None:
        raise ValueError(f"No import rule matches {relative}")
    insert_at = insert_at or rule.insert_at

    if rule.code is not None:
        module_path = module_path_for(target, document.directory_path, rule.omit_index_file, rule.omit_extension)
        existing = find_existing(destination.records, module_path)
        if existing is not None:
            return _reject_response(document, existing, module_path)

        record = {}
        if is_supported(target.extension):
            record = await project.resolver.resolve_exports(target.full_path, token)
        context = file_template_context(project, document, target, module_path, record)
        statement = rule.code.render(context, style.indent, style.eol)
        return AddImportResponse(
            action=MergeAction.NEW,
            file_path=document.full_path,
            module_path=module_path,
            detail=f"Rendered template of rule for {', '.join(rule.inclusions)}",
            edit=_insertion_edit(destination.text, destination.records, statement, insert_at, style, cursor),
        )

    if kind == ImportKind.SIDE_EFFECT:
        choice_kind, choice_name, choice_target = ImportKind.SIDE_EFFECT, None, target
    else:
        choice = await pick_identifier(
            target,
            project.resolver,
            _selection_for(kind, name),
            project.config.prefer_index_file,
            token,
            naming=project.naming,
        )
        if choice.kind == NEEDS_SELECTION:
            return AddImportResponse(
                action=NEEDS_SELECTION,
                file_path=document.full_path,
                module_path=module_path_for(
                    choice.target, document.directory_path, rule.omit_index_file, rule.omit_extension
                ),
                detail=f"{choice.target.file_name_with_extension} has several exports, pick one",
                options=choice.options,
            )
        choice_kind, choice_name, choice_target = choice.kind, choice.name, choice.target
        if name and choice_kind in (ImportKind.DEFAULT, ImportKind.NAMESPACE):
            choice_name = name

    module_path = module_path_for(choice_target, document.directory_path, rule.omit_index_file, rule.omit_extension)
    merge = plan(
        destination.records,
        choice_name,
        module_path,
        choice_kind,
        style,
        syntax,
        destination.text,
        group_imports=project.config.group_imports,
    )

    response = AddImportResponse(
        action=merge.action,
        file_path=document.full_path,
        module_path=module_path,
        name=choice_name,
        kind=choice_kind,
        detail=merge.detail,
        edit=merge.edit,
        statement_range=merge.statement_range,
    )
    if merge.action == MergeAction.NEW:
        response.edit = _insertion_edit(
            destination.text, destination.records, merge.statement, insert_at, style, cursor
        )
    elif merge.action == MergeAction.REJECT_DUPLICATE and merge.covering_names:
        response.options = merge.covering_names
    return response


async def _add_package_import(
    project: ImportProject,
    destination: _Destination,
    package_name: str,
    kind: str | None,
    name: str | None,
    syntax: str,
    style: ImportStyle,
    insert_at: str | None,
    cursor: int | None,
) -> AddImportResponse:
    document = destination.document
    rule = _first_applicable(project.rules.node_rules_for(package_name), when_context(project, document))
    if rule is None:
        raise ValueError(f"No import rule matches package {package_name}")
    insert_at = insert_at or rule.insert_at

    existing = find_existing(destination.records, package_name)
    if existing is not None:
        return _reject_response(document, existing, package_name)

    if rule.code is not None:
        versions = dict(await project.workspace.package_dependencies())
        context = node_template_context(project, document, package_name, versions.get(package_name))
        statement = rule.code.render(context, style.indent, style.eol)
        return AddImportResponse(
            action=MergeAction.NEW,
            file_path=document.full_path,
            module_path=package_name,
            detail=f"Rendered template of rule for {rule.name}",
            edit=_insertion_edit(destination.text, destination.records, statement, insert_at, style, cursor),
        )

    if kind is None:
        kind = ImportKind.DEFAULT
        if document.extension_is(*TYPESCRIPT_EXTENSIONS) and syntax == ImportSyntax.IMPORT:
            if not await project.workspace.compiler_option(document.full_path, "esModuleInterop"):
                kind = ImportKind.NAMESPACE
    if kind == ImportKind.NAMED and not name:
        raise ValueError("A named import needs a name")
    binding = None if kind == ImportKind.SIDE_EFFECT else name or package_binding_name(package_name, project.naming)

    merge = plan(destination.records, binding, package_name, kind, style, syntax, destination.text)
    response = AddImportResponse(
        action=merge.action,
        file_path=document.full_path,
        module_path=package_name,
        name=binding,
        kind=kind,
        detail=merge.detail,
        statement_range=merge.statement_range,
    )
    if merge.action == MergeAction.NEW:
        response.edit = _insertion_edit(
            destination.text, destination.records, merge.statement, insert_at, style, cursor
        )
    return response


def add_import_impl(
    file_path: str,
    target: str,
    kind: str | None = None,
    name: str | None = None,
    syntax: str | None = None,
    quotes: str | None = None,
    semicolons: str | None = None,
    insert_at: str | None = None,
    cursor_line: int | None = None,
    cursor_column: int | None = None,
    write: bool = False,
    project_root: str | None = None,
) -> AddImportResponse:
    """
    Add an import of a file or package to a document.

    Args:
        file_path: Destination document, relative to the project root or absolute
        target: File to import (path) or package name
        kind: "default", "namespace", "named" or "side_effect"; None picks one from the target's exports
        name: Exported name for named imports, or binding name override
        syntax: "import" or "require"; None follows the destination
        quotes: "single", "double" or "auto"; None uses the server configuration
        semicolons: "always", "never" or "auto"; None uses the server configuration
        insert_at: Placement anchor for a new statement; None uses the matching rule's
        cursor_line: 0-based line for insert_at="atCursor"
        cursor_column: 0-based column for insert_at="atCursor"
        write: Save the edited document
        project_root: Project root, defaults to MCP_FILE_ROOT

    Returns:
        AddImportResponse with the planned edit, or the reason nothing was added
    """
    return asyncio.run(
        add_import_async(
            file_path,
            target,
            kind=kind,
            name=name,
            syntax=syntax,
            quotes=quotes,
            semicolons=semicolons,
            insert_at=insert_at,
            cursor_line=cursor_line,
            cursor_column=cursor_column,
            write=write,
            project=open_project(project_root),
        )
    )
