"""
Merging of a new import with the imports a destination file already has.

Only the first value statement for a module path is considered, so a file
never ends up with two value statements for the same literal specifier.
TypeScript `import type` statements are never extended; a value import of
the same module gets its own statement. Merge edits always keep a default
binding first, giving `import D, * as X` and `import D, { a }`.
"""

import logging

from ..models.import_models import ImportKind, ImportRecord, ImportSyntax, MergeAction, MergePlan, TextEdit
from .import_analyzer import normalize_module_path
from .statement_builder import ImportStyle, build_statement
from .syntax_index import make_range

logger = logging.getLogger(__name__)


def _edit(text: str, start: int, end: int, new_text: str) -> TextEdit:
    position = make_range(text, start, start)
    return TextEdit(
        start_offset=start,
        end_offset=end,
        new_text=new_text,
        line=position.start_line,
        column=position.start_column,
    )


def _reject(record: ImportRecord, detail: str, covering_names: list[str] | None = None) -> MergePlan:
    return MergePlan(
        action=MergeAction.REJECT_DUPLICATE,
        detail=detail,
        statement_range=record.range,
        covering_names=covering_names or [],
    )


def _merge(record: ImportRecord, detail: str, edit: TextEdit) -> MergePlan:
    return MergePlan(action=MergeAction.MERGE_INTO_EXISTING, detail=detail, edit=edit, statement_range=record.range)


def find_existing(existing: list[ImportRecord], module_path: str) -> ImportRecord | None:
    """First value statement importing module_path, preferring one an import clause can merge into."""
    wanted = normalize_module_path(module_path)
    matches = [record for record in existing if record.module_path == wanted and not record.type_only]
    for record in matches:
        if record.syntax == ImportSyntax.IMPORT and record.clause != ImportKind.SIDE_EFFECT:
            return record
    return matches[0] if matches else None


def _type_only_binding(existing: list[ImportRecord], module_path: str, name: str | None) -> ImportRecord | None:
    """A type-only import of module_path that already binds name."""
    if not name:
        return None
    wanted = normalize_module_path(module_path)
    for record in existing:
        if record.type_only and record.module_path == wanted:
            if name in (record.default_name, record.namespace_name) or name in record.named_names:
                return record
    return None


def plan(
    existing: list[ImportRecord],
    name: str | None,
    module_path: str,
    kind: str,
    style: ImportStyle | None = None,
    syntax: str = ImportSyntax.IMPORT,
    text: str = "",
    group_imports: bool = True,
) -> MergePlan:
    """
    Decide how a new import fits among the existing ones.

    Args:
        existing: Records from list_imports() for the destination
        name: Binding name (default/namespace) or imported name (named)
        module_path: Specifier of the new import
        kind: ImportKind value of the new import
        style: Formatting for a brand-new statement
        syntax: ImportSyntax value for a brand-new statement
        text: Destination text, used to give merge edits a line and column
        group_imports: Extend an existing statement; when False any existing
            import of module_path rejects

    Returns:
        MergePlan with action NEW, MERGE_INTO_EXISTING or REJECT_DUPLICATE
    """
    style = style or ImportStyle()

    type_record = _type_only_binding(existing, module_path, name)
    if type_record is not None:
        return _reject(type_record, f"{name} is already imported as a type from '{module_path}'")

    # Type-only statements never take value bindings
    record = find_existing(existing, module_path)

    if record is None:
        return MergePlan(
            action=MergeAction.NEW,
            detail=f"No existing import of '{module_path}'",
            statement=build_statement(name, module_path, kind, style, syntax),
        )

    logger.debug(f"Planning {kind} import of '{module_path}' against existing {record.clause} import")

    if not group_imports:
        return _reject(record, f"'{module_path}' is already imported")

    if record.syntax != ImportSyntax.IMPORT or syntax != ImportSyntax.IMPORT:
        return _reject(record, f"'{module_path}' is already required")

    if record.clause == ImportKind.SIDE_EFFECT or kind == ImportKind.SIDE_EFFECT:
        return _reject(record, f"'{module_path}' is already imported")

    if record.clause == ImportKind.NAMESPACE:
        return _plan_against_namespace(record, name, kind, text)

    if record.clause == ImportKind.NAMED:
        return _plan_against_named(record, name, kind, text)

    return _plan_against_default(record, name, kind, text)


def _plan_against_namespace(record: ImportRecord, name: str, kind: str, text: str) -> MergePlan:
    if kind != ImportKind.DEFAULT:
        return _reject(
            record,
            f"'{record.module_path}' is already imported as namespace {record.namespace_name}",
            [record.namespace_name] if record.namespace_name else [],
        )

    if record.default_name is not None:
        return _reject(record, f"'{record.module_path}' already has default import {record.default_name}")

    edit = _edit(text, record.clause_start, record.clause_start, f"{name}, ")
    return _merge(record, f"Added default import {name} to namespace import", edit)


def _plan_against_named(record: ImportRecord, name: str, kind: str, text: str) -> MergePlan:
    if kind == ImportKind.NAMESPACE:
        return _reject(
            record,
            f"'{record.module_path}' is already imported by name",
            list(record.named_names),
        )

    if kind == ImportKind.DEFAULT:
        if record.default_name is not None:
            return _reject(record, f"'{record.module_path}' already has default import {record.default_name}")
        edit = _edit(text, record.brace_open, record.brace_open, f"{name}, ")
        return _merge(record, f"Added default import {name} before named imports", edit)

    if name in record.named_names:
        return _reject(record, f"{name} is already imported from '{record.module_path}'")

    if record.last_named_end is None:
        edit = _edit(text, record.brace_open, record.brace_close + 1, f"{{ {name} }}")
    else:
        edit = _edit(text, record.last_named_end, record.last_named_end, f", {name}")
    return _merge(record, f"Added {name} to named imports", edit)


def _plan_against_default(record: ImportRecord, name: str, kind: str, text: str) -> MergePlan:
    if kind == ImportKind.DEFAULT:
        return _reject(record, f"'{record.module_path}' already has default import {record.default_name}")

    clause = f"* as {name}" if kind == ImportKind.NAMESPACE else f"{{ {name} }}"
    edit = _edit(text, record.default_end, record.default_end, f", {clause}")
    return _merge(record, f"Added {kind} import {name} after default import", edit)
