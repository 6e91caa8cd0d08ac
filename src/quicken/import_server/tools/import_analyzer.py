"""Extraction of existing import and require statements from a destination file."""

from typing import Any

from ..models.import_models import ImportKind, ImportRecord, ImportSyntax
from .syntax_index import SyntaxTree, first_child_of_type, require_call_source, string_value


def normalize_module_path(module_path: str) -> str:
    """Drop a single trailing slash so "./lib/" and "./lib" compare equal."""
    if len(module_path) > 1 and module_path.endswith("/"):
        return module_path[:-1]
    return module_path


def list_imports(tree: SyntaxTree | None) -> list[ImportRecord]:
    """
    List import/require statements found at the top level of a program.

    Recognized shapes:
    - import declarations (including side-effect imports and TS `import x = require()`);
      `import type` declarations are flagged type_only
    - variable declarations assigned from require(), plain or destructured
    - bare require() call statements

    Args:
        tree: Parsed destination file, or None

    Returns:
        ImportRecords in source order; empty when there is no tree
    """
    if tree is None:
        return []

    records = []
    for node in tree.top_level():
        if node.type == "import_statement":
            record = _read_import_statement(tree, node)
            if record is not None:
                records.append(record)

        elif node.type in ("lexical_declaration", "variable_declaration"):
            records.extend(_read_require_declaration(tree, node))

        elif node.type == "expression_statement":
            expression = node.named_children[0] if node.named_children else None
            module_path = require_call_source(tree, expression)
            if module_path is not None:
                records.append(
                    ImportRecord(
                        module_path=normalize_module_path(module_path),
                        syntax=ImportSyntax.REQUIRE_CALL,
                        clause=ImportKind.SIDE_EFFECT,
                        range=tree.source_range(node),
                    )
                )

    return records


def _read_import_statement(tree: SyntaxTree, node: Any) -> ImportRecord | None:
    require_clause = first_child_of_type(node, "import_require_clause")
    if require_clause is not None:
        source = require_clause.child_by_field_name("source") or first_child_of_type(require_clause, "string")
        name = first_child_of_type(require_clause, "identifier")
        if source is None:
            return None
        return ImportRecord(
            module_path=normalize_module_path(string_value(tree, source)),
            syntax=ImportSyntax.REQUIRE,
            clause=ImportKind.DEFAULT,
            range=tree.source_range(node),
            default_name=tree.node_text(name) if name is not None else None,
        )

    source = node.child_by_field_name("source")
    if source is None:
        return None

    record = ImportRecord(
        module_path=normalize_module_path(string_value(tree, source)),
        syntax=ImportSyntax.IMPORT,
        clause=ImportKind.SIDE_EFFECT,
        range=tree.source_range(node),
        type_only=any(child.type in ("type", "typeof") for child in node.children),
    )

    clause = first_child_of_type(node, "import_clause")
    if clause is None:
        return record

    record.clause_start = tree.start(clause)
    for child in clause.named_children:
        if child.type == "identifier":
            record.default_name = tree.node_text(child)
            record.default_end = tree.end(child)

        elif child.type == "namespace_import":
            alias = first_child_of_type(child, "identifier")
            record.namespace_name = tree.node_text(alias) if alias is not None else None

        elif child.type == "named_imports":
            record.brace_open = tree.start(child)
            record.brace_close = tree.end(child) - 1
            for specifier in child.named_children:
                if specifier.type != "import_specifier":
                    continue
                name = specifier.child_by_field_name("name")
                if name is not None:
                    record.named_names.append(string_value(tree, name))
                record.last_named_end = tree.end(specifier)

    if record.namespace_name is not None:
        record.clause = ImportKind.NAMESPACE
    elif record.brace_open is not None:
        record.clause = ImportKind.NAMED
    elif record.default_name is not None:
        record.clause = ImportKind.DEFAULT

    return record


def _read_require_declaration(tree: SyntaxTree, node: Any) -> list[ImportRecord]:
    records = []
    for declarator in node.named_children:
        if declarator.type != "variable_declarator":
            continue

        module_path = require_call_source(tree, declarator.child_by_field_name("value"))
        name = declarator.child_by_field_name("name")
        if module_path is None or name is None:
            continue

        record = ImportRecord(
            module_path=normalize_module_path(module_path),
            syntax=ImportSyntax.REQUIRE,
            clause=ImportKind.DEFAULT,
            range=tree.source_range(node),
        )
        if name.type == "object_pattern":
            record.clause = ImportKind.NAMED
            record.named_names = _pattern_keys(tree, name)
        else:
            record.default_name = tree.node_text(name)
        records.append(record)

    return records


def _pattern_keys(tree: SyntaxTree, pattern: Any) -> list[str]:
    names = []
    for child in pattern.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            names.append(tree.node_text(child))
        elif child.type == "pair_pattern":
            key = child.child_by_field_name("key")
            if key is not None:
                names.append(string_value(tree, key))
        elif child.type == "object_assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None:
                names.append(tree.node_text(left))
    return names
