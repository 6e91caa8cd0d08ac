"""
Cross-file export resolution.

For a file, compute which identifiers it effectively exports and where each
one comes from, following relative imports and re-exports transitively.

Cycle policy: a file that is already being resolved further up the call stack
resolves to an empty record that is not cached. Files in a cycle therefore do
not see each other's contributions; this is deliberate and keeps resolution
finite without depending on Python's recursion limit.
"""

import asyncio
import logging
import os
from typing import Any

from .path_model import describe
from .session_state import CancellationToken, ExportCache, ExportEntry, ExportRecord
from .syntax_index import (
    SyntaxTree,
    first_child_of_type,
    has_child_token,
    parse,
    require_call_source,
    string_value,
)

logger = logging.getLogger(__name__)

FALLBACK_EXTENSIONS = ["ts", "tsx", "js", "jsx", "mjs", "cjs"]

# Compiled output specifiers that point at TypeScript sources
TYPESCRIPT_COUNTERPARTS = {
    "js": ["ts", "tsx"],
    "jsx": ["tsx"],
    "mjs": ["mts"],
    "cjs": ["cts"],
}

NAMED_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "module",
    "internal_module",
    "function_signature",
}

VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


def extension_order(extension: str | None) -> list[str]:
    """Extensions to try: the importer's own first, then the fixed fallback order."""
    order = []
    for candidate in ([extension] if extension else []) + FALLBACK_EXTENSIONS:
        if candidate and candidate not in order:
            order.append(candidate)
    return order


def is_relative_specifier(specifier: str) -> bool:
    return specifier == "." or specifier == ".." or specifier.startswith(("./", "../"))


def resolve_file_path(base_directory: str, specifier: str, extension: str | None = None) -> str | None:
    """
    Find the file a module specifier refers to.

    Args:
        base_directory: Directory of the importing file
        specifier: Relative module path as written
        extension: Extension (no dot) of the importing file, tried first

    Returns:
        Absolute file path, or None when nothing on disk matches
    """
    path = os.path.normpath(os.path.join(base_directory, specifier))

    if os.path.isfile(path):
        return path

    if os.path.isdir(path):
        index_path = resolve_file_path(path, "index", extension)
        if index_path is not None:
            return index_path

    for candidate_extension in extension_order(extension):
        candidate = f"{path}.{candidate_extension}"
        if os.path.isfile(candidate):
            return candidate

    stem, dotted_extension = os.path.splitext(path)
    for counterpart in TYPESCRIPT_COUNTERPARTS.get(dotted_extension[1:].lower(), []):
        candidate = f"{stem}.{counterpart}"
        if os.path.isfile(candidate):
            return candidate

    return None


def read_text(file_path: str) -> str | None:
    try:
        with open(file_path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Cannot read {file_path}: {e}")
        return None


class _Cancelled(Exception):
    """Internal signal that a resolution stopped at a suspension point."""


class ExportGraphResolver:
    """Resolves export records using a shared ExportCache."""

    def __init__(self, cache: ExportCache):
        self.cache = cache

    async def resolve_exports(self, file_path: str, token: CancellationToken | None = None) -> ExportRecord:
        """
        Compute the export record of a file.

        Args:
            file_path: File to resolve
            token: Optional cancellation token; a cancelled call returns an
                empty record and commits nothing to the cache

        Returns:
            Mapping of exported name to ExportEntry
        """
        file_path = os.path.abspath(file_path)

        cached = self.cache.get(file_path)
        if cached is not None:
            return cached

        if file_path in self.cache.in_progress:
            logger.debug(f"Cycle detected at {file_path}, returning empty record")
            return {}

        self.cache.in_progress.add(file_path)
        try:
            record = await self._compute(file_path, token)
        except _Cancelled:
            logger.debug(f"Export resolution cancelled at {file_path}")
            return {}
        finally:
            self.cache.in_progress.discard(file_path)

        if record is None:
            return {}

        self.cache.commit(file_path, record)
        return self.cache.get(file_path)

    async def _compute(self, file_path: str, token: CancellationToken | None) -> ExportRecord | None:
        _check(token)
        text = await asyncio.to_thread(read_text, file_path)
        _check(token)
        if text is None:
            # Unreadable files are not cached so a later read can succeed
            return None

        descriptor = describe(file_path)
        tree = parse(text, descriptor.extension)
        if tree is None:
            return {}

        walker = _FileWalker(self, tree, file_path, descriptor.directory_path, descriptor.extension, token)
        return await walker.walk()


def _check(token: CancellationToken | None) -> None:
    if token is not None and token.is_cancelled:
        raise _Cancelled()


class _FileWalker:
    """Single source-order pass over one file's top-level statements."""

    def __init__(
        self,
        resolver: ExportGraphResolver,
        tree: SyntaxTree,
        file_path: str,
        directory: str,
        extension: str,
        token: CancellationToken | None,
    ):
        self.resolver = resolver
        self.tree = tree
        self.file_path = file_path
        self.directory = directory
        self.extension = extension
        self.token = token
        self.record: ExportRecord = {}
        self.imported: dict[str, ExportEntry] = {}  # Local binding -> provenance
        self.local: dict[str, str] = {}  # Locally declared name -> defining text

    async def walk(self) -> ExportRecord:
        statements = self.tree.top_level()
        for node in statements:
            self._collect_local_declarations(node)

        for node in statements:
            if node.type == "import_statement":
                await self._visit_import(node)
            elif node.type == "export_statement":
                await self._visit_export(node)
            elif node.type == "expression_statement":
                self._visit_assignment(node)
            elif node.type in VARIABLE_DECLARATIONS:
                await self._visit_require_declaration(node)

        return self.record

    # Helpers

    def _text(self, node: Any) -> str:
        return self.tree.node_text(node)

    def _own(self, text: str | None, *tail: str) -> ExportEntry:
        return ExportEntry(text=text, path_list=(self.file_path,) + tuple(tail))

    def _through(self, entry: ExportEntry) -> ExportEntry:
        if entry.path_list and entry.path_list[0] == self.file_path:
            return entry
        return ExportEntry(text=entry.text, path_list=(self.file_path,) + entry.path_list)

    async def _resolve_source(self, specifier: str) -> tuple[str | None, ExportRecord | None]:
        if not is_relative_specifier(specifier):
            return None, None

        _check(self.token)
        target = await asyncio.to_thread(resolve_file_path, self.directory, specifier, self.extension)
        _check(self.token)
        if target is None:
            logger.debug(f"Cannot resolve '{specifier}' from {self.file_path}")
            return None, None

        remote = await self.resolver.resolve_exports(target, self.token)
        _check(self.token)
        return target, remote

    def _placeholder(self, text: str, target: str | None) -> ExportEntry:
        return self._own(text, target) if target else self._own(text)

    # Local declarations

    def _collect_local_declarations(self, node: Any) -> None:
        declaration = node
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                return
        if declaration.type == "ambient_declaration":
            declaration = declaration.named_children[0] if declaration.named_children else None
            if declaration is None:
                return

        if declaration.type in NAMED_DECLARATIONS:
            name = declaration.child_by_field_name("name")
            if name is not None:
                self.local[self._text(name)] = self._text(declaration)
        elif declaration.type in VARIABLE_DECLARATIONS:
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                for name in self._binding_names(declarator.child_by_field_name("name")):
                    self.local[name] = self._text(declarator)

    def _binding_names(self, pattern: Any) -> list[str]:
        if pattern is None:
            return []
        if pattern.type == "identifier":
            return [self._text(pattern)]
        names = []
        for child in pattern.named_children:
            if child.type in ("identifier", "shorthand_property_identifier_pattern"):
                names.append(self._text(child))
            elif child.type == "pair_pattern":
                names.extend(self._binding_names(child.child_by_field_name("value")))
            elif child.type in ("object_assignment_pattern", "assignment_pattern"):
                names.extend(self._binding_names(child.child_by_field_name("left")))
            elif child.type in ("object_pattern", "array_pattern", "rest_pattern"):
                names.extend(self._binding_names(child))
        return names

    # Imports

    async def _visit_import(self, node: Any) -> None:
        statement_text = self._text(node)

        require_clause = first_child_of_type(node, "import_require_clause")
        if require_clause is not None:
            source = require_clause.child_by_field_name("source") or first_child_of_type(require_clause, "string")
            name = first_child_of_type(require_clause, "identifier")
            if source is None or name is None:
                return
            target, remote = await self._resolve_source(string_value(self.tree, source))
            self.imported[self._text(name)] = self._default_from(remote, statement_text, target)
            return

        source = node.child_by_field_name("source")
        clause = first_child_of_type(node, "import_clause")
        if source is None or clause is None:
            return

        target, remote = await self._resolve_source(string_value(self.tree, source))

        for child in clause.named_children:
            if child.type == "identifier":
                self.imported[self._text(child)] = self._default_from(remote, statement_text, target)

            elif child.type == "namespace_import":
                alias = first_child_of_type(child, "identifier")
                if alias is not None:
                    # Members reached through the namespace are not traced further
                    self.imported[self._text(alias)] = self._placeholder(statement_text, target)

            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    name_node = specifier.child_by_field_name("name")
                    alias_node = specifier.child_by_field_name("alias")
                    if name_node is None:
                        continue
                    name = string_value(self.tree, name_node)
                    local_name = self._text(alias_node) if alias_node is not None else name
                    remote_entry = remote.get(name) if remote else None
                    if remote_entry is not None:
                        self.imported[local_name] = self._through(remote_entry)
                    else:
                        self.imported[local_name] = self._placeholder(statement_text, target)

    def _default_from(self, remote: ExportRecord | None, statement_text: str, target: str | None) -> ExportEntry:
        remote_default = remote.get("default") if remote else None
        if remote_default is not None:
            return self._through(remote_default)
        return self._placeholder(statement_text, target)

    async def _visit_require_declaration(self, node: Any) -> None:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            specifier = require_call_source(self.tree, declarator.child_by_field_name("value"))
            name = declarator.child_by_field_name("name")
            if specifier is None or name is None:
                continue

            target, remote = await self._resolve_source(specifier)
            declarator_text = self._text(node)
            if name.type == "identifier":
                self.imported[self._text(name)] = self._default_from(remote, declarator_text, target)
            elif name.type == "object_pattern":
                for key, local_name in self._destructured_keys(name):
                    remote_entry = remote.get(key) if remote else None
                    if remote_entry is not None:
                        self.imported[local_name] = self._through(remote_entry)
                    else:
                        self.imported[local_name] = self._placeholder(declarator_text, target)

    def _destructured_keys(self, pattern: Any) -> list[tuple[str, str]]:
        pairs = []
        for child in pattern.named_children:
            if child.type == "shorthand_property_identifier_pattern":
                pairs.append((self._text(child), self._text(child)))
            elif child.type == "pair_pattern":
                key = child.child_by_field_name("key")
                value = child.child_by_field_name("value")
                if key is not None and value is not None and value.type == "identifier":
                    pairs.append((string_value(self.tree, key), self._text(value)))
        return pairs

    # Exports

    async def _visit_export(self, node: Any) -> None:
        statement_text = self._text(node)
        is_default = has_child_token(node, "default")

        source = node.child_by_field_name("source")
        if source is not None:
            await self._visit_export_from(node, string_value(self.tree, source), statement_text)
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._visit_exported_declaration(declaration, is_default)
            return

        export_clause = first_child_of_type(node, "export_clause")
        if export_clause is not None:
            for name, exported_name in self._export_specifiers(export_clause):
                self.record[exported_name] = self._local_entry(name)
            return

        if is_default or has_child_token(node, "="):
            value = node.child_by_field_name("value")
            if value is None:
                values = [child for child in node.named_children if child.type != "comment"]
                value = values[0] if values else None
            if value is not None:
                self._set_default(value)

    async def _visit_export_from(self, node: Any, specifier: str, statement_text: str) -> None:
        target, remote = await self._resolve_source(specifier)

        namespace_export = first_child_of_type(node, "namespace_export")
        if namespace_export is not None:
            alias = namespace_export.named_children[-1] if namespace_export.named_children else None
            if alias is not None:
                self.record[string_value(self.tree, alias)] = self._placeholder(statement_text, target)
            return

        export_clause = first_child_of_type(node, "export_clause")
        if export_clause is None:
            # export * from '...' never forwards the default export
            for name, entry in (remote or {}).items():
                if name != "default":
                    self.record[name] = self._through(entry)
            return

        for name, exported_name in self._export_specifiers(export_clause):
            remote_entry = remote.get(name) if remote else None
            if remote_entry is not None:
                self.record[exported_name] = self._through(remote_entry)
            else:
                self.record[exported_name] = self._placeholder(statement_text, target)

    def _export_specifiers(self, export_clause: Any) -> list[tuple[str, str]]:
        pairs = []
        for specifier in export_clause.named_children:
            if specifier.type != "export_specifier":
                continue
            name_node = specifier.child_by_field_name("name")
            alias_node = specifier.child_by_field_name("alias")
            if name_node is None:
                continue
            name = string_value(self.tree, name_node)
            exported_name = string_value(self.tree, alias_node) if alias_node is not None else name
            pairs.append((name, exported_name))
        return pairs

    def _local_entry(self, name: str) -> ExportEntry:
        if name in self.imported:
            return self.imported[name]
        return self._own(self.local.get(name))

    def _visit_exported_declaration(self, declaration: Any, is_default: bool) -> None:
        if declaration.type == "ambient_declaration":
            inner = [child for child in declaration.named_children if child.type != "comment"]
            if not inner:
                return
            declaration = inner[0]

        if declaration.type in VARIABLE_DECLARATIONS:
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                for name in self._binding_names(declarator.child_by_field_name("name")):
                    self.record[name] = self._own(self._text(declarator))
            return

        text = self._text(declaration)
        if is_default:
            self.record["default"] = self._own(text)
            return

        name = declaration.child_by_field_name("name")
        if name is not None:
            self.record[self._text(name)] = self._own(text)

    def _set_default(self, value: Any) -> None:
        if value.type == "identifier":
            self.record["default"] = self._local_entry(self._text(value))
            if self.record["default"].text is None:
                self.record["default"] = self._own(self._text(value))
        else:
            self.record["default"] = self._own(self._text(value))

    def _visit_assignment(self, node: Any) -> None:
        expression = node.named_children[0] if node.named_children else None
        if expression is None or expression.type != "assignment_expression":
            return

        left = expression.child_by_field_name("left")
        right = expression.child_by_field_name("right")
        if left is None or right is None or left.type != "member_expression":
            return

        target = self._text(left).replace(" ", "")
        if target == "module.exports":
            self._set_default(right)
            if right.type == "object":
                self._collect_object_exports(right)
            return

        owner = left.child_by_field_name("object")
        member = left.child_by_field_name("property")
        if owner is None or member is None:
            return
        if self._text(owner).replace(" ", "") in ("exports", "module.exports"):
            name = self._text(member)
            if right.type == "identifier" and self._text(right) in self.imported:
                self.record[name] = self.imported[self._text(right)]
            else:
                self.record[name] = self._own(self._text(right))

    def _collect_object_exports(self, obj: Any) -> None:
        for child in obj.named_children:
            if child.type == "shorthand_property_identifier":
                name = self._text(child)
                entry = self._local_entry(name)
                self.record[name] = entry if entry.text is not None else self._own(name)
            elif child.type == "pair":
                key = child.child_by_field_name("key")
                value = child.child_by_field_name("value")
                if key is None or value is None:
                    continue
                name = string_value(self.tree, key)
                if value.type == "identifier" and self._text(value) in self.imported:
                    self.record[name] = self.imported[self._text(value)]
                else:
                    self.record[name] = self._own(self._text(child))
            elif child.type == "method_definition":
                name = child.child_by_field_name("name")
                if name is not None:
                    self.record[self._text(name)] = self._own(self._text(child))
