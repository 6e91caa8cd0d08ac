"""
Per-call view of a project shared by the import tool entry points.

An ImportProject bundles the rule set, the workspace listing, the session
caches and the formatting configuration. The template variable sets for
file rules, package rules and "when" predicates are built here too.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .._security import get_project_root, resolve_project_file
from ..config import ImportServerConfig, get_config
from .export_resolver import ExportGraphResolver, read_text
from .glob_matching import match_glob
from .identifier_picker import binding_name_for
from .naming import NamingOptions, get_proper_variable_name, get_variable_name
from .path_model import FileDescriptor, to_posix_path
from .rules import RuleSet, load_rules
from .session_state import ExportRecord, SessionState, get_session
from .syntax_index import language_id_for
from .workspace import Workspace

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSIONS = ("ts", "tsx", "mts", "cts")
JAVASCRIPT_EXTENSIONS = ("js", "jsx", "mjs", "cjs")


@dataclass
class ImportProject:
    """Rules, files and caches of one project root."""

    root_path: str
    rules: RuleSet
    workspace: Workspace
    session: SessionState
    config: ImportServerConfig

    @property
    def naming(self) -> NamingOptions:
        return NamingOptions(self.config.naming_convention, self.config.predefined_names)

    @property
    def resolver(self) -> ExportGraphResolver:
        return ExportGraphResolver(self.session.export_cache)

    def resolve_file(self, file_path: str, must_exist: bool = True) -> str:
        return resolve_project_file(file_path, self.root_path, must_exist)

    async def read_document(self, file_path: str) -> str:
        text = await asyncio.to_thread(read_text, file_path)
        if text is None:
            raise ValueError(f"Cannot read file: {file_path}")
        return text

    def write_document(self, file_path: str, text: str) -> None:
        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        self.session.invalidate([file_path])
        logger.info(f"Updated imports in {file_path}")

    async def allows_javascript(self, document: FileDescriptor) -> bool:
        """Whether a document may import JavaScript files; TypeScript needs allowJs."""
        if not document.extension_is(*TYPESCRIPT_EXTENSIONS):
            return True
        return await self.workspace.compiler_option(document.full_path, "allowJs")


def open_project(
    project_root: str | None = None,
    session: SessionState | None = None,
    config: ImportServerConfig | None = None,
) -> ImportProject:
    """
    Load the rules and workspace of a project root.

    Args:
        project_root: Root directory, defaults to MCP_FILE_ROOT
        session: Session caches, defaults to the process-wide session
        config: Server configuration, defaults to the global configuration

    Raises:
        ValueError: If the root is not a directory or its rule file is malformed
    """
    config = config or get_config()
    session = session or get_session()
    root_path = os.path.realpath(project_root or get_project_root())
    if not os.path.isdir(root_path):
        raise ValueError(f"Project root is not a directory: {root_path}")

    session.recent.limit = config.history
    if config.history_file and config.history_file != session.recent.storage_path:
        session.recent.load(config.history_file)

    return ImportProject(
        root_path=root_path,
        rules=load_rules(root_path, config.rules_file),
        workspace=Workspace(root_path, session=session, max_files=config.max_files),
        session=session,
        config=config,
    )


def package_binding_name(package_name: str, naming: NamingOptions | None = None) -> str:
    """Identifier for a package: "@scope/date-fns" -> "dateFns".

    A predefined name for the full package name wins over the last segment.
    """
    if naming is not None:
        predefined = naming.predefined(package_name)
        if predefined:
            return predefined
    return get_variable_name(package_name.split("/")[-1], naming)


def selection_id(kind: str, path: str) -> str:
    """Key of a file, package or text in the recent selection history."""
    return f"{kind}:{path}"


def mark_selected(project: ImportProject, document: FileDescriptor, kind: str, path: str) -> None:
    project.session.recent.mark_as_recently_used(language_id_for(document.extension), selection_id(kind, path))


def _module_name(derive: Callable[[], str]) -> str:
    """Binding name for a template; empty when the name has no identifier form."""
    try:
        return derive()
    except ValueError as e:
        logger.debug(f"No moduleName for template: {e}")
        return ""


def when_context(project: ImportProject, document: FileDescriptor) -> dict[str, Any]:
    """Variables visible to "when" predicates, describing the active document."""
    return {
        "rootPath": to_posix_path(project.root_path),
        "filePath": project.workspace.relative(document.full_path),
        "fileName": document.file_name_with_extension,
        "fileExtension": document.extension,
        "languageId": language_id_for(document.extension),
        "minimatch": lambda path, glob: match_glob(str(path), str(glob)),
    }


def _export_entry_value(name: str, record: ExportRecord) -> dict[str, Any] | None:
    entry = record.get(name)
    if entry is None:
        return None
    return {"name": name, "text": entry.text, "pathList": [to_posix_path(path) for path in entry.path_list]}


def file_template_context(
    project: ImportProject,
    document: FileDescriptor,
    target: FileDescriptor,
    module_path: str,
    record: ExportRecord,
) -> dict[str, Any]:
    """Variables visible to a file rule's code template."""
    return {
        "rootPath": to_posix_path(project.root_path),
        "fullPath": target.posix_path,
        "filePath": module_path,
        "fileName": target.file_name_without_extension,
        "fileExtension": target.extension,
        "directoryName": target.directory_name,
        "moduleName": _module_name(lambda: binding_name_for(target, project.naming)),
        "getProperVariableName": get_proper_variable_name,
        "getExportedIdentifiers": lambda: list(record),
        "findExport": lambda name: _export_entry_value(name, record),
        "hasDefaultExport": "default" in record,
        "activeFilePath": document.posix_path,
        "activeFileName": document.file_name_with_extension,
        "languageId": language_id_for(document.extension),
        "minimatch": lambda path, glob: match_glob(str(path), str(glob)),
    }


def node_template_context(
    project: ImportProject, document: FileDescriptor, package_name: str, package_version: str | None
) -> dict[str, Any]:
    """Variables visible to a package rule's code template."""
    return {
        "rootPath": to_posix_path(project.root_path),
        "packageName": package_name,
        "packageVersion": package_version,
        "moduleName": _module_name(lambda: package_binding_name(package_name, project.naming)),
        "getProperVariableName": get_proper_variable_name,
        "activeFilePath": document.posix_path,
        "languageId": language_id_for(document.extension),
    }


def text_template_context(project: ImportProject, document: FileDescriptor) -> dict[str, Any]:
    """Variables visible to a text rule's snippet, describing the active document."""
    context = when_context(project, document)
    context.update(
        {
            "activeFilePath": document.posix_path,
            "activeFileName": document.file_name_with_extension,
            "directoryName": document.directory_name,
            "moduleName": _module_name(lambda: binding_name_for(document, project.naming)),
            "getProperVariableName": get_proper_variable_name,
        }
    )
    return context
