"""Choice of the identifier and clause kind used to import a file."""

import asyncio
import logging
import os
from dataclasses import dataclass, field

from ..models.import_models import ImportKind
from .export_resolver import ExportGraphResolver, read_text
from .naming import NamingOptions, get_variable_name
from .path_model import FileDescriptor, describe
from .session_state import CancellationToken
from .syntax_index import is_supported, parse

logger = logging.getLogger(__name__)

NEEDS_SELECTION = "needs_selection"
NAMESPACE_OPTION = "*"

STYLESHEET_EXTENSIONS = ("css", "less", "scss", "sass", "styl")


@dataclass
class IdentifierChoice:
    """What to import from a target and through which file."""

    kind: str  # ImportKind value or NEEDS_SELECTION
    name: str | None  # Binding or exported name; None for side-effect imports
    target: FileDescriptor  # File the module path should point at
    options: list[str] = field(default_factory=list)  # Filled when a selection is needed


def binding_name_for(target: FileDescriptor, naming: NamingOptions | None = None) -> str:
    """Identifier derived from a file name, or its directory name for index files."""
    if target.is_index_file and target.directory_name:
        return get_variable_name(target.directory_name, naming)
    return get_variable_name(target.file_name_without_extension, naming)


async def _index_exports_for(
    target: FileDescriptor, resolver: ExportGraphResolver, token: CancellationToken | None
) -> tuple[FileDescriptor | None, list[str]]:
    """Names the directory's index file re-exports from target."""
    if target.is_index_file or not target.extension:
        return None, []

    index_path = os.path.join(target.directory_path, f"index.{target.extension}")
    if not await asyncio.to_thread(os.path.isfile, index_path):
        return None, []

    record = await resolver.resolve_exports(index_path, token)
    names = [
        name
        for name, entry in record.items()
        if name != "default" and target.full_path in entry.path_list[1:]
    ]
    return (describe(index_path), names) if names else (None, [])


async def pick_identifier(
    target: FileDescriptor,
    resolver: ExportGraphResolver,
    selection: str | None = None,
    prefer_index_file: bool = True,
    token: CancellationToken | None = None,
    naming: NamingOptions | None = None,
) -> IdentifierChoice:
    """
    Decide how a file should be imported.

    Args:
        target: File being imported
        resolver: Export resolver sharing the session cache
        selection: "*" for a namespace import, an exported name for a named
            import, or None to decide from the target's exports
        prefer_index_file: Import through the directory's index file when it
            re-exports names from target
        token: Cooperative cancellation, checked before each read
        naming: Naming convention for derived binding names

    Returns:
        IdentifierChoice; kind is NEEDS_SELECTION when the caller must pick one of options
    """
    if target.extension_is(*STYLESHEET_EXTENSIONS):
        return IdentifierChoice(kind=ImportKind.SIDE_EFFECT, name=None, target=target)

    if not is_supported(target.extension):
        return IdentifierChoice(kind=ImportKind.DEFAULT, name=binding_name_for(target, naming), target=target)

    if prefer_index_file and selection != NAMESPACE_OPTION:
        index_file, index_names = await _index_exports_for(target, resolver, token)
        if index_file is not None:
            if selection in index_names:
                return IdentifierChoice(kind=ImportKind.NAMED, name=selection, target=index_file)
            if selection is None and len(index_names) == 1:
                return IdentifierChoice(kind=ImportKind.NAMED, name=index_names[0], target=index_file)
            if selection is None:
                return IdentifierChoice(kind=NEEDS_SELECTION, name=None, target=index_file, options=index_names)

    if selection == NAMESPACE_OPTION:
        return IdentifierChoice(kind=ImportKind.NAMESPACE, name=binding_name_for(target, naming), target=target)
    if selection == "default":
        return IdentifierChoice(kind=ImportKind.DEFAULT, name=binding_name_for(target, naming), target=target)
    if selection:
        return IdentifierChoice(kind=ImportKind.NAMED, name=selection, target=target)

    text = await asyncio.to_thread(read_text, target.full_path)
    if text is None or parse(text, target.extension) is None:
        # No structural information: fall back to a default import
        return IdentifierChoice(kind=ImportKind.DEFAULT, name=binding_name_for(target, naming), target=target)

    record = await resolver.resolve_exports(target.full_path, token)
    if "default" in record:
        return IdentifierChoice(kind=ImportKind.DEFAULT, name=binding_name_for(target, naming), target=target)

    if record:
        return IdentifierChoice(
            kind=NEEDS_SELECTION, name=None, target=target, options=[NAMESPACE_OPTION] + list(record)
        )

    return IdentifierChoice(kind=ImportKind.NAMESPACE, name=binding_name_for(target, naming), target=target)
