"""Relocation of relative imports whose target file has moved."""

import asyncio
import logging
import os
import posixpath

from .export_resolver import is_relative_specifier, resolve_file_path
from .path_model import describe, relative_path, to_posix_path, trailing_segments
from .session_state import CancellationToken
from .workspace import Workspace

logger = logging.getLogger(__name__)


def _directory_segments(file_path: str) -> list[str]:
    return to_posix_path(file_path).split("/")[:-1]


def narrow_by_trailing_segments(module_path: str, candidates: list[str]) -> list[str]:
    """
    Pick the one candidate whose parent directories end like the module path.

    Chains of 1, 2, 3, ... trailing directory names from the module path (with
    "." and ".." dropped) are compared with each candidate's directories. The
    first length that leaves exactly one candidate wins; otherwise all
    candidates are returned.
    """
    wanted = trailing_segments(posixpath.dirname(to_posix_path(module_path)))
    for count in range(1, len(wanted) + 1):
        refined = [path for path in candidates if _directory_segments(path)[-count:] == wanted[-count:]]
        if len(refined) == 1:
            return refined
    return candidates


async def find_files_roughly(
    module_path: str, workspace: Workspace, extension: str | None = None, token: CancellationToken | None = None
) -> list[str]:
    """
    Search the workspace for files that a broken module path probably meant.

    Args:
        module_path: Specifier as written, like "../helpers/foo"
        workspace: Files to search
        extension: Extension (no dot) to try when the specifier has none

    Returns:
        A single path when the search is conclusive, otherwise every match
    """
    file_name = posixpath.basename(to_posix_path(module_path).rstrip("/"))
    if not file_name or file_name in (".", ".."):
        return []

    patterns = ["**/" + file_name]
    if extension and not file_name.endswith("." + extension):
        patterns.append(f"**/{file_name}.{extension}")
        patterns.append(f"**/{file_name}/index.{extension}")

    if token is not None and token.is_cancelled:
        return []
    matches = await workspace.find_files(patterns)

    if len(matches) > 1:
        return narrow_by_trailing_segments(module_path, matches)
    return matches


async def is_broken(module_path: str, from_file: str, extension: str | None = None) -> bool:
    """Whether a relative specifier no longer points at an existing file."""
    if not is_relative_specifier(module_path):
        return False
    directory = os.path.dirname(os.path.abspath(from_file))
    return await asyncio.to_thread(resolve_file_path, directory, module_path, extension) is None


def rewrite_module_path(original: str, from_file: str, new_target: str) -> str:
    """
    Module path pointing at new_target, elided the same way as the original.

    An original without an extension yields one without an extension, and
    an original naming a directory yields one without "/index.<ext>".
    """
    target = describe(new_target)
    new_path = relative_path(os.path.dirname(os.path.abspath(from_file)), target.full_path)

    original_name = posixpath.basename(to_posix_path(original).rstrip("/"))
    if target.is_index_file and original_name != target.file_name_with_extension:
        if original_name != target.file_name_without_extension:
            return new_path[: -len(target.file_name_with_extension) - 1]

    if target.extension and not original_name.endswith("." + target.extension):
        return new_path[: -len(target.extension) - 1]

    return new_path
