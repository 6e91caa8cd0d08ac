"""
Canonical path facts for files taking part in import synthesis.

Every other component works from a FileDescriptor, so the rules for names,
extensions and POSIX forms live here and nowhere else.
"""

import os
import posixpath
import re
from dataclasses import dataclass, field

from .glob_matching import match_glob

DRIVE_LETTER = re.compile(r"^([A-Za-z]+):[\\/]")
INDEX_FILE = re.compile(r"^index\.\w+$", re.IGNORECASE)


def to_posix_path(path: str) -> str:
    """Convert an OS path to forward slashes; "C:\\a" becomes "/C/a"."""
    match = DRIVE_LETTER.match(path)
    if match:
        path = "/" + match.group(1) + "/" + path[match.end() :]
    return path.replace("\\", "/")


def _is_absolute(path: str) -> bool:
    return os.path.isabs(path) or DRIVE_LETTER.match(path) is not None


@dataclass(frozen=True)
class FileDescriptor:
    """Immutable description of one file; equal when the absolute paths are equal."""

    full_path: str
    posix_path: str = field(compare=False)
    file_name_with_extension: str = field(compare=False)
    file_name_without_extension: str = field(compare=False)
    extension: str = field(compare=False)  # No leading dot, original case
    directory_path: str = field(compare=False)
    directory_posix_path: str = field(compare=False)
    directory_name: str = field(compare=False)

    @property
    def is_index_file(self) -> bool:
        return INDEX_FILE.match(self.file_name_with_extension) is not None

    def extension_is(self, *extensions: str) -> bool:
        return self.extension.lower() in extensions


def describe(path: str) -> FileDescriptor:
    """Derive a FileDescriptor from a path string."""
    full_path = path if _is_absolute(path) else os.path.abspath(path)
    posix_path = to_posix_path(full_path)

    directory_posix_path, file_name = posixpath.split(posix_path)
    stem, dotted_extension = posixpath.splitext(file_name)

    # Drive conversion keeps the string length, so the native directory is a prefix slice
    directory_path = full_path[: len(directory_posix_path)] or full_path[:1]

    return FileDescriptor(
        full_path=full_path,
        posix_path=posix_path,
        file_name_with_extension=file_name,
        file_name_without_extension=stem,
        extension=dotted_extension[1:],
        directory_path=directory_path,
        directory_posix_path=directory_posix_path or "/",
        directory_name=posixpath.basename(directory_posix_path),
    )


def relative_path(from_directory: str, to_path: str) -> str:
    """Relative POSIX path from a directory to a path, always "./" or "../" prefixed."""
    result = posixpath.relpath(to_posix_path(to_path), to_posix_path(from_directory))
    if result == ".." or result.startswith("../"):
        return result
    if result == ".":
        return "."
    return "./" + result


def module_path_for(
    target: FileDescriptor,
    from_directory: str,
    omit_index_file: bool = False,
    omit_extension: bool | str = False,
) -> str:
    """Module specifier for importing target from a directory, with elision rules applied.

    Args:
        target: File being imported
        from_directory: Directory of the importing file
        omit_index_file: Drop a trailing "/index.<ext>"
        omit_extension: Drop ".<ext>"; a string is a glob matched against the extension
    """
    path = relative_path(from_directory, target.full_path)

    if omit_index_file and target.is_index_file:
        return path[: -len(target.file_name_with_extension) - 1]

    if target.extension and should_omit_extension(target.extension, omit_extension):
        return path[: -len(target.extension) - 1]

    return path


def should_omit_extension(extension: str, omit_extension: bool | str) -> bool:
    if omit_extension is True:
        return True
    if isinstance(omit_extension, str) and omit_extension:
        return match_glob(extension, omit_extension)
    return False


def trailing_segments(path: str) -> list[str]:
    """Path segments with "." and ".." removed."""
    return [segment for segment in to_posix_path(path).split("/") if segment not in ("", ".", "..")]
