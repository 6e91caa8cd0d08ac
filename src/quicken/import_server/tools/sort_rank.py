"""Ordering of import candidates relative to the active document."""

from collections.abc import Callable
from typing import TypeVar

from .naming import split_words
from .path_model import FileDescriptor, relative_path

T = TypeVar("T")

# Rank bucket characters
OPEN_BUFFER = "a"
SAME_DIRECTORY = "b"


def _chunk_rank(chunks: list[str]) -> str:
    ranks = []
    for index, chunk in enumerate(chunks):
        last = index == len(chunks) - 1
        if chunk == ".":
            ranks.append("c")
        elif chunk == "..":
            ranks.append("f")
        elif last and index > 0 and chunks[index - 1] == "..":
            ranks.append("d")
        elif last:
            ranks.append("z")
        else:
            ranks.append("e")
    return "".join(ranks)


def _similarity_rank(candidate: FileDescriptor, document: FileDescriptor) -> str:
    """Two zero-padded counts: words missing from the shared start, then from the shared set."""
    active_words = split_words(document.file_name_without_extension)
    candidate_words = split_words(candidate.file_name_without_extension)
    total = len(active_words)

    start_count = 0
    while start_count < total and start_count < len(candidate_words):
        if active_words[start_count] != candidate_words[start_count]:
            break
        start_count += 1

    appearance_count = len(set(active_words) & set(candidate_words))
    width = max(1, len(str(total)))
    return str(total - start_count).zfill(width) + str(total - appearance_count).zfill(width)


def get_sortable_path(
    candidate: FileDescriptor, document: FileDescriptor, open_paths: set[str] | None = None
) -> str:
    """
    Rank string for a candidate file; lower sorts first.

    - "a" for files open in the editor
    - "b" plus similarity counts for files in the document's directory
    - otherwise one character per relative-path chunk: "." -> c, ".." -> f,
      a file right after ".." -> d, any other file -> z, directories -> e
    """
    if open_paths and candidate.full_path in open_paths:
        return OPEN_BUFFER

    if candidate.directory_posix_path == document.directory_posix_path:
        return SAME_DIRECTORY + _similarity_rank(candidate, document)

    return _chunk_rank(relative_path(document.directory_path, candidate.full_path).split("/"))


def get_sortable_name(candidate: FileDescriptor) -> str:
    """Secondary key: index files first, then by lower-cased file name."""
    if candidate.file_name_without_extension == "index":
        return "!"
    return candidate.file_name_with_extension.lower()


def promote_recent(items: list[T], recent_ids: list[str], item_id: Callable[[T], str]) -> list[T]:
    """
    Move recently selected items to the front, most recent first.

    Items that were never selected keep their relative order; ids of items
    that no longer exist are ignored.
    """
    if not recent_ids:
        return list(items)

    by_id = {}
    for item in items:
        by_id.setdefault(item_id(item), item)

    recent = [by_id[recent_id] for recent_id in recent_ids if recent_id in by_id]
    promoted = {id(item) for item in recent}
    return recent + [item for item in items if id(item) not in promoted]
