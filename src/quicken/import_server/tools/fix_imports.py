"""
Repair relative imports that point at files which moved.

Each broken specifier is searched for by file name across the project. A
rewrite happens only when the search ends with exactly one file; otherwise
the import is reported as ambiguous or not found and left alone.
"""

import asyncio
import logging

from ..models.import_models import (
    AnalysisError,
    BrokenImport,
    FixBrokenImportsResponse,
    ImportRecord,
    TextEdit,
)
from .fuzzy_matcher import find_files_roughly, is_broken, rewrite_module_path
from .import_analyzer import list_imports
from .path_model import describe
from .project import ImportProject, open_project
from .session_state import CancellationToken
from .syntax_index import is_supported, make_range, parse

logger = logging.getLogger(__name__)


class FixStatus:
    FIXED = "fixed"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


def _specifier_edit(text: str, record: ImportRecord, replacement: str) -> TextEdit | None:
    """Edit replacing the specifier inside the record's string literal."""
    statement = text[record.range.start_offset : record.range.end_offset]
    for quote in ("'", '"', "`"):
        index = statement.find(quote + record.module_path)
        if index == -1:
            continue
        start = record.range.start_offset + index + 1
        end = text.find(quote, start)
        if end == -1:
            continue
        position = make_range(text, start, start)
        return TextEdit(
            start_offset=start,
            end_offset=end,
            new_text=replacement,
            line=position.start_line,
            column=position.start_column,
        )
    return None


async def fix_broken_imports_async(
    file_path: str,
    write: bool = False,
    project: ImportProject | None = None,
    token: CancellationToken | None = None,
) -> FixBrokenImportsResponse:
    project = project or open_project()
    document = describe(project.resolve_file(file_path))
    text = await project.read_document(document.full_path)

    response = FixBrokenImportsResponse(
        file_path=document.full_path, imports=[], fixed=0, ambiguous=0, not_found=0
    )

    tree = parse(text, document.extension) if is_supported(document.extension) else None
    if tree is None:
        response.errors.append(
            AnalysisError(code="PARSE_ERROR", message="File could not be parsed", file=document.full_path)
        )
        return response

    edits = []
    for record in list_imports(tree):
        if token is not None and token.is_cancelled:
            break
        if not await is_broken(record.module_path, document.full_path, document.extension):
            continue

        matches = [
            path
            for path in await find_files_roughly(record.module_path, project.workspace, document.extension, token)
            if path != document.full_path
        ]
        broken = BrokenImport(module_path=record.module_path, line=record.range.start_line, status=FixStatus.NOT_FOUND)
        response.imports.append(broken)

        if not matches:
            response.not_found += 1
            logger.debug(f"No candidate for broken import '{record.module_path}' in {document.full_path}")
            continue

        if len(matches) > 1:
            broken.status = FixStatus.AMBIGUOUS
            broken.candidates = [project.workspace.relative(path) for path in matches]
            response.ambiguous += 1
            continue

        replacement = rewrite_module_path(record.module_path, document.full_path, matches[0])
        edit = _specifier_edit(text, record, replacement)
        if edit is None:
            response.errors.append(
                AnalysisError(
                    code="EDIT_ERROR",
                    message=f"Cannot locate specifier '{record.module_path}'",
                    file=document.full_path,
                    line=record.range.start_line + 1,
                )
            )
            continue

        broken.status = FixStatus.FIXED
        broken.replacement = replacement
        broken.candidates = [project.workspace.relative(matches[0])]
        response.fixed += 1
        edits.append(edit)

    if edits:
        new_content = text
        for edit in sorted(edits, key=lambda edit: edit.start_offset, reverse=True):
            new_content = edit.apply(new_content)
        response.new_content = new_content
        if write:
            await asyncio.to_thread(project.write_document, document.full_path, new_content)
            response.applied = True

    logger.info(
        f"Broken imports in {document.full_path}: {response.fixed} fixed, "
        f"{response.ambiguous} ambiguous, {response.not_found} not found"
    )
    return response


def fix_broken_imports_impl(
    file_path: str, write: bool = False, project_root: str | None = None
) -> FixBrokenImportsResponse:
    """
    Find relative imports whose targets are gone and point them at the moved files.

    Args:
        file_path: Document whose imports are checked
        write: Save the repaired document
        project_root: Project root, defaults to MCP_FILE_ROOT

    Returns:
        FixBrokenImportsResponse with one entry per broken import
    """
    return asyncio.run(fix_broken_imports_async(file_path, write=write, project=open_project(project_root)))
