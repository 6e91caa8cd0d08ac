"""
List files, packages and text snippets that can be inserted into a document, best match first.
"""

import asyncio
import logging
import posixpath

from ..models.import_models import ImportCandidate, ListImportCandidatesResponse
from .path_model import FileDescriptor, describe, module_path_for
from .project import JAVASCRIPT_EXTENSIONS, ImportProject, open_project, selection_id, when_context
from .sort_rank import get_sortable_name, get_sortable_path, promote_recent
from .syntax_index import language_id_for

logger = logging.getLogger(__name__)

# Packages sort after every file bucket, texts after packages
PACKAGE_RANK = "~"
TEXT_RANK = "~~"


def _label(candidate: FileDescriptor) -> str:
    if candidate.is_index_file and candidate.directory_name:
        return candidate.directory_name
    return candidate.file_name_with_extension


async def list_import_candidates_async(
    file_path: str,
    open_files: list[str] | None = None,
    include_packages: bool = True,
    limit: int | None = None,
    project: ImportProject | None = None,
    include_texts: bool = True,
) -> ListImportCandidatesResponse:
    """Coroutine behind list_import_candidates_impl."""
    if limit is not None and limit <= 0:
        raise ValueError("limit must be positive")

    project = project or open_project()
    document = describe(project.resolve_file(file_path))
    context = when_context(project, document)

    file_rules = [rule for rule in project.rules.files if rule.applies_to(context)]
    allow_javascript = await project.allows_javascript(document)
    open_paths = {project.resolve_file(path, must_exist=False) for path in open_files or []}

    candidates = []
    for path in await project.workspace.list_all():
        if path == document.full_path:
            continue
        relative = project.workspace.relative(path)
        rule = next((rule for rule in file_rules if rule.matches(relative)), None)
        if rule is None:
            continue

        candidate = describe(path)
        if not allow_javascript and candidate.extension_is(*JAVASCRIPT_EXTENSIONS):
            continue

        candidates.append(
            ImportCandidate(
                kind=rule.kind,
                label=_label(candidate),
                description=posixpath.dirname(relative),
                path=candidate.full_path,
                module_path=module_path_for(
                    candidate, document.directory_path, rule.omit_index_file, rule.omit_extension
                ),
                sort_path=get_sortable_path(candidate, document, open_paths),
                sort_name=get_sortable_name(candidate),
            )
        )

    candidates.sort(key=lambda candidate: (candidate.sort_path, candidate.sort_name))

    if include_packages:
        node_rules = [rule for rule in project.rules.nodes if rule.applies_to(context)]
        for package_name, version in await project.workspace.package_dependencies():
            rule = next((rule for rule in node_rules if rule.matches(package_name)), None)
            if rule is None:
                continue
            candidates.append(
                ImportCandidate(
                    kind=rule.kind,
                    label=package_name,
                    description=version,
                    path=package_name,
                    module_path=package_name,
                    sort_path=PACKAGE_RANK,
                    sort_name=package_name.lower(),
                )
            )

    if include_texts:
        for rule in project.rules.texts:
            if not rule.applies_to(context):
                continue
            candidates.append(
                ImportCandidate(
                    kind=rule.kind,
                    label=rule.name,
                    description=rule.code.source.split("\n", 1)[0],
                    path=rule.name,
                    module_path="",
                    sort_path=TEXT_RANK,
                    sort_name=rule.name.lower(),
                )
            )

    recent_ids = project.session.recent.get(language_id_for(document.extension))
    candidates = promote_recent(candidates, recent_ids, lambda candidate: selection_id(candidate.kind, candidate.path))
    for candidate in candidates[: len(recent_ids)]:
        candidate.recent = selection_id(candidate.kind, candidate.path) in recent_ids

    total = len(candidates)
    logger.debug(f"Found {total} import candidates for {document.full_path}")
    if limit is not None:
        candidates = candidates[:limit]

    return ListImportCandidatesResponse(candidates=candidates, total=total, errors=[])


def list_import_candidates_impl(
    file_path: str,
    open_files: list[str] | None = None,
    include_packages: bool = True,
    limit: int | None = None,
    project_root: str | None = None,
    include_texts: bool = True,
) -> ListImportCandidatesResponse:
    """
    List importable files, packages and text snippets ranked for a document.

    Args:
        file_path: Document the import would be added to
        open_files: Files open in the editor; they rank first
        include_packages: Append package.json dependencies matched by package rules
        limit: Maximum number of candidates returned (total counts all of them)
        project_root: Project root, defaults to MCP_FILE_ROOT
        include_texts: Append the text rules whose "when" holds for the document

    Returns:
        ListImportCandidatesResponse ordered by rank, recently selected items first
    """
    return asyncio.run(
        list_import_candidates_async(
            file_path,
            open_files=open_files,
            include_packages=include_packages,
            limit=limit,
            project=open_project(project_root),
            include_texts=include_texts,
        )
    )
