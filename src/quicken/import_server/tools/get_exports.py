"""Report the identifiers a file effectively exports, with provenance."""

import asyncio
import logging

from ..models.import_models import (
    AnalysisError,
    ExportedIdentifier,
    GetExportedIdentifiersResponse,
    InvalidateCacheResponse,
)
from .path_model import describe
from .project import ImportProject, open_project
from .syntax_index import is_supported

logger = logging.getLogger(__name__)


async def get_exported_identifiers_async(
    file_path: str, project: ImportProject | None = None
) -> GetExportedIdentifiersResponse:
    project = project or open_project()
    target = describe(project.resolve_file(file_path))

    if not is_supported(target.extension):
        return GetExportedIdentifiersResponse(
            file_path=target.full_path,
            identifiers=[],
            total=0,
            errors=[
                AnalysisError(
                    code="UNSUPPORTED",
                    message=f"Cannot read exports of .{target.extension} files",
                    file=target.full_path,
                )
            ],
        )

    record = await project.resolver.resolve_exports(target.full_path)
    identifiers = [
        ExportedIdentifier(name=name, text=entry.text, path_list=list(entry.path_list))
        for name, entry in record.items()
    ]
    return GetExportedIdentifiersResponse(
        file_path=target.full_path, identifiers=identifiers, total=len(identifiers), errors=[]
    )


def get_exported_identifiers_impl(file_path: str, project_root: str | None = None) -> GetExportedIdentifiersResponse:
    """
    Resolve the export record of a JavaScript or TypeScript file.

    Re-exports and transit imports are followed across relative imports.
    Files caught in an import cycle do not see each other's exports.

    Args:
        file_path: File to inspect
        project_root: Project root, defaults to MCP_FILE_ROOT

    Returns:
        GetExportedIdentifiersResponse in source order
    """
    return asyncio.run(get_exported_identifiers_async(file_path, open_project(project_root)))


def invalidate_export_cache_impl(
    file_paths: list[str] | None = None, project_root: str | None = None
) -> InvalidateCacheResponse:
    """
    Forget cached export records after files changed on disk.

    Args:
        file_paths: Changed files; None forgets everything
        project_root: Root that relative paths are resolved against

    Returns:
        InvalidateCacheResponse with dropped and remaining record counts
    """
    project = open_project(project_root)
    paths = None
    if file_paths is not None:
        paths = [project.resolve_file(path, must_exist=False) for path in file_paths]

    invalidated = project.session.invalidate(paths)
    return InvalidateCacheResponse(invalidated=invalidated, remaining=len(project.session.export_cache.records))
