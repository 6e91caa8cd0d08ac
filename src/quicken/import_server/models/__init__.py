"""Import server models."""

from .import_models import (
    AddImportResponse,
    AnalysisError,
    BrokenImport,
    ExportedIdentifier,
    FixBrokenImportsResponse,
    GetExportedIdentifiersResponse,
    ImportCandidate,
    ImportKind,
    ImportRecord,
    ImportSyntax,
    InsertAt,
    InvalidateCacheResponse,
    ListImportCandidatesResponse,
    MergeAction,
    MergePlan,
    SourceRange,
    TextEdit,
)

__all__ = [
    "AddImportResponse",
    "AnalysisError",
    "BrokenImport",
    "ExportedIdentifier",
    "FixBrokenImportsResponse",
    "GetExportedIdentifiersResponse",
    "ImportCandidate",
    "ImportKind",
    "ImportRecord",
    "ImportSyntax",
    "InsertAt",
    "InvalidateCacheResponse",
    "ListImportCandidatesResponse",
    "MergeAction",
    "MergePlan",
    "SourceRange",
    "TextEdit",
]
