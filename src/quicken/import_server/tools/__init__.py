"""Import server tools implementations."""

from ...utils.json_parameter_middleware import json_convert
from ..models.import_models import (
    AddImportResponse,
    FixBrokenImportsResponse,
    GetExportedIdentifiersResponse,
    InsertTextResponse,
    InvalidateCacheResponse,
    ListImportCandidatesResponse,
)
from .add_import import add_import_async
from .fix_imports import fix_broken_imports_async
from .get_exports import get_exported_identifiers_async, invalidate_export_cache_impl
from .insert_text import insert_text_async
from .list_candidates import list_import_candidates_async
from .project import open_project


def register_import_tools(mcp):
    """Register import synthesis tools with the MCP server."""

    @mcp.tool
    @json_convert
    async def list_import_candidates(
        file_path: str,
        open_files: list[str] | None = None,
        include_packages: bool = True,
        limit: int | None = None,
        include_texts: bool = True,
    ) -> ListImportCandidatesResponse:
        """
        List project files, packages and text snippets that can be inserted into a file, best match first.

        Use this tool when:
        - Looking for the module that provides a helper before importing it
        - Picking between several files with similar names
        - Checking which module path an import would use

        Ranking: open files first, then files in the same directory (most similar
        names first), then files below, beside and above the document.
        Packages from package.json come next, then text snippets from the rule
        file. Items recently added to files of the same language move to the
        front and carry recent=true.

        Args:
            file_path: File the import would be added to
            open_files: Files currently open in the editor, ranked first
            include_packages: Include package.json dependencies
            limit: Maximum number of candidates to return
            include_texts: Include text snippets (insert them with insert_text)

        Example:
            list_import_candidates("src/app.ts")
            → candidates like {label: "format.ts", module_path: "./utils/format", kind: "file"}
        """
        return await list_import_candidates_async(
            file_path,
            open_files=open_files,
            include_packages=include_packages,
            limit=limit,
            project=open_project(),
            include_texts=include_texts,
        )

    @mcp.tool
    @json_convert
    async def add_import(
        file_path: str,
        target: str,
        kind: str | None = None,
        name: str | None = None,
        syntax: str | None = None,
        quotes: str | None = None,
        semicolons: str | None = None,
        insert_at: str | None = None,
        cursor_line: int | None = None,
        cursor_column: int | None = None,
        write: bool = False,
    ) -> AddImportResponse:
        """
        Add an import or require statement for a file or package.

        Use this tool when:
        - Adding an import after writing code that uses another module
        - Importing a named export into a file that already imports the module
        - Adding a stylesheet or asset import

        An existing import of the same module is extended in place
        (`import { a } from './x'` becomes `import { a, b } from './x'`) and a
        duplicate is never created. When the target only has named exports and
        no kind/name is given, action is "NEEDS_SELECTION" and options lists
        "*" (namespace) plus the exported names; call again with kind/name.

        Args:
            file_path: File to add the import to
            target: File path to import, or a package name like "lodash"
            kind: "default", "namespace", "named" or "side_effect" (None picks from the target's exports)
            name: Exported name for named imports, or a binding name override
            syntax: "import" or "require" (None follows the file)
            quotes: "single", "double" or "auto"
            semicolons: "always", "never" or "auto"
            insert_at: "top", "bottom", "beforeFirstImport", "afterLastImport" or "atCursor"
            cursor_line: 0-based line for "atCursor"
            cursor_column: 0-based column for "atCursor"
            write: Save the change to disk (default: only return the edit)

        Example:
            add_import("src/app.ts", "src/utils/format.ts", kind="default")
            → action "NEW", edit inserting "import format from './utils/format';\\n" at line 0
        """
        return await add_import_async(
            file_path,
            target,
            kind=kind,
            name=name,
            syntax=syntax,
            quotes=quotes,
            semicolons=semicolons,
            insert_at=insert_at,
            cursor_line=cursor_line,
            cursor_column=cursor_column,
            write=write,
            project=open_project(),
        )

    @mcp.tool
    @json_convert
    async def get_exported_identifiers(file_path: str) -> GetExportedIdentifiersResponse:
        """
        List the identifiers a JavaScript or TypeScript file exports.

        Use this tool when:
        - Deciding which name to import from a module
        - Tracing where a re-exported identifier is defined

        Re-exports (`export * from`, `export { a } from`) and imported-then-exported
        names are followed; path_list runs from the file itself to the defining file.

        Args:
            file_path: File to inspect

        Example:
            get_exported_identifiers("src/index.ts")
            → identifiers like {name: "format", path_list: ["src/index.ts", "src/utils/format.ts"]}
        """
        return await get_exported_identifiers_async(file_path, project=open_project())

    @mcp.tool
    @json_convert
    async def fix_broken_imports(file_path: str, write: bool = False) -> FixBrokenImportsResponse:
        """
        Repoint relative imports whose target files were moved or renamed.

        Use this tool when:
        - Files were moved and the build reports unresolved imports
        - Cleaning up after a directory restructure

        Only imports with exactly one matching file are rewritten; the others are
        reported as "ambiguous" (with candidates) or "not_found".

        Args:
            file_path: File whose imports are checked
            write: Save the repaired file (default: only return new_content)
        """
        return await fix_broken_imports_async(file_path, write=write, project=open_project())

    @mcp.tool
    @json_convert
    def invalidate_export_cache(file_paths: list[str] | None = None) -> InvalidateCacheResponse:
        """
        Drop cached export information after files changed on disk.

        Args:
            file_paths: Changed files, or None to clear the whole cache
        """
        return invalidate_export_cache_impl(file_paths=file_paths)

    @mcp.tool
    @json_convert
    async def insert_text(
        file_path: str,
        name: str,
        cursor_line: int = 0,
        cursor_column: int = 0,
        write: bool = False,
    ) -> InsertTextResponse:
        """
        Insert a named text snippet from the project's rule file at a cursor position.

        Use this tool when:
        - Adding boilerplate the project defines under "texts" in .quicken.yaml
        - Expanding a snippet listed by list_import_candidates with kind "text"

        Tab stops like ${1:value} are filled with their default values in text;
        snippet keeps them for editors that support snippet placeholders.
        Lines after the first get the indentation of the cursor line.

        Args:
            file_path: File to insert into
            name: Text rule name
            cursor_line: 0-based line of the insertion point
            cursor_column: 0-based column of the insertion point
            write: Save the change to disk (default: only return the edit)

        Example:
            insert_text("src/app.tsx", "useState", cursor_line=4, cursor_column=2)
            → text "const [value, setValue] = useState();"
        """
        return await insert_text_async(
            file_path,
            name,
            cursor_line=cursor_line,
            cursor_column=cursor_column,
            write=write,
            project=open_project(),
        )
