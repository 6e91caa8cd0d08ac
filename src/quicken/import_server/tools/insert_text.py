"""
Insert a named text snippet from the project's text rules at a cursor position.
"""

import asyncio
import logging
import re

from ..models.import_models import AnalysisError, InsertTextResponse, TextEdit
from .add_import import offset_of
from .path_model import describe
from .project import ImportProject, mark_selected, open_project, text_template_context, when_context
from .statement_builder import detect_eol
from .syntax_index import make_range

logger = logging.getLogger(__name__)

LINE_INDENT = re.compile(r"[ \t]*")


def _cursor_line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    return LINE_INDENT.match(text, line_start).group(0)


def _indent_continuation(text: str, indent: str, eol: str) -> str:
    """Prefix every line but the first with the cursor line's indentation."""
    if not indent:
        return text
    return (eol + indent).join(text.split(eol))


async def insert_text_async(
    file_path: str,
    name: str,
    cursor_line: int = 0,
    cursor_column: int = 0,
    write: bool = False,
    project: ImportProject | None = None,
) -> InsertTextResponse:
    """Coroutine behind insert_text_impl."""
    project = project or open_project()
    document = describe(project.resolve_file(file_path))

    rule = project.rules.text_rule(name)
    if rule is None:
        raise ValueError(f"No text rule named {name!r}")
    if not rule.applies_to(when_context(project, document)):
        raise ValueError(f"Text rule {name!r} does not apply to {project.workspace.relative(document.full_path)}")

    text = await project.read_document(document.full_path)
    eol = detect_eol(text)
    offset = offset_of(text, cursor_line, cursor_column)
    indent = _cursor_line_indent(text, offset)

    rendered, snippet = rule.code.render_snippet(
        text_template_context(project, document), project.config.indent_unit, eol
    )
    rendered = _indent_continuation(rendered, indent, eol)
    snippet = _indent_continuation(snippet, indent, eol)

    position = make_range(text, offset, offset)
    edit = TextEdit(
        start_offset=offset,
        end_offset=offset,
        new_text=rendered,
        line=position.start_line,
        column=position.start_column,
    )
    response = InsertTextResponse(
        file_path=document.full_path,
        name=name,
        text=rendered,
        snippet=snippet,
        edit=edit,
        new_content=edit.apply(text),
    )
    mark_selected(project, document, rule.kind, rule.name)

    if write:
        try:
            await asyncio.to_thread(project.write_document, document.full_path, response.new_content)
        except OSError as e:
            logger.error(f"Failed to insert text into {file_path}: {e}")
            response.errors.append(AnalysisError(code="WRITE_ERROR", message=str(e), file=file_path))
            return response
        response.applied = True
    return response


def insert_text_impl(
    file_path: str,
    name: str,
    cursor_line: int = 0,
    cursor_column: int = 0,
    write: bool = False,
    project_root: str | None = None,
) -> InsertTextResponse:
    """
    Insert the text of a named text rule at a cursor position.

    Args:
        file_path: Document to insert into
        name: Name of a text rule from the project's rule file
        cursor_line: 0-based line of the insertion point
        cursor_column: 0-based column of the insertion point, clamped to the line
        write: Save the edited document
        project_root: Project root, defaults to MCP_FILE_ROOT

    Returns:
        InsertTextResponse with the rendered text, its snippet form and the edit

    Raises:
        ValueError: If no applicable text rule has that name
    """
    return asyncio.run(
        insert_text_async(
            file_path,
            name,
            cursor_line=cursor_line,
            cursor_column=cursor_column,
            write=write,
            project=open_project(project_root),
        )
    )
