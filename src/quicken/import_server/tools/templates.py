"""
Code templates and "when" predicates for import rules.

Templates are plain text with ${expression} placeholders. Both templates and
predicates are compiled when a rule is loaded, so a malformed expression is
reported before any file is touched. Any failure, at compile time or while
rendering, raises TemplateError naming the template source.

Text snippet templates also accept ${n:expression}, a numbered tab stop whose
default text is the expression's value.
"""

import re
from typing import Any

from .expressions import ExpressionError, ExpressionEvaluator, compile_expression, to_boolean, to_string

LEADING_TABS = re.compile(r"^\t+")
TABSTOP_PREFIX = re.compile(r"^(\d+):")
# Characters with a meaning in editor snippet syntax
SNIPPET_SPECIAL = re.compile(r"[\\$}]")


class TemplateError(Exception):
    """Raised when a rule template or predicate cannot be compiled or evaluated."""

    pass


def _find_placeholder_end(source: str, start: int) -> int:
    """Index of the "}" closing a placeholder whose body starts at start."""
    depth = 0
    quote = None
    index = start
    while index < len(source):
        char = source[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char in "{[(":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "}":
            if depth == 0:
                return index
            depth -= 1
        index += 1
    return -1


def _layout(text: str, indent: str, eol: str) -> str:
    lines = text.replace("\r\n", "\n").split("\n")
    lines = [LEADING_TABS.sub(lambda match: indent * len(match.group(0)), line) for line in lines]
    return eol.join(lines)


def _escape_snippet(text: str) -> str:
    return SNIPPET_SPECIAL.sub(lambda match: "\\" + match.group(0), text)


class CodeTemplate:
    """A compiled ${...} template."""

    allow_tabstops = False

    def __init__(self, source: str | list[str]):
        if isinstance(source, list):
            source = "\n".join(source)
        self.source = source.replace("\r\n", "\n")
        self.parts: list[str | tuple[str, dict[str, Any], int | None]] = []
        self._compile()

    def _compile(self) -> None:
        position = 0
        while True:
            start = self.source.find("${", position)
            if start == -1:
                self.parts.append(self.source[position:])
                return

            end = _find_placeholder_end(self.source, start + 2)
            if end == -1:
                raise TemplateError(f"Unclosed placeholder in template {self.source!r}")

            expression = self.source[start + 2 : end]
            tabstop = None
            if self.allow_tabstops:
                match = TABSTOP_PREFIX.match(expression)
                if match:
                    tabstop = int(match.group(1))
                    expression = expression[match.end() :].strip()
            try:
                ast = compile_expression(expression)
            except ExpressionError as e:
                raise TemplateError(f"Invalid expression '{expression}' in template {self.source!r}: {e}") from e

            self.parts.append(self.source[position:start])
            self.parts.append((expression, ast, tabstop))
            position = end + 1

    def _evaluate(self, context: dict[str, Any]) -> list[tuple[str, int | None]]:
        """(text, tab stop) chunks in template order; literal text has no tab stop."""
        evaluator = ExpressionEvaluator(context)
        chunks = []
        for part in self.parts:
            if isinstance(part, str):
                chunks.append((part, None))
                continue
            expression, ast, tabstop = part
            try:
                chunks.append((to_string(evaluator.evaluate(ast)), tabstop))
            except Exception as e:
                raise TemplateError(f"Failed to evaluate '{expression}' in template {self.source!r}: {e}") from e
        return chunks

    def render(self, context: dict[str, Any], indent: str = "\t", eol: str = "\n") -> str:
        """
        Render the template.

        Args:
            context: Variables visible to the placeholders
            indent: Indent unit that replaces each leading tab of an output line
            eol: Line ending of the destination buffer
        """
        return _layout("".join(text for text, _ in self._evaluate(context)), indent, eol)


class SnippetTemplate(CodeTemplate):
    """A text snippet template whose ${n:expression} placeholders are tab stops."""

    allow_tabstops = True

    def render_snippet(self, context: dict[str, Any], indent: str = "\t", eol: str = "\n") -> tuple[str, str]:
        """
        Render the plain text and the editor snippet form.

        Returns:
            (text, snippet); text holds the tab stop values, snippet writes them
            as ${n:value} and escapes "$", "}" and backslashes everywhere else
        """
        chunks = self._evaluate(context)
        text = "".join(chunk for chunk, _ in chunks)
        snippet = "".join(
            _escape_snippet(chunk) if tabstop is None else f"${{{tabstop}:{_escape_snippet(chunk)}}}"
            for chunk, tabstop in chunks
        )
        return _layout(text, indent, eol), _layout(snippet, indent, eol)


class WhenPredicate:
    """A compiled boolean rule condition."""

    def __init__(self, expression: str):
        self.expression = expression
        try:
            self.ast = compile_expression(expression)
        except ExpressionError as e:
            raise TemplateError(f"Invalid 'when' expression {expression!r}: {e}") from e

    def test(self, context: dict[str, Any]) -> bool:
        try:
            return to_boolean(ExpressionEvaluator(context).evaluate(self.ast))
        except Exception as e:
            raise TemplateError(f"Failed to evaluate 'when' expression {self.expression!r}: {e}") from e
