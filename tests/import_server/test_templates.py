"""Tests for code templates and when predicates."""

import pytest

from quicken.import_server.tools.templates import CodeTemplate, SnippetTemplate, TemplateError, WhenPredicate


class TestCodeTemplate:
    """Test ${...} template rendering."""

    def test_placeholders(self):
        template = CodeTemplate("import ${name} from '${path}';")

        assert template.render({"name": "format", "path": "./format"}) == "import format from './format';"

    def test_plain_text(self):
        assert CodeTemplate("import 'polyfills';").render({}) == "import 'polyfills';"

    def test_line_list_and_indent(self):
        template = CodeTemplate(["const styles = {", "\tcard: '${fileName}',", "};"])

        rendered = template.render({"fileName": "card"}, indent="  ", eol="\r\n")

        assert rendered == "const styles = {\r\n  card: 'card',\r\n};"

    def test_closing_brace_inside_string(self):
        template = CodeTemplate("${name + '}'}")

        assert template.render({"name": "x"}) == "x}"

    def test_null_renders_empty(self):
        assert CodeTemplate("a${value}b").render({"value": None}) == "ab"

    def test_unknown_variable(self):
        template = CodeTemplate("import ${missing} from 'x';")

        with pytest.raises(TemplateError, match="missing"):
            template.render({})

    def test_invalid_expression(self):
        with pytest.raises(TemplateError, match="Invalid expression"):
            CodeTemplate("import ${a +} from 'x';")

    def test_unclosed_placeholder(self):
        with pytest.raises(TemplateError, match="Unclosed"):
            CodeTemplate("import ${name from 'x';")

    def test_context_function_failure(self):
        def explode():
            raise RuntimeError("boom")

        with pytest.raises(TemplateError, match="boom"):
            CodeTemplate("${explode()}").render({"explode": explode})


class TestSnippetTemplate:
    """Test text snippets with numbered tab stops."""

    def test_tabstops(self):
        template = SnippetTemplate("const [${1:name}, set] = useState(${2:initial});")

        text, snippet = template.render_snippet({"name": "count", "initial": "0"})

        assert text == "const [count, set] = useState(0);"
        assert snippet == "const [${1:count}, set] = useState(${2:0});"

    def test_plain_placeholders_are_not_tabstops(self):
        text, snippet = SnippetTemplate("// ${fileName}").render_snippet({"fileName": "app.ts"})

        assert text == snippet == "// app.ts"

    def test_snippet_escaping(self):
        template = SnippetTemplate("$store.${1:key}")

        text, snippet = template.render_snippet({"key": "user}"})

        assert text == "$store.user}"
        assert snippet == "\\$store.${1:user\\}}"

    def test_tabstop_whitespace_and_layout(self):
        template = SnippetTemplate(["if (${1: condition }) {", "\t${0:body}", "}"])

        text, _ = template.render_snippet({"condition": "ok", "body": "run()"}, indent="  ", eol="\r\n")

        assert text == "if (ok) {\r\n  run()\r\n}"

    def test_tabstop_syntax_only_in_snippets(self):
        with pytest.raises(TemplateError):
            CodeTemplate("${1:name}")


class TestWhenPredicate:
    """Test rule conditions."""

    def test_true_and_false(self):
        predicate = WhenPredicate("fileExtension === 'ts' && !filePath.includes('test')")

        assert predicate.test({"fileExtension": "ts", "filePath": "src/a.ts"})
        assert not predicate.test({"fileExtension": "ts", "filePath": "src/a.test.ts"})

    def test_truthiness(self):
        assert not WhenPredicate("name").test({"name": ""})
        assert WhenPredicate("name").test({"name": "x"})

    def test_invalid_expression(self):
        with pytest.raises(TemplateError):
            WhenPredicate("fileName ===")

    def test_evaluation_failure(self):
        with pytest.raises(TemplateError):
            WhenPredicate("unknownVariable").test({})
