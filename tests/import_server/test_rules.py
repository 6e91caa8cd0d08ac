"""Tests for rule loading and validation."""

import pytest

from quicken.import_server.models.import_models import InsertAt
from quicken.import_server.tools.rules import (
    RuleConfigurationError,
    default_rules,
    load_rules,
    parse_rules,
)

VALID_RULES = {
    "files": [
        {
            "path": ["src/**/*.{js,ts}", "!**/*.test.ts"],
            "omitIndexFile": True,
            "omitExtensionInFilePath": "{js,ts}",
        },
        {
            "path": "**/*.css",
            "code": "import '${filePath}'",
            "insertAt": "afterLastImport",
            "when": "fileExtension === 'tsx'",
        },
    ],
    "nodes": [{"name": "lodash*", "code": ["import * as _ from '${packageName}'"]}, {"name": "@*/*"}],
    "texts": [{"name": "log", "code": "console.log(${1:value});", "when": "languageId !== 'json'"}],
}


class TestParseRules:
    """Test typed rules built from raw configuration."""

    def test_valid_rules(self):
        rules = parse_rules(VALID_RULES)

        assert len(rules.files) == 2
        assert len(rules.nodes) == 2
        assert rules.files[0].inclusions == ["src/**/*.{js,ts}"]
        assert rules.files[0].exclusions == ["**/*.test.ts"]
        assert rules.files[0].omit_extension == "{js,ts}"
        assert rules.files[0].code is None
        assert rules.files[0].insert_at == InsertAt.BEFORE_FIRST_IMPORT
        assert rules.files[1].insert_at == InsertAt.AFTER_LAST_IMPORT
        assert rules.files[1].code.render({"filePath": "./theme.css"}) == "import './theme.css'"

    def test_file_rules_for(self):
        rules = parse_rules(VALID_RULES)

        assert rules.file_rules_for("src/app.ts") == [rules.files[0]]
        assert rules.file_rules_for("src/app.test.ts") == []
        assert rules.file_rules_for("styles/theme.css") == [rules.files[1]]

    def test_node_rules_for(self):
        rules = parse_rules(VALID_RULES)

        assert rules.node_rules_for("lodash.debounce") == [rules.nodes[0]]
        assert rules.node_rules_for("@babel/core") == [rules.nodes[1]]
        assert rules.node_rules_for("react") == []

    def test_when_predicate(self):
        rule = parse_rules(VALID_RULES).files[1]

        assert rule.applies_to({"fileExtension": "tsx"})
        assert not rule.applies_to({"fileExtension": "ts"})

    def test_text_rules(self):
        rules = parse_rules(VALID_RULES)
        rule = rules.text_rule("log")

        assert rule.kind == "text"
        assert rule.applies_to({"languageId": "typescript"})
        assert not rule.applies_to({"languageId": "json"})
        assert rule.code.render_snippet({"value": "x"}) == ("console.log(x);", "console.log(${1:x});")
        assert rules.text_rule("missing") is None

    def test_rule_kinds(self):
        rules = parse_rules(VALID_RULES)

        assert [rules.files[0].kind, rules.nodes[0].kind] == ["file", "node"]

    def test_empty_configuration(self):
        rules = parse_rules(None)

        assert rules.files == []
        assert rules.nodes == []
        assert rules.texts == []

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"files": [{"path": "**", "bogus": 1}]}, "unknown keys: bogus"),
            ({"files": [{"code": "x"}]}, "missing required 'path'"),
            ({"files": [{"path": "!**/*.ts"}]}, "at least one inclusion"),
            ({"files": [{"path": "**", "omitIndexFile": "yes"}]}, "omitIndexFile must be a boolean"),
            ({"files": [{"path": "**", "insertAt": "middle"}]}, "insertAt must be one of"),
            ({"files": [{"path": "**", "code": "${a +}"}]}, "code"),
            ({"files": [{"path": "**", "when": "a ==="}]}, "when"),
            ({"files": [{"path": []}]}, "non-empty list"),
            ({"nodes": [{"code": "x"}]}, "missing required 'name'"),
            ({"files": {"path": "**"}}, "must be lists"),
            ({"texts": [{"name": "log"}]}, "missing required 'code'"),
            ({"texts": [{"code": "x"}]}, "missing required 'name'"),
            ({"texts": [{"name": "log", "code": "x", "insertAt": "top"}]}, "unknown keys: insertAt"),
            ({"texts": [{"name": "a", "code": "x"}, {"name": "a", "code": "y"}]}, "duplicate text rule names: a"),
            ({"files": [{"path": "**", "code": "${1:name}"}]}, "code"),
            ({"other": []}, "unknown keys: other"),
            (["files"], "must be a mapping"),
        ],
    )
    def test_invalid_rules(self, data, message):
        with pytest.raises(RuleConfigurationError, match=message):
            parse_rules(data)

    def test_configuration_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse_rules({"files": [{}]})


class TestDefaultRules:
    def test_scripts_assets_and_packages(self):
        rules = default_rules()

        assert rules.file_rules_for("src/app.tsx")[0].omit_index_file
        assert rules.file_rules_for("src/theme.css")[0].code is None
        assert rules.file_rules_for("README.md") == []
        assert rules.node_rules_for("react")
        assert rules.node_rules_for("@types/node")


class TestLoadRules:
    """Test reading rule files from a project."""

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_rules(str(tmp_path)).source == "<defaults>"

    def test_yaml_file(self, tmp_path):
        (tmp_path / ".quicken.yaml").write_text(
            "files:\n"
            "  - path: 'src/**/*.ts'\n"
            "    omitExtensionInFilePath: true\n"
            "nodes:\n"
            "  - name: react\n"
        )

        rules = load_rules(str(tmp_path))

        assert rules.source == str(tmp_path / ".quicken.yaml")
        assert rules.files[0].omit_extension is True
        assert rules.nodes[0].name == "react"

    def test_custom_file_name(self, tmp_path):
        (tmp_path / "imports.yml").write_text("nodes:\n  - name: vue\n")

        assert load_rules(str(tmp_path), "imports.yml").nodes[0].name == "vue"

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / ".quicken.yaml").write_text("files: [unclosed\n")

        with pytest.raises(RuleConfigurationError, match="YAML parsing error"):
            load_rules(str(tmp_path))
