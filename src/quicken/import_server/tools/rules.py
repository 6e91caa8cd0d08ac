"""
Per-project import rules.

Rules are read from YAML (or given as a mapping), validated once, and turned
into FileRule / NodeRule values. Downstream code only ever sees these typed
rules, never the raw configuration.

Example .quicken.yaml:

    files:
      - path: ["src/**/*.{js,ts}", "!**/*.test.ts"]
        omitIndexFile: true
        omitExtensionInFilePath: true
      - path: "**/*.css"
        code: "import '${filePath}'"
        insertAt: afterLastImport
    nodes:
      - name: "lodash*"
        code: "import * as _ from '${packageName}'"
    texts:
      - name: useState
        code: "const [${1:value}, set${2:Value}] = useState(${3:initial});"
        when: "languageId === 'typescriptreact'"
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from ..models.import_models import InsertAt
from .glob_matching import match_any, match_glob, split_inclusions
from .templates import CodeTemplate, SnippetTemplate, TemplateError, WhenPredicate

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = ".quicken.yaml"


class RuleConfigurationError(ValueError):
    """Raised when a rule set is malformed."""

    pass


@dataclass
class FileRule:
    """How files matching a set of globs are imported."""

    inclusions: list[str]
    exclusions: list[str] = field(default_factory=list)
    code: CodeTemplate | None = None  # None means built-in import synthesis
    when: WhenPredicate | None = None
    omit_index_file: bool = False
    omit_extension: bool | str = False  # True, False, or a glob over the extension
    insert_at: str = InsertAt.BEFORE_FIRST_IMPORT

    kind = "file"

    def matches(self, relative_path: str) -> bool:
        return match_any(relative_path, self.inclusions, self.exclusions)

    def applies_to(self, context: dict[str, Any]) -> bool:
        return self.when is None or self.when.test(context)


@dataclass
class NodeRule:
    """How packages whose names match a glob are imported."""

    name: str
    code: CodeTemplate | None = None
    when: WhenPredicate | None = None
    insert_at: str = InsertAt.BEFORE_FIRST_IMPORT

    kind = "node"

    def matches(self, package_name: str) -> bool:
        return match_glob(package_name, self.name)

    def applies_to(self, context: dict[str, Any]) -> bool:
        return self.when is None or self.when.test(context)


@dataclass
class TextRule:
    """A named snippet of code inserted at the cursor."""

    name: str
    code: SnippetTemplate
    when: WhenPredicate | None = None

    kind = "text"

    def applies_to(self, context: dict[str, Any]) -> bool:
        return self.when is None or self.when.test(context)


@dataclass
class RuleSet:
    """All rules of a project, in declaration order."""

    files: list[FileRule] = field(default_factory=list)
    nodes: list[NodeRule] = field(default_factory=list)
    texts: list[TextRule] = field(default_factory=list)
    source: str = "<defaults>"

    def text_rule(self, name: str) -> TextRule | None:
        return next((rule for rule in self.texts if rule.name == name), None)

    def file_rules_for(self, relative_path: str) -> list[FileRule]:
        return [rule for rule in self.files if rule.matches(relative_path)]

    def node_rules_for(self, package_name: str) -> list[NodeRule]:
        return [rule for rule in self.nodes if rule.matches(package_name)]


FILE_RULE_KEYS = {"path", "code", "when", "omitIndexFile", "omitExtensionInFilePath", "insertAt"}
NODE_RULE_KEYS = {"name", "code", "when", "insertAt"}
TEXT_RULE_KEYS = {"name", "code", "when"}


def _require_string_list(value: Any, where: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
        return value
    raise RuleConfigurationError(f"{where} must be a string or a non-empty list of strings")


def _check_keys(entry: Any, allowed: set[str], where: str) -> None:
    if not isinstance(entry, dict):
        raise RuleConfigurationError(f"{where} must be a mapping")
    unknown = set(entry) - allowed
    if unknown:
        raise RuleConfigurationError(f"{where} has unknown keys: {', '.join(sorted(unknown))}")


def _parse_code(entry: dict[str, Any], where: str, template_class: type[CodeTemplate]) -> CodeTemplate:
    code = entry["code"]
    _require_string_list(code, f"{where}.code")
    try:
        return template_class(code)
    except TemplateError as e:
        raise RuleConfigurationError(f"{where}.code: {e}") from e


def _parse_when(entry: dict[str, Any], where: str) -> WhenPredicate | None:
    if entry.get("when") is None:
        return None
    if not isinstance(entry["when"], str):
        raise RuleConfigurationError(f"{where}.when must be a string")
    try:
        return WhenPredicate(entry["when"])
    except TemplateError as e:
        raise RuleConfigurationError(f"{where}.when: {e}") from e


def _parse_common(entry: dict[str, Any], where: str) -> dict[str, Any]:
    values = {"when": _parse_when(entry, where)}

    if entry.get("code") is not None:
        values["code"] = _parse_code(entry, where, CodeTemplate)

    insert_at = entry.get("insertAt", InsertAt.BEFORE_FIRST_IMPORT)
    if insert_at not in InsertAt.ALL:
        raise RuleConfigurationError(f"{where}.insertAt must be one of {list(InsertAt.ALL)}, got {insert_at!r}")
    values["insert_at"] = insert_at

    return values


def parse_file_rule(entry: Any, where: str) -> FileRule:
    _check_keys(entry, FILE_RULE_KEYS, where)
    if "path" not in entry:
        raise RuleConfigurationError(f"{where} missing required 'path' field")

    inclusions, exclusions = split_inclusions(_require_string_list(entry["path"], f"{where}.path"))
    if not inclusions:
        raise RuleConfigurationError(f"{where}.path needs at least one inclusion glob")

    omit_index_file = entry.get("omitIndexFile", False)
    if not isinstance(omit_index_file, bool):
        raise RuleConfigurationError(f"{where}.omitIndexFile must be a boolean")

    omit_extension = entry.get("omitExtensionInFilePath", False)
    if not isinstance(omit_extension, bool | str):
        raise RuleConfigurationError(f"{where}.omitExtensionInFilePath must be a boolean or a glob")

    return FileRule(
        inclusions=inclusions,
        exclusions=exclusions,
        omit_index_file=omit_index_file,
        omit_extension=omit_extension,
        **_parse_common(entry, where),
    )


def parse_node_rule(entry: Any, where: str) -> NodeRule:
    _check_keys(entry, NODE_RULE_KEYS, where)
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise RuleConfigurationError(f"{where} missing required 'name' field")
    return NodeRule(name=name, **_parse_common(entry, where))


def parse_text_rule(entry: Any, where: str) -> TextRule:
    _check_keys(entry, TEXT_RULE_KEYS, where)
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise RuleConfigurationError(f"{where} missing required 'name' field")
    if entry.get("code") is None:
        raise RuleConfigurationError(f"{where} missing required 'code' field")
    return TextRule(name=name, code=_parse_code(entry, where, SnippetTemplate), when=_parse_when(entry, where))


def parse_rules(data: Any, source: str = "<mapping>") -> RuleSet:
    """
    Validate raw rule configuration.

    Args:
        data: Mapping with optional "files", "nodes" and "texts" lists
        source: Where the data came from, for error messages

    Raises:
        RuleConfigurationError: If anything is malformed
    """
    if data is None:
        data = {}
    _check_keys(data, {"files", "nodes", "texts"}, source)

    files = data.get("files") or []
    nodes = data.get("nodes") or []
    texts = data.get("texts") or []
    if not all(isinstance(section, list) for section in (files, nodes, texts)):
        raise RuleConfigurationError(f"{source}: 'files', 'nodes' and 'texts' must be lists")

    rule_set = RuleSet(
        files=[parse_file_rule(entry, f"{source}: files[{index}]") for index, entry in enumerate(files)],
        nodes=[parse_node_rule(entry, f"{source}: nodes[{index}]") for index, entry in enumerate(nodes)],
        texts=[parse_text_rule(entry, f"{source}: texts[{index}]") for index, entry in enumerate(texts)],
        source=source,
    )

    names = [rule.name for rule in rule_set.texts]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise RuleConfigurationError(f"{source}: duplicate text rule names: {', '.join(duplicates)}")
    return rule_set


def default_rules() -> RuleSet:
    """Rules used when a project has no rule file."""
    return parse_rules(
        {
            "files": [
                {
                    "path": "**/*.{js,jsx,mjs,cjs,ts,tsx,mts,cts}",
                    "omitIndexFile": True,
                    "omitExtensionInFilePath": True,
                },
                {
                    "path": "**/*.{css,less,scss,sass,json,svg,png,jpg,gif}",
                },
            ],
            "nodes": [{"name": "*"}, {"name": "@*/*"}],
        },
        source="<defaults>",
    )


def load_rules(project_root: str, rules_file: str = DEFAULT_RULES_FILE) -> RuleSet:
    """
    Load the project's rule file, falling back to the default rules.

    Raises:
        RuleConfigurationError: If the file exists but is not valid
    """
    file_path = rules_file if os.path.isabs(rules_file) else os.path.join(project_root, rules_file)
    if not os.path.isfile(file_path):
        logger.debug(f"No rule file at {file_path}, using defaults")
        return default_rules()

    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RuleConfigurationError(f"YAML parsing error in {file_path}: {e}") from e
    except OSError as e:
        raise RuleConfigurationError(f"Cannot read rule file {file_path}: {e}") from e

    return parse_rules(data, source=file_path)
