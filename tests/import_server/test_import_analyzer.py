"""Tests for listing existing imports of a destination file."""

from quicken.import_server.models.import_models import ImportKind, ImportSyntax
from quicken.import_server.tools.import_analyzer import list_imports, normalize_module_path
from quicken.import_server.tools.syntax_index import parse

SOURCE = """import React from 'react';
import * as path from "path";
import { a, b as c } from './x/';
import './polyfills';
const fs = require('fs');
const { join, resolve: r } = require('path');
require('./setup');
import D, { e } from './y';

function notAnImport() {
  const inner = require('inner');
}
"""


def records_by_path(text, dialect="ts"):
    return {record.module_path: record for record in list_imports(parse(text, dialect))}


class TestListImports:
    """Test recognition of import and require statements."""

    def test_all_shapes_in_source_order(self):
        records = list_imports(parse(SOURCE, "ts"))

        assert [record.module_path for record in records] == [
            "react",
            "path",
            "./x",
            "./polyfills",
            "fs",
            "path",
            "./setup",
            "./y",
        ]

    def test_only_top_level_statements(self):
        assert "inner" not in records_by_path(SOURCE)

    def test_default_import(self):
        record = records_by_path(SOURCE)["react"]

        assert record.syntax == ImportSyntax.IMPORT
        assert record.clause == ImportKind.DEFAULT
        assert record.default_name == "React"
        assert SOURCE[record.default_end - len("React") : record.default_end] == "React"

    def test_namespace_import(self):
        record = list_imports(parse(SOURCE, "ts"))[1]

        assert record.clause == ImportKind.NAMESPACE
        assert record.namespace_name == "path"
        assert record.range.start_line == 1

    def test_named_import_offsets(self):
        record = records_by_path(SOURCE)["./x"]

        assert record.clause == ImportKind.NAMED
        assert record.named_names == ["a", "b"]
        assert SOURCE[record.brace_open] == "{"
        assert SOURCE[record.brace_close] == "}"
        assert SOURCE[: record.last_named_end].endswith("b as c")

    def test_side_effect_import(self):
        record = records_by_path(SOURCE)["./polyfills"]

        assert record.syntax == ImportSyntax.IMPORT
        assert record.clause == ImportKind.SIDE_EFFECT

    def test_require_declarations(self):
        records = list_imports(parse(SOURCE, "ts"))
        fs_record = records[4]
        path_record = records[5]

        assert fs_record.syntax == ImportSyntax.REQUIRE
        assert fs_record.clause == ImportKind.DEFAULT
        assert fs_record.default_name == "fs"
        assert path_record.clause == ImportKind.NAMED
        assert path_record.named_names == ["join", "resolve"]

    def test_bare_require_call(self):
        record = records_by_path(SOURCE)["./setup"]

        assert record.syntax == ImportSyntax.REQUIRE_CALL
        assert record.clause == ImportKind.SIDE_EFFECT

    def test_default_with_named(self):
        record = records_by_path(SOURCE)["./y"]

        assert record.clause == ImportKind.NAMED
        assert record.default_name == "D"
        assert record.named_names == ["e"]

    def test_typescript_import_equals_require(self):
        record = records_by_path("import fs = require('fs');\n")["fs"]

        assert record.syntax == ImportSyntax.REQUIRE
        assert record.default_name == "fs"

    def test_type_only_import(self):
        record = records_by_path("import type { A, B } from './types';\n")["./types"]

        assert record.type_only
        assert record.clause == ImportKind.NAMED
        assert record.named_names == ["A", "B"]

    def test_inline_type_specifier_is_a_value_statement(self):
        record = records_by_path("import { type A, b } from './x';\n")["./x"]

        assert not record.type_only
        assert record.named_names == ["A", "b"]

    def test_statement_range(self):
        text = "// header\nimport a from './a';\n"
        record = list_imports(parse(text, "js"))[0]

        assert record.range.start_line == 1
        assert record.range.start_column == 0
        assert text[record.range.start_offset : record.range.end_offset] == "import a from './a';"

    def test_no_tree(self):
        assert list_imports(None) == []


class TestNormalizeModulePath:
    def test_single_trailing_slash_removed(self):
        assert normalize_module_path("./lib/") == "./lib"
        assert normalize_module_path("./lib") == "./lib"

    def test_root_slash_kept(self):
        assert normalize_module_path("/") == "/"
