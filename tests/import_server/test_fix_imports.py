"""Tests for the fix_broken_imports tool."""

from quicken.import_server.config import ImportServerConfig, reset_config, set_config
from quicken.import_server.tools.fix_imports import FixStatus, fix_broken_imports_impl
from quicken.import_server.tools.session_state import reset_session

APP = (
    "import { format } from './utils/format';\n"
    'import { helper } from "../shared/helper";\n'
    "import { gone } from './gone';\n"
    "import React from 'react';\n"
    "import { ok } from './ok';\n"
)


def write(directory, name, content=""):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return str(path)


class TestFixBrokenImports:
    """Test detection and repair of moved import targets."""

    def setup_method(self):
        reset_session()
        set_config(ImportServerConfig())

    def teardown_method(self):
        reset_session()
        reset_config()

    def make_project(self, tmp_path):
        app = write(tmp_path, "src/app.ts", APP)
        write(tmp_path, "src/ok.ts", "export const ok = 1;\n")
        write(tmp_path, "src/lib/format.ts", "export function format() {}\n")
        write(tmp_path, "a/shared/helper.ts", "export const helper = 1;\n")
        write(tmp_path, "b/shared/helper.ts", "export const helper = 2;\n")
        return app

    def test_statuses(self, tmp_path):
        self.make_project(tmp_path)

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))
        by_path = {broken.module_path: broken for broken in result.imports}

        assert set(by_path) == {"./utils/format", "../shared/helper", "./gone"}
        assert by_path["./utils/format"].status == FixStatus.FIXED
        assert by_path["./utils/format"].replacement == "./lib/format"
        assert by_path["./utils/format"].candidates == ["src/lib/format.ts"]
        assert by_path["../shared/helper"].status == FixStatus.AMBIGUOUS
        assert by_path["../shared/helper"].candidates == ["a/shared/helper.ts", "b/shared/helper.ts"]
        assert by_path["../shared/helper"].line == 1
        assert by_path["./gone"].status == FixStatus.NOT_FOUND
        assert (result.fixed, result.ambiguous, result.not_found) == (1, 1, 1)

    def test_new_content_without_write(self, tmp_path):
        app = self.make_project(tmp_path)

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))

        assert result.new_content == APP.replace("./utils/format", "./lib/format")
        assert not result.applied
        with open(app) as f:
            assert f.read() == APP

    def test_write(self, tmp_path):
        app = self.make_project(tmp_path)

        result = fix_broken_imports_impl("src/app.ts", write=True, project_root=str(tmp_path))

        assert result.applied
        with open(app) as f:
            assert f.read() == APP.replace("./utils/format", "./lib/format")

    def test_several_fixes_in_one_file(self, tmp_path):
        write(tmp_path, "src/app.ts", "import a from './old/a';\nimport b from './old/b';\n")
        write(tmp_path, "src/new/a.ts", "export default 1;\n")
        write(tmp_path, "src/new/b.ts", "export default 2;\n")

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))

        assert result.fixed == 2
        assert result.new_content == "import a from './new/a';\nimport b from './new/b';\n"

    def test_moved_directory_import(self, tmp_path):
        write(tmp_path, "src/app.ts", "import { Button } from './widgets';\n")
        write(tmp_path, "src/ui/widgets/index.ts", "export const Button = 1;\n")

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))

        assert result.new_content == "import { Button } from './ui/widgets';\n"

    def test_nothing_broken(self, tmp_path):
        write(tmp_path, "src/app.ts", "import { ok } from './ok';\n")
        write(tmp_path, "src/ok.ts", "export const ok = 1;\n")

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))

        assert result.imports == []
        assert result.new_content is None

    def test_unparseable_document(self, tmp_path):
        write(tmp_path, "src/app.ts", "import { from './x';\n")

        result = fix_broken_imports_impl("src/app.ts", project_root=str(tmp_path))

        assert result.errors[0].code == "PARSE_ERROR"
        assert result.imports == []
