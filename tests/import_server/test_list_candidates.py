"""Tests for the list_import_candidates tool."""

import json
import os

import pytest

from quicken.import_server.config import ImportServerConfig, reset_config, set_config
from quicken.import_server.tools.list_candidates import list_import_candidates_impl
from quicken.import_server.tools.session_state import get_session, reset_session


def write(directory, name, content=""):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return str(path)


class TestListImportCandidates:
    """Test candidate filtering and ranking."""

    def setup_method(self):
        reset_session()
        set_config(ImportServerConfig())

    def teardown_method(self):
        reset_session()
        reset_config()

    def make_project(self, tmp_path, tsconfig=None):
        write(tmp_path, "src/components/userCard.ts", "export default 1;\n")
        write(tmp_path, "src/components/userCardStyles.ts")
        write(tmp_path, "src/components/other.ts")
        write(tmp_path, "src/helper.ts")
        write(tmp_path, "src/lib/index.ts")
        write(tmp_path, "src/lib/format.js")
        write(tmp_path, "README.md")
        write(tmp_path, "node_modules/react/index.js")
        write(tmp_path, "package.json", json.dumps({"dependencies": {"react": "18.2.0"}}))
        write(tmp_path, "tsconfig.json", json.dumps(tsconfig or {}))

    def test_ranked_candidates(self, tmp_path):
        self.make_project(tmp_path)

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))

        assert [candidate.label for candidate in result.candidates] == [
            "userCardStyles.ts",
            "other.ts",
            "helper.ts",
            "lib",
            "package.json",
            "tsconfig.json",
            "react",
        ]
        assert result.total == 7
        assert result.errors == []

    def test_candidate_fields(self, tmp_path):
        self.make_project(tmp_path)

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))
        by_label = {candidate.label: candidate for candidate in result.candidates}

        assert by_label["lib"].module_path == "../lib"
        assert by_label["lib"].description == "src/lib"
        assert by_label["lib"].sort_name == "!"
        assert by_label["helper.ts"].module_path == "../helper"
        assert by_label["helper.ts"].sort_path == "fd"
        assert by_label["package.json"].module_path == "../../package.json"
        assert by_label["react"].kind == "node"
        assert by_label["react"].description == "18.2.0"
        assert by_label["react"].sort_path == "~"

    def test_open_files_rank_first(self, tmp_path):
        self.make_project(tmp_path)

        result = list_import_candidates_impl(
            "src/components/userCard.ts", open_files=["src/helper.ts"], project_root=str(tmp_path)
        )

        assert result.candidates[0].label == "helper.ts"
        assert result.candidates[0].sort_path == "a"

    def test_javascript_needs_allow_js(self, tmp_path):
        self.make_project(tmp_path, {"compilerOptions": {"allowJs": True}})

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))

        assert "format.js" in [candidate.label for candidate in result.candidates]

    def test_javascript_document_sees_javascript(self, tmp_path):
        self.make_project(tmp_path)
        write(tmp_path, "src/main.js")

        result = list_import_candidates_impl("src/main.js", project_root=str(tmp_path))

        assert "format.js" in [candidate.label for candidate in result.candidates]
        assert "main.js" not in [candidate.label for candidate in result.candidates]

    def test_limit_and_packages(self, tmp_path):
        self.make_project(tmp_path)

        limited = list_import_candidates_impl("src/components/userCard.ts", limit=2, project_root=str(tmp_path))
        files_only = list_import_candidates_impl(
            "src/components/userCard.ts", include_packages=False, project_root=str(tmp_path)
        )

        assert len(limited.candidates) == 2
        assert limited.total == 7
        assert all(candidate.kind == "file" for candidate in files_only.candidates)

    def test_when_predicate_filters_rules(self, tmp_path):
        self.make_project(tmp_path)
        write(
            tmp_path,
            ".quicken.yaml",
            "files:\n"
            "  - path: 'src/**/*.ts'\n"
            "    when: \"fileExtension === 'tsx'\"\n"
            "  - path: 'src/lib/*.ts'\n"
            "nodes: []\n",
        )

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))

        assert [candidate.label for candidate in result.candidates] == ["lib"]

    def test_invalid_limit(self, tmp_path):
        with pytest.raises(ValueError, match="limit must be positive"):
            list_import_candidates_impl("src/app.ts", limit=0, project_root=str(tmp_path))

    def test_text_rules_follow_packages(self, tmp_path):
        self.make_project(tmp_path)
        write(
            tmp_path,
            ".quicken.yaml",
            "files:\n"
            "  - path: 'src/lib/*.ts'\n"
            "nodes:\n"
            "  - name: react\n"
            "texts:\n"
            "  - name: useState\n"
            "    code: 'const [${1:value}, setValue] = useState();'\n"
            "  - name: jsonOnly\n"
            "    code: '{}'\n"
            "    when: \"languageId === 'json'\"\n",
        )

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))
        texts_excluded = list_import_candidates_impl(
            "src/components/userCard.ts", include_texts=False, project_root=str(tmp_path)
        )

        assert [candidate.kind for candidate in result.candidates] == ["file", "node", "text"]
        assert result.candidates[-1].label == "useState"
        assert result.candidates[-1].module_path == ""
        assert result.candidates[-1].description == "const [${1:value}, setValue] = useState();"
        assert [candidate.kind for candidate in texts_excluded.candidates] == ["file", "node"]

    def test_recent_selections_rank_first(self, tmp_path):
        self.make_project(tmp_path)
        helper = os.path.realpath(str(tmp_path / "src" / "helper.ts"))
        get_session().recent.mark_as_recently_used("typescript", f"file:{helper}")
        get_session().recent.mark_as_recently_used("typescript", "node:react")

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))

        assert [candidate.label for candidate in result.candidates[:3]] == ["react", "helper.ts", "userCardStyles.ts"]
        assert [candidate.recent for candidate in result.candidates[:3]] == [True, True, False]
        assert result.total == 7

    def test_recent_selections_are_per_language(self, tmp_path):
        self.make_project(tmp_path)
        get_session().recent.mark_as_recently_used("javascript", "node:react")

        result = list_import_candidates_impl("src/components/userCard.ts", project_root=str(tmp_path))

        assert result.candidates[-1].label == "react"
        assert not any(candidate.recent for candidate in result.candidates)
