"""Tests for workspace enumeration and manifest access."""

import json

import pytest

from quicken.import_server.tools.session_state import SessionState
from quicken.import_server.tools.workspace import Workspace, load_json_with_comments


def write(directory, name, content=""):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return str(path)


class TestFindFiles:
    """Test glob filtering of the file listing."""

    @pytest.mark.asyncio
    async def test_include_and_exclude(self, tmp_path):
        app = write(tmp_path, "src/app.ts")
        write(tmp_path, "src/app.test.ts")
        write(tmp_path, "README.md")

        matches = await Workspace(str(tmp_path)).find_files(["**/*.ts", "!**/*.test.ts"])

        assert matches == [app]

    @pytest.mark.asyncio
    async def test_dependency_folders_are_skipped(self, tmp_path):
        app = write(tmp_path, "src/app.js")
        write(tmp_path, "node_modules/lodash/index.js")
        write(tmp_path, "dist/app.js")

        assert await Workspace(str(tmp_path)).find_files("**/*.js") == [app]

    @pytest.mark.asyncio
    async def test_limit(self, tmp_path):
        for name in ("a.ts", "b.ts", "c.ts"):
            write(tmp_path, name)

        matches = await Workspace(str(tmp_path)).find_files("*.ts", limit=2)

        assert len(matches) == 2

    @pytest.mark.asyncio
    async def test_listing_is_capped(self, tmp_path):
        for name in ("a.ts", "b.ts", "c.ts"):
            write(tmp_path, name)

        assert len(await Workspace(str(tmp_path), max_files=2).list_all()) == 2

    @pytest.mark.asyncio
    async def test_listing_is_cached_per_session(self, tmp_path):
        session = SessionState()
        write(tmp_path, "a.ts")
        workspace = Workspace(str(tmp_path), session)

        first = await workspace.list_all()
        write(tmp_path, "b.ts")
        cached = await workspace.list_all()
        session.invalidate()
        fresh = await workspace.list_all()

        assert cached == first
        assert len(fresh) == 2


class TestManifests:
    """Test package.json and tsconfig.json access."""

    @pytest.mark.asyncio
    async def test_package_dependencies(self, tmp_path):
        write(
            tmp_path,
            "package.json",
            json.dumps({"dependencies": {"react": "^18.0.0", "lodash": "^4.0.0"}, "devDependencies": {"jest": "29"}}),
        )
        write(tmp_path, "node_modules/lodash/package.json", json.dumps({"version": "4.17.21"}))

        packages = await Workspace(str(tmp_path)).package_dependencies()

        assert packages == [("jest", "29"), ("lodash", "4.17.21"), ("react", "^18.0.0")]

    @pytest.mark.asyncio
    async def test_no_package_json(self, tmp_path):
        assert await Workspace(str(tmp_path)).package_dependencies() == []

    @pytest.mark.asyncio
    async def test_nearest_tsconfig_with_comments(self, tmp_path):
        write(
            tmp_path,
            "tsconfig.json",
            '{\n  // compiler settings\n  "compilerOptions": {\n    "allowJs": true, /* js too */\n  },\n}\n',
        )
        document = write(tmp_path, "src/deep/app.ts")
        workspace = Workspace(str(tmp_path))

        assert await workspace.compiler_option(document, "allowJs") is True
        assert await workspace.compiler_option(document, "esModuleInterop") is False

    @pytest.mark.asyncio
    async def test_missing_tsconfig(self, tmp_path):
        document = write(tmp_path, "src/app.ts")

        assert await Workspace(str(tmp_path)).nearest_tsconfig(document) is None


class TestLoadJsonWithComments:
    def test_plain_json(self):
        assert load_json_with_comments('{"a": 1}') == {"a": 1}

    def test_slashes_inside_strings_survive(self):
        text = '{"url": "http://example.com", // note\n "b": [1, 2,],}'

        assert load_json_with_comments(text) == {"url": "http://example.com", "b": [1, 2]}
