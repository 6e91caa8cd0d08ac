"""Tests for path descriptors and module path computation."""

import posixpath

import pytest

from quicken.import_server.tools.path_model import (
    describe,
    module_path_for,
    relative_path,
    should_omit_extension,
    to_posix_path,
    trailing_segments,
)


class TestDescribe:
    """Test FileDescriptor derivation."""

    def test_basic_fields(self):
        """Test every field of a descriptor for a nested file."""
        descriptor = describe("/project/src/utils/format.ts")

        assert descriptor.full_path == "/project/src/utils/format.ts"
        assert descriptor.posix_path == "/project/src/utils/format.ts"
        assert descriptor.file_name_with_extension == "format.ts"
        assert descriptor.file_name_without_extension == "format"
        assert descriptor.extension == "ts"
        assert descriptor.directory_path == "/project/src/utils"
        assert descriptor.directory_posix_path == "/project/src/utils"
        assert descriptor.directory_name == "utils"

    def test_extension_keeps_case(self):
        """Extensions are stored as written and compared case-insensitively."""
        descriptor = describe("/project/Button.TSX")

        assert descriptor.extension == "TSX"
        assert descriptor.extension_is("tsx")
        assert not descriptor.extension_is("ts")

    def test_extension_is_text_after_last_dot(self):
        descriptor = describe("/project/user.service.spec.ts")

        assert descriptor.extension == "ts"
        assert descriptor.file_name_without_extension == "user.service.spec"

    def test_file_without_extension(self):
        descriptor = describe("/project/bin/run")

        assert descriptor.extension == ""
        assert descriptor.file_name_without_extension == "run"

    def test_equality_uses_full_path(self):
        """Descriptors are equal and hash alike when their paths are equal."""
        first = describe("/project/a.ts")
        second = describe("/project/a.ts")

        assert first == second
        assert len({first, second}) == 1
        assert describe("/project/b.ts") != first

    def test_index_file_detection(self):
        assert describe("/project/lib/index.js").is_index_file
        assert describe("/project/lib/INDEX.ts").is_index_file
        assert not describe("/project/lib/indexer.ts").is_index_file

    def test_relative_input_becomes_absolute(self):
        descriptor = describe("src/app.ts")

        assert posixpath.isabs(descriptor.posix_path)
        assert descriptor.file_name_with_extension == "app.ts"


class TestPosixConversion:
    """Test OS path to POSIX conversion."""

    def test_windows_drive_letter(self):
        assert to_posix_path("C:\\work\\src\\a.ts") == "/C/work/src/a.ts"

    def test_backslashes(self):
        assert to_posix_path("src\\lib\\a.ts") == "src/lib/a.ts"

    def test_posix_path_unchanged(self):
        assert to_posix_path("/usr/src/a.ts") == "/usr/src/a.ts"

    def test_trailing_segments_drop_dots(self):
        assert trailing_segments("../../helpers/foo") == ["helpers", "foo"]
        assert trailing_segments("./a/./b") == ["a", "b"]


class TestRelativePath:
    """Test relative path computation."""

    def test_child_gets_dot_prefix(self):
        assert relative_path("/p/src", "/p/src/utils/format.ts") == "./utils/format.ts"

    def test_sibling_directory(self):
        assert relative_path("/p/src/a", "/p/src/b/c.ts") == "../b/c.ts"

    def test_parent_directory(self):
        assert relative_path("/p/src/a", "/p/src") == ".."

    def test_same_directory(self):
        assert relative_path("/p/src", "/p/src") == "."

    @pytest.mark.parametrize(
        "from_directory,to_path",
        [
            ("/p/src", "/p/src/utils/format.ts"),
            ("/p/src/components/deep", "/p/lib/index.ts"),
            ("/p", "/p/a.ts"),
            ("/p/a/b/c", "/p/a/x.ts"),
            ("/p/src", "/p/src"),
        ],
    )
    def test_round_trip(self, from_directory, to_path):
        """Joining the relative path onto its starting directory leads back to the target."""
        result = relative_path(from_directory, to_path)

        assert posixpath.normpath(posixpath.join(from_directory, result)) == to_path


class TestModulePathFor:
    """Test index and extension elision."""

    def test_keeps_everything_by_default(self):
        target = describe("/p/src/lib/index.ts")

        assert module_path_for(target, "/p/src") == "./lib/index.ts"

    def test_omit_index_file(self):
        target = describe("/p/src/lib/index.ts")

        assert module_path_for(target, "/p/src", omit_index_file=True) == "./lib"

    def test_omit_index_file_in_same_directory(self):
        target = describe("/p/src/index.ts")

        assert module_path_for(target, "/p/src", omit_index_file=True) == "."

    def test_omit_extension_for_index_without_omit_index(self):
        target = describe("/p/src/lib/index.ts")

        assert module_path_for(target, "/p/src", omit_extension=True) == "./lib/index"

    def test_omit_extension_only_applies_to_matching_glob(self):
        script = describe("/p/src/format.ts")
        stylesheet = describe("/p/src/theme.css")

        assert module_path_for(script, "/p/src", omit_extension="{js,ts}") == "./format"
        assert module_path_for(stylesheet, "/p/src", omit_extension="{js,ts}") == "./theme.css"

    def test_should_omit_extension(self):
        assert should_omit_extension("ts", True)
        assert not should_omit_extension("ts", False)
        assert should_omit_extension("jsx", "js*")
        assert not should_omit_extension("css", "")
