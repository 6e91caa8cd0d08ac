"""Tests for JSON parameter conversion."""

import asyncio

import pytest

from quicken.utils.json_parameter_middleware import convert_value, json_convert


class TestConvertValue:
    """Test conversion of single arguments."""

    def test_list_from_json_string(self):
        assert convert_value('["a.ts", "b.ts"]', list[str], "file_paths") == ["a.ts", "b.ts"]

    def test_optional_list(self):
        assert convert_value('["a.ts"]', list[str] | None, "open_files") == ["a.ts"]
        assert convert_value(None, list[str] | None, "open_files") is None

    def test_actual_list_unchanged(self):
        value = ["a.ts"]

        assert convert_value(value, list[str], "file_paths") is value

    def test_dict_from_json_string(self):
        assert convert_value('{"a": 1}', dict[str, int], "options") == {"a": 1}

    def test_tuple_and_set(self):
        assert convert_value("[1, 2]", tuple[int, ...], "pair") == (1, 2)
        assert convert_value("[1, 1]", set[int], "unique") == {1}

    def test_plain_string_stays_a_string(self):
        assert convert_value("src/app.ts", str, "file_path") == "src/app.ts"
        assert convert_value("src/app.ts", str | list[str], "target") == "src/app.ts"

    def test_string_or_list_accepts_json_list(self):
        assert convert_value('["a", "b"]', str | list[str], "patterns") == ["a", "b"]

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="Invalid JSON in parameter 'file_paths'"):
            convert_value("[unclosed", list[str], "file_paths")

    def test_wrong_collection(self):
        with pytest.raises(ValueError, match="must be a list"):
            convert_value('{"a": 1}', list[str], "file_paths")


class TestJsonConvert:
    """Test the decorator on sync and async functions."""

    def test_sync_function(self):
        @json_convert
        def count(items: list[str], label: str = "items") -> str:
            return f"{len(items)} {label}"

        assert count('["a", "b"]') == "2 items"
        assert count(items=["a"], label="files") == "1 files"

    def test_async_function(self):
        @json_convert
        async def count(items: list[str] | None = None) -> int:
            return len(items or [])

        assert asyncio.run(count('["a", "b", "c"]')) == 3
        assert asyncio.run(count()) == 0

    def test_keeps_metadata(self):
        @json_convert
        def documented(items: list[str]) -> int:
            """Count items."""
            return len(items)

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Count items."

    def test_conversion_error_propagates(self):
        @json_convert
        def count(items: list[str]) -> int:
            return len(items)

        with pytest.raises(ValueError):
            count("not json")
