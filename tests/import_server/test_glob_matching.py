"""Tests for rule glob matching."""

from quicken.import_server.tools.glob_matching import (
    expand_brace_patterns,
    match_any,
    match_glob,
    split_inclusions,
)


class TestBraceExpansion:
    """Test brace pattern expansion."""

    def test_extension_list(self):
        assert expand_brace_patterns("src/**/*.{js,jsx}") == ["src/**/*.js", "src/**/*.jsx"]

    def test_directory_list(self):
        assert expand_brace_patterns("src/{components,utils}/*.ts") == [
            "src/components/*.ts",
            "src/utils/*.ts",
        ]

    def test_no_braces(self):
        assert expand_brace_patterns("src/**/*.py") == ["src/**/*.py"]

    def test_empty(self):
        assert expand_brace_patterns("") == []


class TestMatchGlob:
    """Test glob matching against slash-separated paths."""

    def test_double_star_spans_directories(self):
        assert match_glob("src/a/b/c.ts", "src/**/*.ts")

    def test_double_star_matches_no_directory(self):
        assert match_glob("src/c.ts", "src/**/*.ts")

    def test_leading_double_star(self):
        assert match_glob("c.ts", "**/*.ts")
        assert match_glob("deep/er/c.ts", "**/*.ts")

    def test_other_root_does_not_match(self):
        assert not match_glob("lib/c.ts", "src/**/*.ts")

    def test_single_star_stays_in_segment(self):
        assert not match_glob("a/b.ts", "*.ts")
        assert match_glob("b.ts", "*.ts")

    def test_question_mark(self):
        assert match_glob("a1.ts", "a?.ts")
        assert not match_glob("a12.ts", "a?.ts")

    def test_character_class(self):
        assert match_glob("v2.ts", "v[0-9].ts")
        assert not match_glob("vx.ts", "v[0-9].ts")

    def test_package_names(self):
        assert match_glob("lodash", "*")
        assert match_glob("@babel/core", "@*/*")
        assert not match_glob("@babel/core", "*")
        assert match_glob("lodash.debounce", "lodash*")

    def test_backslashes_are_normalized(self):
        assert match_glob("src\\a.ts", "src/*.ts")


class TestInclusions:
    """Test inclusion/exclusion handling."""

    def test_split(self):
        assert split_inclusions(["src/**", "!**/*.test.ts"]) == (["src/**"], ["**/*.test.ts"])

    def test_split_single_string(self):
        assert split_inclusions("**/*.ts") == (["**/*.ts"], [])

    def test_exclusion_wins(self):
        assert match_any("src/a.ts", ["**/*.ts"], ["**/*.test.ts"])
        assert not match_any("src/a.test.ts", ["**/*.ts"], ["**/*.test.ts"])

    def test_needs_an_inclusion(self):
        assert not match_any("src/a.ts", [], [])
