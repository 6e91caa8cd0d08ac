"""Glob matching for rule paths, package names and file extensions."""

import re
from functools import lru_cache

BRACE_PATTERN = re.compile(r"\{([^{}]+)\}")


def expand_brace_patterns(pattern: str) -> list[str]:
    """Expand brace patterns like {js,jsx,ts,tsx} into multiple patterns.

    Examples:
        "src/**/*.{js,jsx}" -> ["src/**/*.js", "src/**/*.jsx"]
        "src/{components,utils}/*.ts" -> ["src/components/*.ts", "src/utils/*.ts"]
        "src/**/*.py" -> ["src/**/*.py"]
    """
    if not pattern:
        return []

    if "{" not in pattern or "}" not in pattern or pattern.count("{") != pattern.count("}"):
        return [pattern]

    match = BRACE_PATTERN.search(pattern)
    if not match:
        return [pattern]

    options = [opt.strip() for opt in match.group(1).split(",")]
    if not any(options):
        return [pattern]

    results = []
    for option in options:
        results.extend(expand_brace_patterns(pattern[: match.start()] + option + pattern[match.end() :]))
    return results


def _translate_segment(segment: str) -> str:
    result = ""
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            result += "[^/]*"
        elif char == "?":
            result += "[^/]"
        elif char == "[":
            end = segment.find("]", index + 1)
            if end == -1:
                result += re.escape(char)
            else:
                body = segment[index + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                result += "[" + body.replace("\\", "\\\\") + "]"
                index = end
        else:
            result += re.escape(char)
        index += 1
    return result


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern:
    """Compile one brace-free glob into a regex.

    "**" spans any number of directories (including none), "*" and "?" stay
    within one segment, and leading dots are matched like any other char.
    """
    segments = pattern.split("/")
    parts = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]*/)*")
        else:
            parts.append(_translate_segment(segment) + ("" if last else "/"))
    return re.compile("^" + "".join(parts) + "$")


def match_glob(path: str, pattern: str) -> bool:
    """Check whether a slash-separated path matches a glob (with brace expansion)."""
    path = path.replace("\\", "/")
    return any(compile_glob(expanded).match(path) for expanded in expand_brace_patterns(pattern))


def split_inclusions(patterns: str | list[str]) -> tuple[list[str], list[str]]:
    """Split a rule path list into inclusion and "!"-prefixed exclusion globs."""
    if isinstance(patterns, str):
        patterns = [patterns]
    inclusions = [pattern for pattern in patterns if not pattern.startswith("!")]
    exclusions = [pattern.lstrip("!") for pattern in patterns if pattern.startswith("!")]
    return inclusions, exclusions


def match_any(path: str, inclusions: list[str], exclusions: list[str]) -> bool:
    return any(match_glob(path, glob) for glob in inclusions) and not any(
        match_glob(path, glob) for glob in exclusions
    )
