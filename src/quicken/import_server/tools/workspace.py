"""Workspace file enumeration and project manifest access."""

import asyncio
import json
import logging
import os
import re
from typing import Any

from .glob_matching import match_any, split_inclusions
from .path_model import to_posix_path
from .session_state import SessionState

logger = logging.getLogger(__name__)

# Default folders to exclude
DEFAULT_EXCLUDE_DIRS = {
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".cache",
    ".parcel-cache",
    "coverage",
    ".nyc_output",
    ".venv",
    "venv",
    ".idea",
    ".vscode",
    ".terraform",
    "bower_components",
}

DEFAULT_MAX_FILES = 9000

# Strings first so "//" inside them survives
JSON_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def load_json_with_comments(text: str) -> Any:
    """Parse JSON that may carry tsconfig-style comments and trailing commas."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        stripped = JSON_COMMENT.sub(lambda match: match.group(1) or "", text)
        return json.loads(TRAILING_COMMA.sub(r"\1", stripped))


def _read_json(file_path: str) -> dict[str, Any] | None:
    try:
        with open(file_path, encoding="utf-8") as f:
            data = load_json_with_comments(f.read())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Cannot read JSON from {file_path}: {e}")
        return None
    return data if isinstance(data, dict) else None


class Workspace:
    """
    Files under one project root.

    The full listing is taken once per session (excluding dependency and
    build folders, capped at max_files) and filtered by glob afterwards.
    """

    def __init__(
        self,
        root_path: str,
        session: SessionState | None = None,
        max_files: int = DEFAULT_MAX_FILES,
        exclude_dirs: set[str] | None = None,
    ):
        self.root_path = os.path.abspath(root_path)
        self.session = session
        self.max_files = max_files
        self.exclude_dirs = DEFAULT_EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs

    def relative(self, file_path: str) -> str:
        """Root-relative POSIX form used for glob matching."""
        relative = os.path.relpath(file_path, self.root_path)
        return to_posix_path(relative)

    def _walk(self) -> list[str]:
        files = []
        for directory, directory_names, file_names in os.walk(self.root_path):
            directory_names[:] = sorted(name for name in directory_names if name not in self.exclude_dirs)
            for file_name in sorted(file_names):
                files.append(os.path.join(directory, file_name))
                if len(files) >= self.max_files:
                    logger.warning(f"File enumeration stopped at {self.max_files} files under {self.root_path}")
                    return files
        return files

    async def list_all(self) -> list[str]:
        if self.session is not None and self.root_path in self.session.candidate_cache:
            return self.session.candidate_cache[self.root_path]

        files = await asyncio.to_thread(self._walk)
        if self.session is not None:
            self.session.candidate_cache[self.root_path] = files
        return files

    async def find_files(
        self, include: str | list[str], exclude: str | list[str] | None = None, limit: int | None = None
    ) -> list[str]:
        """
        Absolute paths of files matching inclusion globs and no exclusion glob.

        Args:
            include: Root-relative globs; entries prefixed "!" act as exclusions
            exclude: Additional exclusion globs
            limit: Maximum number of results
        """
        inclusions, exclusions = split_inclusions(include)
        if exclude:
            exclusions.extend([exclude] if isinstance(exclude, str) else exclude)

        matches = []
        for file_path in await self.list_all():
            if match_any(self.relative(file_path), inclusions, exclusions):
                matches.append(file_path)
                if limit is not None and len(matches) >= limit:
                    break
        return matches

    async def read_json(self, file_path: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(_read_json, file_path)

    async def package_dependencies(self) -> list[tuple[str, str]]:
        """(name, version) of the root package.json dependencies and devDependencies."""
        manifest = await self.read_json(os.path.join(self.root_path, "package.json"))
        if manifest is None:
            return []

        packages = []
        for section in ("devDependencies", "dependencies"):
            for name, declared_version in (manifest.get(section) or {}).items():
                installed = await self.read_json(os.path.join(self.root_path, "node_modules", name, "package.json"))
                version = installed.get("version") if installed else None
                packages.append((name, version or str(declared_version)))

        return sorted(dict(packages).items())

    async def nearest_tsconfig(self, file_path: str) -> dict[str, Any] | None:
        """The tsconfig.json closest above a file, within the root."""
        directory = os.path.dirname(os.path.abspath(file_path))
        while True:
            config = await self.read_json(os.path.join(directory, "tsconfig.json"))
            if config is not None:
                return config
            parent = os.path.dirname(directory)
            if directory == self.root_path or parent == directory:
                return None
            directory = parent

    async def compiler_option(self, file_path: str, option: str) -> bool:
        config = await self.nearest_tsconfig(file_path)
        if not config:
            return False
        return bool((config.get("compilerOptions") or {}).get(option, False))
