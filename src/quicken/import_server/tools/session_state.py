"""
Process-scoped state shared by the import engine's entry points.

The export-record cache, the in-progress marker set and the recently
selected items are the only state that outlives a single call. Hosts own a
SessionState, pass it in, and call invalidate() when they learn that files
changed on disk.
"""

import json
import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag checked before each I/O step."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


@dataclass
class ExportEntry:
    """Provenance of one exported identifier."""

    text: str | None  # Defining snippet, or None when unknown
    path_list: tuple[str, ...]  # Nearest file first, defining file last


ExportRecord = dict[str, ExportEntry]


@dataclass
class ExportCache:
    """Memoized export records keyed by absolute path, plus the cycle guard."""

    records: dict[str, ExportRecord] = field(default_factory=dict)
    in_progress: set[str] = field(default_factory=set)

    def get(self, file_path: str) -> ExportRecord | None:
        return self.records.get(file_path)

    def commit(self, file_path: str, record: ExportRecord) -> None:
        # Entries are created once and never replaced in place
        self.records.setdefault(file_path, record)

    def invalidate(self, file_paths: list[str] | None = None) -> int:
        """Drop cached records; all of them when no paths are given."""
        if file_paths is None:
            count = len(self.records)
            self.records.clear()
            return count

        count = 0
        for file_path in file_paths:
            if self.records.pop(os.path.abspath(file_path), None) is not None:
                count += 1
        return count


@dataclass
class RecentSelections:
    """Ids of recently imported items per language id, most recent first."""

    limit: int = 10
    data: dict[str, list[str]] = field(default_factory=dict)
    storage_path: str | None = None

    def get(self, language: str) -> list[str]:
        return list(self.data.get(language, []))

    def mark_as_recently_used(self, language: str, item_id: str) -> None:
        if self.limit <= 0:
            return
        ids = self.data.setdefault(language, [])
        if item_id in ids:
            ids.remove(item_id)
        ids.insert(0, item_id)
        del ids[self.limit :]
        self.save()

    def to_json(self) -> dict[str, list[str]]:
        return {language: list(ids) for language, ids in self.data.items()}

    def from_json(self, data: dict) -> None:
        if not isinstance(data, dict):
            return
        for language, ids in data.items():
            if isinstance(ids, list):
                self.data[language] = [str(item_id) for item_id in ids][: max(self.limit, 0)]

    def load(self, storage_path: str) -> None:
        """Read selections saved by an earlier session; later marks are written back there."""
        self.storage_path = storage_path
        if not os.path.isfile(storage_path):
            return
        try:
            with open(storage_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read recent selections from {storage_path}: {e}")
            return
        self.from_json(data.get("recentSelectedItems", {}) if isinstance(data, dict) else {})

    def save(self) -> None:
        if self.storage_path is None:
            return
        try:
            with open(self.storage_path, "w", encoding="utf-8") as f:
                json.dump({"recentSelectedItems": self.to_json()}, f)
        except OSError as e:
            logger.warning(f"Could not write recent selections to {self.storage_path}: {e}")


@dataclass
class SessionState:
    """Everything the engine remembers between calls."""

    export_cache: ExportCache = field(default_factory=ExportCache)
    recent: RecentSelections = field(default_factory=RecentSelections)
    candidate_cache: dict[str, list[str]] = field(default_factory=dict)  # Enumerations keyed by root

    def invalidate(self, file_paths: list[str] | None = None) -> int:
        """
        Forget cached knowledge about changed files.

        Args:
            file_paths: Changed files, or None to forget everything

        Returns:
            Number of export records dropped
        """
        self.candidate_cache.clear()
        count = self.export_cache.invalidate(file_paths)
        logger.debug(f"Invalidated {count} export records")
        return count


_session: SessionState | None = None


def get_session() -> SessionState:
    """Get the process-wide session used by the MCP tools."""
    global _session
    if _session is None:
        _session = SessionState()
    return _session


def reset_session() -> None:
    global _session
    _session = None
