from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, List

from config_io import write_json
from models import LeaderboardEntry

logger = logging.getLogger(__name__)

MAX_ENTRIES = 10
EXPORT_VERSION = "1.0"


class LeaderboardError(ValueError):
    """Raised when a leaderboard file cannot be read or has the wrong shape."""


def _parse_entries(raw: Any) -> List[LeaderboardEntry]:
    if isinstance(raw, dict) and isinstance(raw.get("leaderboard"), list):
        raw = raw["leaderboard"]
    if not isinstance(raw, list):
        raise LeaderboardError("Leaderboard must be a list or an export object.")
    entries: List[LeaderboardEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            raise LeaderboardError(f"Invalid leaderboard entry: {item!r}")
        try:
            entries.append(LeaderboardEntry.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            raise LeaderboardError(f"Invalid leaderboard entry {item!r}: {e}") from e
    return entries


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise LeaderboardError(f"{path} is not valid JSON: {e.msg}") from e
    except OSError as e:
        raise LeaderboardError(f"Cannot read {path}: {e}") from e


def rank(entries: List[LeaderboardEntry], limit: int = MAX_ENTRIES) -> List[LeaderboardEntry]:
    """Sort by score (descending, stable) and keep the first `limit` entries."""
    return sorted(entries, key=lambda e: e.score, reverse=True)[:limit]


class LeaderboardFile:
    """Local top-10 leaderboard stored as a JSON list."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> List[LeaderboardEntry]:
        if not self.path.exists():
            return []
        return _parse_entries(_read_json(self.path))

    def _store(self, entries: List[LeaderboardEntry]) -> None:
        write_json(self.path, [e.to_dict() for e in entries])

    def add(self, entry: LeaderboardEntry) -> List[LeaderboardEntry]:
        entries = rank(self.load() + [entry])
        self._store(entries)
        logger.info("score saved: %s %d (level %d)", entry.name, entry.score, entry.level)
        return entries

    def top_scores(self, limit: int = MAX_ENTRIES) -> List[LeaderboardEntry]:
        return rank(self.load(), limit)

    def export(self, path: Path) -> int:
        """Write the leaderboard with export metadata; returns the entry count."""
        entries = self.load()
        if not entries:
            logger.info("leaderboard is empty, nothing exported")
            return 0
        payload = {
            "leaderboard": [e.to_dict() for e in entries],
            "exported": datetime.now().isoformat(timespec="seconds"),
            "gameVersion": EXPORT_VERSION,
        }
        write_json(path, payload)
        logger.info("exported %d leaderboard entries to %s", len(entries), path)
        return len(entries)

    def import_file(self, path: Path) -> int:
        """Merge entries from an export (or bare list); returns rows read from path."""
        if not path.exists():
            raise LeaderboardError(f"File not found: {path}")
        imported = _parse_entries(_read_json(path))

        combined = self.load() + imported
        merged: List[LeaderboardEntry] = []
        seen = set()
        for entry in rank(combined, limit=len(combined)):
            if entry.identity() in seen:
                continue
            seen.add(entry.identity())
            merged.append(entry)
        self._store(merged[:MAX_ENTRIES])
        logger.info("imported %d leaderboard entries from %s", len(imported), path)
        return len(imported)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        logger.info("leaderboard cleared")


def today() -> str:
    return date.today().isoformat()
