from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from config_io import write_json
from game_types import Grid
from models import LevelFile, TileKind

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT = 120


class LevelFileError(ValueError):
    """Raised when a level file is missing, unreadable or malformed."""


def parse_grid(raw: Any, grid_size: Optional[int] = None) -> Grid:
    """Validate a raw map (list of rows of tile ids) and convert it to a Grid.

    Args:
        raw: Decoded JSON value of the map.
        grid_size: Required dimension, or None to accept any square size.

    Returns:
        A square grid of TileKind values.

    Raises:
        LevelFileError: If the map is not a square list of known tile ids.
    """
    if not isinstance(raw, list) or not raw:
        raise LevelFileError("Level map must be a non-empty list of rows.")
    size = len(raw)
    if grid_size is not None and size != grid_size:
        raise LevelFileError(f"Level map is {size} rows tall, expected {grid_size}.")

    grid: Grid = []
    for y, row in enumerate(raw):
        if not isinstance(row, list) or len(row) != size:
            raise LevelFileError(f"Row {y} must be a list of {size} tiles.")
        parsed_row = []
        for x, value in enumerate(row):
            if isinstance(value, bool) or not isinstance(value, int):
                raise LevelFileError(f"Tile at ({x}, {y}) is not an integer: {value!r}")
            try:
                parsed_row.append(TileKind(value))
            except ValueError:
                raise LevelFileError(f"Unknown tile id {value} at ({x}, {y}).") from None
        grid.append(parsed_row)
    return grid


def parse_level_file(
    raw: Any,
    grid_size: Optional[int] = None,
    default_name: str = "level",
) -> LevelFile:
    """Build a LevelFile from either the wrapper object or a bare grid."""
    if isinstance(raw, list):
        return LevelFile(
            name=default_name,
            map=parse_grid(raw, grid_size),
            time_limit=DEFAULT_TIME_LIMIT,
        )
    if not isinstance(raw, dict) or "map" not in raw:
        raise LevelFileError("Level file must be a grid or an object with a 'map' field.")

    time_limit = raw.get("timeLimit") or DEFAULT_TIME_LIMIT
    try:
        time_limit = int(time_limit)
    except (TypeError, ValueError):
        raise LevelFileError(f"Invalid timeLimit: {raw.get('timeLimit')!r}") from None
    if time_limit <= 0:
        raise LevelFileError(f"timeLimit must be positive, got {time_limit}")

    level = raw.get("level")
    name = raw.get("name")
    return LevelFile(
        name=str(name) if isinstance(name, str) and name.strip() else default_name,
        map=parse_grid(raw["map"], grid_size),
        time_limit=time_limit,
        created=str(raw["created"]) if raw.get("created") else None,
        level=int(level) if isinstance(level, int) else None,
    )


def load_level_file(path: Path, grid_size: Optional[int] = None) -> LevelFile:
    """Read and validate a level file from disk."""
    if not path.exists():
        raise LevelFileError(f"Level file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise LevelFileError(
            f"Level file {path} is not valid JSON (line {e.lineno}, col {e.colno}): {e.msg}"
        ) from e
    except OSError as e:
        raise LevelFileError(f"Cannot read level file {path}: {e}") from e
    level_file = parse_level_file(raw, grid_size, default_name=path.stem)
    logger.info("loaded level %r from %s", level_file.name, path)
    return level_file


def save_level_file(level_file: LevelFile, path: Path) -> Path:
    """Write a level file, stamping the creation time if missing."""
    if level_file.created is None:
        level_file.created = datetime.now().isoformat(timespec="seconds")
    try:
        write_json(path, level_file.to_dict())
    except OSError as e:
        raise LevelFileError(f"Cannot write level file {path}: {e}") from e
    logger.info("saved level %r to %s", level_file.name, path)
    return path


def level_filename(name: str) -> str:
    """File name for a level name, keeping it filesystem friendly."""
    cleaned = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in name.strip())
    return f"{cleaned or 'level'}.json"


def quick_save_name(level: int, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"level-{level}-{day.isoformat()}"


def resolve_level_path(levels_dir: Path, name: str) -> Path:
    """Map a typed level reference to a file.

    "my level" -> levels_dir/my-level.json, "level3.json" -> levels_dir/level3.json,
    anything with a directory part (e.g. "exports/a.json") is used as given.
    """
    text = name.strip()
    path = Path(text)
    if path.suffix.lower() == ".json":
        if path.is_absolute() or len(path.parts) > 1:
            return path
        return levels_dir / path.name
    return levels_dir / level_filename(text)
