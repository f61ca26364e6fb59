from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from level_loader import (
    LevelFileError,
    level_filename,
    load_level_file,
    parse_grid,
    parse_level_file,
    quick_save_name,
    resolve_level_path,
    save_level_file,
)
from models import LevelFile, TileKind


def small_map(size=4, tile=TileKind.GRASS):
    return [[int(tile)] * size for _ in range(size)]


def test_save_and_load(tmp_path):
    grid = small_map()
    grid[1][2] = int(TileKind.KEY)
    path = save_level_file(LevelFile(name="cave", map=grid, time_limit=75), tmp_path / "cave.json")

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw) == {"name", "map", "timeLimit", "created"}
    assert raw["created"]

    loaded = load_level_file(path, grid_size=4)
    assert loaded.name == "cave"
    assert loaded.time_limit == 75
    assert loaded.map[1][2] is TileKind.KEY


def test_bare_grid_uses_defaults():
    level_file = parse_level_file(small_map(), default_name="plain")
    assert level_file.name == "plain"
    assert level_file.time_limit == 120


def test_missing_time_limit_defaults():
    level_file = parse_level_file({"map": small_map(), "timeLimit": 0})
    assert level_file.time_limit == 120


@pytest.mark.parametrize(
    "raw",
    [
        [],
        [[1, 1], [1]],
        [[1, 1], [1, 99]],
        [[1, True], [1, 1]],
        [[1, "1"], [1, 1]],
    ],
)
def test_bad_grids(raw):
    with pytest.raises(LevelFileError):
        parse_grid(raw)


def test_grid_size_must_match():
    with pytest.raises(LevelFileError):
        parse_grid(small_map(4), grid_size=8)


def test_bad_wrapper():
    with pytest.raises(LevelFileError):
        parse_level_file({"name": "no map"})
    with pytest.raises(LevelFileError):
        parse_level_file({"map": small_map(), "timeLimit": -5})


def test_load_errors(tmp_path):
    with pytest.raises(LevelFileError):
        load_level_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(LevelFileError, match="not valid JSON"):
        load_level_file(broken)


def test_file_names():
    assert level_filename("my level/1") == "my-level-1.json"
    assert level_filename("  ") == "level.json"
    assert quick_save_name(3, date(2024, 5, 1)) == "level-3-2024-05-01"


def test_resolve_typed_level_names(tmp_path):
    root = tmp_path / "levels"
    assert resolve_level_path(root, "level-3-2024-05-01") == root / "level-3-2024-05-01.json"
    assert resolve_level_path(root, " level2.json ") == root / "level2.json"
    assert resolve_level_path(root, "my level") == root / "my-level.json"
    assert resolve_level_path(root, "exports/a.json") == Path("exports/a.json")
    absolute = tmp_path / "elsewhere" / "b.json"
    assert resolve_level_path(root, str(absolute)) == absolute


def test_quick_save_is_loadable_by_its_name(tmp_path):
    name = quick_save_name(4, date(2024, 5, 1))
    save_level_file(LevelFile(name=name, map=small_map(), level=4), tmp_path / level_filename(name))

    loaded = load_level_file(resolve_level_path(tmp_path, name))
    assert loaded.name == name
    assert loaded.level == 4
