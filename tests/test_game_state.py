from __future__ import annotations

import random

from game_state import EDITOR, MENU, PLAYING, GameState
from level_loader import parse_level_file
from models import ActiveEffect, Direction, GameConfig, TileKind


def type_text(state, text, now):
    return [state.feed_secret(ch, now) for ch in text]


# ----------------------------
# Effects and messages
# ----------------------------


def test_expired_effects_are_pruned(state):
    state.effects = [
        ActiveEffect("gone", 999),
        ActiveEffect("permanent", 0),
        ActiveEffect("later", 5000),
    ]
    state.update(1000)
    assert [e.name for e in state.effects] == ["permanent", "later"]
    assert state.effect_labels(1000) == ["permanent", "later (4s)"]


def test_messages_expire(state):
    state.notify("hello", (255, 255, 255), 1000)
    state.update(2999)
    assert [m.text for m in state.messages] == ["hello"]
    state.update(3000)
    assert state.messages == []


# ----------------------------
# Portal
# ----------------------------


def test_secret_activates_portal_once(state):
    results = type_text(state, "xxkeyportal", 1000)
    assert results[-1] is True
    assert not any(results[:-1])
    assert state.portal_active(2999)
    assert not state.portal_active(3000)

    assert not any(type_text(state, "keyportal", 5000))


def test_secret_is_case_insensitive(state):
    assert type_text(state, "KeyPortal", 1000)[-1]


def test_portal_jumps_through_keys_then_exit(state):
    state.grid[2][5] = TileKind.KEY
    state.grid[4][3] = TileKind.KEY
    state.grid[6][6] = TileKind.EXIT
    assert state.portal_targets() == [(5, 2), (3, 4), (6, 6)]

    type_text(state, "keyportal", 1000)
    assert state.apply_move(Direction.UP, 1000)
    assert state.player.pos == (5, 2)
    assert state.level_state.keys == 1
    assert state.player.move_delay == 25
    assert "teleport" in state.drain_cues()


def test_portal_reaching_exit_advances(state):
    state.grid[3][3] = TileKind.KEY
    state.grid[6][6] = TileKind.EXIT
    type_text(state, "keyportal", 1000)

    state.apply_move(Direction.LEFT, 1100)
    state.apply_move(Direction.LEFT, 1100)
    assert state.level_state.level == 2


def test_portal_over_falls_back_to_walking(state):
    state.grid[3][3] = TileKind.KEY
    type_text(state, "keyportal", 1000)
    state.apply_move(Direction.RIGHT, 3000)
    assert state.player.pos == (2, 1)


# ----------------------------
# Editor
# ----------------------------


def test_editor_toggle_and_paint():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0), random.Random(0))
    assert not st.paint(2, 2, TileKind.KEY)

    assert st.toggle_editor(0)
    assert st.mode == EDITOR
    assert all(tile == TileKind.GRASS for row in st.grid for tile in row)
    assert st.paint(2, 2, TileKind.KEY)
    assert not st.paint(8, 2, TileKind.KEY)
    assert st.grid[2][2] == TileKind.KEY

    st.clear_editor()
    assert st.grid[2][2] == TileKind.GRASS

    assert st.toggle_editor(0)
    assert st.mode == MENU


def test_editor_disabled_in_compact_variant():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0, editor_enabled=False))
    assert not st.toggle_editor(0)
    assert st.mode == MENU


def test_validation_rules():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0), random.Random(0))
    st.toggle_editor(0)
    assert not st.validate_level()

    st.paint(3, 3, TileKind.KEY)
    assert not st.validate_level()
    st.paint(6, 6, TileKind.EXIT)
    assert st.validate_level()

    st.paint(1, 1, TileKind.TREE)
    assert not st.validate_level()


def test_test_level_plays_editor_grid():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0), random.Random(0))
    st.toggle_editor(0)
    assert not st.test_level(0)
    assert st.mode == EDITOR

    st.paint(3, 3, TileKind.KEY)
    st.paint(6, 6, TileKind.EXIT)
    st.editor_time_limit = 60
    assert st.test_level(500)
    assert st.mode == PLAYING
    assert st.level_state.time_limit == 60
    assert st.level_state.time_remaining == 60
    assert st.grid[3][3] == TileKind.KEY


def test_load_level_into_editor():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0), random.Random(0))
    st.toggle_editor(0)
    grid = [[int(TileKind.GRASS)] * 8 for _ in range(8)]
    grid[2][2] = int(TileKind.KEY)
    level_file = parse_level_file({"name": "mine", "map": grid, "timeLimit": 90}, grid_size=8)

    st.load_level(level_file, 0)
    assert st.grid[2][2] == TileKind.KEY
    assert st.editor_level_name == "mine"
    assert st.level_file().time_limit == 90


def test_quick_save_file(state):
    state.grid[2][2] = TileKind.KEY
    saved = state.quick_save_file()
    assert saved.name.startswith("level-1-")
    assert saved.level == 1
    assert saved.map[2][2] == TileKind.KEY
    saved.map[2][2] = TileKind.GRASS
    assert state.grid[2][2] == TileKind.KEY


def test_leaderboard_entry(state):
    state.level_state.score = 420
    entry = state.leaderboard_entry("ada", "2024-01-01")
    assert (entry.name, entry.score, entry.level, entry.grid_size) == ("ada", 420, 1, 8)


# ----------------------------
# Text entry
# ----------------------------


def editor_state():
    st = GameState(GameConfig(grid_size=8, pregenerated_levels=0), random.Random(0))
    st.toggle_editor(0)
    return st


def test_prompt_renames_level():
    st = editor_state()
    prompt = st.begin_prompt("level_name")
    assert prompt.text == "level"

    for _ in range(len("level")):
        st.prompt_backspace()
    st.prompt_type("cave run")
    assert st.submit_prompt(0) == ("level_name", "cave run")
    assert st.editor_level_name == "cave run"
    assert st.text_prompt is None
    assert st.level_file().name == "cave run"


def test_prompt_sets_time_limit():
    st = editor_state()
    st.begin_prompt("time_limit")
    st.text_prompt.text = ""
    st.prompt_type("90")
    assert st.submit_prompt(0) == ("time_limit", "90")
    assert st.editor_time_limit == 90
    assert st.level_file().time_limit == 90


def test_bad_time_limit_keeps_prompt_open():
    st = editor_state()
    st.begin_prompt("time_limit")
    st.text_prompt.text = "abc"
    assert st.submit_prompt(0) is None
    assert st.text_prompt is not None
    assert st.editor_time_limit == 120

    st.text_prompt.text = "0"
    assert st.submit_prompt(0) is None
    st.cancel_prompt()
    assert st.text_prompt is None


def test_empty_prompt_is_rejected():
    st = editor_state()
    st.begin_prompt("level_name")
    st.text_prompt.text = "   "
    assert st.submit_prompt(0) is None
    assert st.editor_level_name == "level"


def test_player_name_prompt_feeds_leaderboard_entry(state):
    state.game_over(1000)
    state.begin_prompt("player_name")
    state.text_prompt.text = ""
    state.prompt_type("ada\n")
    assert state.submit_prompt(1000) == ("player_name", "ada")
    assert state.leaderboard_entry(state.player_name, "2024-01-01").name == "ada"


def test_load_file_prompt_returns_typed_reference():
    st = editor_state()
    st.begin_prompt("load_file")
    st.text_prompt.text = "level-2-2024-05-01"
    assert st.submit_prompt(0) == ("load_file", "level-2-2024-05-01")
    assert st.editor_level_name == "level"


def test_prompt_input_is_capped():
    st = editor_state()
    st.begin_prompt("level_name")
    st.prompt_type("x" * 100)
    assert len(st.text_prompt.text) == 40


def test_begin_prompt_clears_held_direction(state):
    state.held_direction = Direction.UP
    state.begin_prompt("player_name")
    assert state.held_direction is None
