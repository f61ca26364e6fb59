from __future__ import annotations

from conftest import FixedChoice

from game_state import GAME_OVER, PLAYING
from models import Direction, TileKind


def test_key_is_collected(state):
    state.grid[1][2] = TileKind.KEY
    state.apply_move(Direction.RIGHT, 1000)

    assert state.level_state.keys == 1
    assert state.level_state.score == 100
    assert state.grid[1][2] == TileKind.GRASS
    assert state.player.move_delay == 200
    assert state.drain_cues() == ["key"]


def test_exit_needs_all_keys(state):
    state.grid[1][2] = TileKind.EXIT
    state.grid[5][5] = TileKind.KEY
    state.apply_move(Direction.RIGHT, 1000)

    assert state.level_state.level == 1
    assert state.player.pos == (2, 1)
    assert state.grid[1][2] == TileKind.EXIT


def test_exit_advances_level(state):
    state.grid[1][2] = TileKind.KEY
    state.grid[1][3] = TileKind.EXIT
    state.apply_move(Direction.RIGHT, 1000)
    state.apply_move(Direction.RIGHT, 1200)

    ls = state.level_state
    assert ls.level == 2
    # 100 for the key plus 10 per remaining second
    assert ls.score == 100 + 120 * 10
    assert ls.time_limit == 112
    assert ls.time_remaining == 112
    assert ls.keys == 0
    assert ls.started_ms == 1200
    assert state.player.pos == (1, 1)
    assert state.player.move_delay == 200
    assert state.mode == PLAYING
    assert "exit" in state.drain_cues()


def test_trap_without_immunity(state):
    state.grid[1][2] = TileKind.TRAP
    state.apply_move(Direction.RIGHT, 1000)

    ls = state.level_state
    assert ls.score == -1500
    assert ls.time_remaining == 110
    assert state.player.slowdown_until == 6000
    assert state.player.is_slowed(5999)
    assert state.grid[1][2] == TileKind.GRASS
    assert state.effect_labels(1000) == ["Slowdown (5s)"]

    state.update(2000)
    # 120 - 10 penalty - 2 elapsed
    assert ls.time_remaining == 108


def test_trap_with_immunity(state):
    state.player.trap_immunity_until = 5000
    state.grid[1][2] = TileKind.TRAP
    state.apply_move(Direction.RIGHT, 1000)

    ls = state.level_state
    assert ls.score == 150
    assert ls.time_remaining == 120
    assert state.player.slowdown_until == 0
    assert state.grid[1][2] == TileKind.GRASS
    assert state.drain_cues() == ["immunity"]


def test_immunity_expires(state):
    state.player.trap_immunity_until = 5000
    state.grid[1][2] = TileKind.TRAP
    state.apply_move(Direction.RIGHT, 5000)
    assert state.level_state.score == -1500


def test_powerup_boosts_speed(state):
    state.grid[1][2] = TileKind.POWERUP
    state.grid[1][3] = TileKind.SNOW
    state.apply_move(Direction.RIGHT, 1000)

    assert state.level_state.score == 150
    assert state.player.is_speed_boosted(10_999)
    assert state.grid[1][2] == TileKind.GRASS
    assert state.effect_labels(1000) == ["Speed boost (10s)"]

    state.apply_move(Direction.RIGHT, 1100)
    assert state.player.move_delay == 350


def test_trigger_tile_is_consumed(state):
    state.rng = FixedChoice(1)  # award_score
    state.grid[1][2] = TileKind.TRIGGER
    state.apply_move(Direction.RIGHT, 1000)

    assert state.grid[1][2] == TileKind.GRASS
    assert state.level_state.score == 700
    assert state.drain_cues() == ["trigger"]


def test_timer_runs_out(state):
    state.update(119_999)
    assert state.mode == PLAYING
    assert state.level_state.time_remaining == 1

    state.update(120_000)
    assert state.mode == GAME_OVER
    assert state.level_state.time_remaining == 0
    assert "game_over" in state.drain_cues()


def test_regenerate_keeps_timer(state):
    state.update(30_000)
    state.player.teleport(3, 3)
    assert state.regenerate_level(30_000)

    assert state.player.pos == (1, 1)
    assert state.level_state.started_ms == 0
    assert state.level_state.time_remaining == 90
    assert state.grid[6][6] == TileKind.EXIT


def test_restart_resets_run(state):
    state.grid[1][2] = TileKind.KEY
    state.apply_move(Direction.RIGHT, 1000)
    state.restart(2000)

    ls = state.level_state
    assert (ls.level, ls.score, ls.keys, ls.time_limit) == (1, 0, 0, 120)
    assert state.player.pos == (1, 1)
