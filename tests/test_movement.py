from __future__ import annotations

from models import Direction, MovementConfig, TileKind
from player import Player


def test_move_onto_grass(state):
    assert state.apply_move(Direction.RIGHT, 1000)
    assert state.player.pos == (2, 1)
    assert state.player.move_delay == 25
    assert state.player.last_direction is Direction.RIGHT


def test_impassable_cells_block(state):
    for kind in (TileKind.WALL, TileKind.WATER, TileKind.TREE):
        state.grid[1][2] = kind
        assert not state.apply_move(Direction.RIGHT, 1000)
        assert state.player.pos == (1, 1)
    # outer border
    assert not state.apply_move(Direction.UP, 1000)
    assert state.player.pos == (1, 1)


def test_moves_ignored_outside_play(state):
    state.game_over(500)
    assert not state.apply_move(Direction.RIGHT, 1000)
    assert state.player.pos == (1, 1)


def test_same_direction_waits_for_move_delay(state):
    assert state.apply_move(Direction.RIGHT, 1000)
    state.player.move_delay = 200
    assert not state.apply_move(Direction.RIGHT, 1050)
    assert not state.apply_move(Direction.RIGHT, 1199)
    assert state.apply_move(Direction.RIGHT, 1200)


def test_turn_uses_shorter_threshold(state):
    assert state.apply_move(Direction.RIGHT, 1000)
    state.player.move_delay = 200
    # turn threshold is max(200 * 0.3, 50) = 60
    assert not state.apply_move(Direction.DOWN, 1050)
    assert state.apply_move(Direction.DOWN, 1060)
    assert state.player.pos == (2, 2)


def test_turn_threshold_has_floor():
    player = Player(MovementConfig())
    player.last_direction = Direction.RIGHT
    player.move_delay = 25
    assert player.required_delay(Direction.UP) == 50
    assert player.required_delay(Direction.RIGHT) == 25


def test_slow_tiles_set_longer_delay(state):
    state.grid[1][2] = TileKind.STONE
    state.apply_move(Direction.RIGHT, 1000)
    assert state.player.move_delay == 1500
    assert not state.apply_move(Direction.RIGHT, 2000)
    assert state.apply_move(Direction.RIGHT, 2500)


def test_speed_boost_halves_delay_with_floor():
    player = Player(MovementConfig())
    player.speed_boost_until = 5000
    assert player.delay_for_tile(TileKind.SNOW, 1000) == 350
    assert player.delay_for_tile(TileKind.GRASS, 1000) == 25
    assert player.delay_for_tile(TileKind.SNOW, 5000) == 700


def test_slowdown_doubles_delay():
    player = Player(MovementConfig())
    player.slowdown_until = 5000
    assert player.delay_for_tile(TileKind.SAND, 1000) == 800
    player.speed_boost_until = 5000
    assert player.delay_for_tile(TileKind.SAND, 1000) == 400


def test_held_direction_moves_on_update(state):
    state.held_direction = Direction.DOWN
    state.update(1000)
    assert state.player.pos == (1, 2)
    state.update(1010)
    assert state.player.pos == (1, 2)
    state.update(1025)
    assert state.player.pos == (1, 3)


def test_trail_is_capped_and_ages_out():
    player = Player(MovementConfig(trail_capacity=3, trail_max_age_ms=1500))
    for i in range(5):
        player.step_to(1 + i, 1, Direction.RIGHT, 1000 + i * 100)
    assert len(player.trail) == 3
    assert [p.x for p in player.trail] == [2, 3, 4]

    player.prune_trail(1200 + 1500)
    assert [p.x for p in player.trail] == [3, 4]
    player.prune_trail(10_000)
    assert player.trail == []


def test_trail_records_statuses():
    player = Player(MovementConfig())
    player.speed_boost_until = 2000
    player.step_to(2, 1, Direction.RIGHT, 1000)
    point = player.trail[-1]
    assert (point.x, point.y) == (1, 1)
    assert point.speed_active and not point.slowdown_active
