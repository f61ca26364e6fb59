from __future__ import annotations

from conftest import FixedChoice

import triggers
from models import TileKind


def test_extend_time_survives_tick(state):
    triggers.extend_time(state, 1000)
    assert state.level_state.time_remaining == 130

    state.update(5000)
    assert state.level_state.time_remaining == 125


def test_award_score(state):
    triggers.award_score(state, 1000)
    assert state.level_state.score == 700


def test_reduce_move_delay_has_floor(state):
    state.player.move_delay = 200
    triggers.reduce_move_delay(state, 1000)
    assert state.player.move_delay == 185

    state.player.move_delay = 60
    triggers.reduce_move_delay(state, 1000)
    assert state.player.move_delay == 50


def test_teleport_lands_next_to_key(state):
    state.grid[4][4] = TileKind.KEY
    triggers.teleport_to_key(state, 1000)
    assert state.player.pos == (3, 3)


def test_teleport_falls_back_to_key_cell(state):
    state.grid[4][4] = TileKind.KEY
    state.grid[3][3] = TileKind.WATER
    triggers.teleport_to_key(state, 1000)
    assert state.player.pos == (4, 4)


def test_teleport_without_keys_pays_bonus(state):
    triggers.teleport_to_key(state, 1000)
    assert state.player.pos == (1, 1)
    assert state.level_state.score == 100


def test_trap_immunity(state):
    triggers.grant_trap_immunity(state, 1000)
    assert state.player.is_trap_immune(10_999)
    assert not state.player.is_trap_immune(11_000)
    assert state.effect_labels(1000) == ["Trap immunity (10s)"]


def test_key_bonus_scales_with_keys(state):
    state.level_state.keys = 3
    triggers.key_bonus(state, 1000)
    assert state.level_state.score == 1050


def test_invisibility(state):
    triggers.grant_invisibility(state, 1000)
    assert state.player.is_invisible(8999)
    assert not state.player.is_invisible(9000)


def test_random_trigger_uses_state_rng(state):
    state.rng = FixedChoice(len(triggers.TRIGGER_EFFECTS) - 1)
    effect = triggers.apply_random_trigger(state, 1000)
    assert effect.name == "invisibility"
    assert state.player.is_invisible(1000)


def test_every_effect_is_registered():
    names = [effect.name for effect in triggers.TRIGGER_EFFECTS]
    assert len(names) == 7
    assert len(set(names)) == 7
