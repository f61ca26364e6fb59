from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List

from models import IMPASSABLE, TileKind

if TYPE_CHECKING:
    from game_state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerEffect:
    name: str
    apply: Callable[["GameState", int], None]


def extend_time(state: "GameState", now_ms: int) -> None:
    bonus = state.cfg.scoring.trigger_time_bonus
    state.adjust_time(bonus)
    state.notify(f"+{bonus} seconds!", (52, 152, 219), now_ms)
    state.add_effect(f"Time +{bonus}s", 0, now_ms)


def award_score(state: "GameState", now_ms: int) -> None:
    bonus = state.cfg.scoring.trigger_score_bonus
    state.level_state.score += bonus
    state.notify(f"+{bonus} points!", (241, 196, 15), now_ms)
    state.add_effect(f"Score +{bonus}", 0, now_ms)


def reduce_move_delay(state: "GameState", now_ms: int) -> None:
    scoring = state.cfg.scoring
    player = state.player
    player.move_delay = max(
        scoring.trigger_delay_floor, player.move_delay - scoring.trigger_delay_reduction
    )
    state.notify("Speed up!", (46, 204, 113), now_ms)
    state.add_effect("Speed up", 0, now_ms)


def teleport_to_key(state: "GameState", now_ms: int) -> None:
    """Jump next to a random remaining key, or pay a small bonus when none is left."""
    keys = state.find_tiles(TileKind.KEY)
    if not keys:
        bonus = state.cfg.scoring.trigger_no_key_bonus
        state.level_state.score += bonus
        state.notify(f"No key to teleport to! +{bonus} points", (230, 126, 34), now_ms)
        state.add_effect(f"Bonus +{bonus}", 0, now_ms)
        return

    kx, ky = state.rng.choice(keys)
    # land diagonally up-left of the key; fall back to the key cell itself
    dest = (max(0, kx - 1), max(0, ky - 1))
    if state.tile_at(*dest) in IMPASSABLE:
        dest = (kx, ky)
    state.player.teleport(*dest)
    logger.debug("trigger teleport to %s (key at %s)", dest, (kx, ky))
    state.notify("Teleported to a key!", (155, 89, 182), now_ms)
    state.add_effect("Teleported", 0, now_ms)


def grant_trap_immunity(state: "GameState", now_ms: int) -> None:
    duration = state.cfg.timing.trap_immunity_ms
    state.player.trap_immunity_until = now_ms + duration
    state.notify("Trap immunity!", (231, 76, 60), now_ms)
    state.add_effect("Trap immunity", duration, now_ms)


def key_bonus(state: "GameState", now_ms: int) -> None:
    bonus = state.level_state.keys * state.cfg.scoring.trigger_key_bonus
    state.level_state.score += bonus
    state.notify(f"Key bonus: +{bonus}!", (243, 156, 18), now_ms)
    state.add_effect("Key bonus", 0, now_ms)


def grant_invisibility(state: "GameState", now_ms: int) -> None:
    duration = state.cfg.timing.invisibility_ms
    state.player.invisibility_until = now_ms + duration
    state.notify("Invisibility!", (155, 89, 182), now_ms)
    state.add_effect("Invisibility", duration, now_ms)


TRIGGER_EFFECTS: List[TriggerEffect] = [
    TriggerEffect("extend_time", extend_time),
    TriggerEffect("award_score", award_score),
    TriggerEffect("reduce_move_delay", reduce_move_delay),
    TriggerEffect("teleport_to_key", teleport_to_key),
    TriggerEffect("trap_immunity", grant_trap_immunity),
    TriggerEffect("key_bonus", key_bonus),
    TriggerEffect("invisibility", grant_invisibility),
]


def apply_random_trigger(state: "GameState", now_ms: int) -> TriggerEffect:
    """Apply one uniformly chosen effect; repeats are allowed."""
    effect = state.rng.choice(TRIGGER_EFFECTS)
    logger.debug("trigger effect %s", effect.name)
    effect.apply(state, now_ms)
    return effect
