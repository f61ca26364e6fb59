from __future__ import annotations

import copy
import logging
import random
from typing import List, Optional, Tuple

from game_types import Color, Grid, Position
from generate_levels import LevelCache, LevelGenerator, empty_grid, time_limit_for
from level_loader import quick_save_name
from models import (
    IMPASSABLE,
    ActiveEffect,
    Direction,
    GameConfig,
    LeaderboardEntry,
    LevelFile,
    LevelState,
    Message,
    TextPrompt,
    TileKind,
)
from player import START, Player
from triggers import apply_random_trigger

logger = logging.getLogger(__name__)

MENU = "menu"
PLAYING = "playing"
EDITOR = "editor"
GAME_OVER = "game_over"

SECRET_BUFFER_SIZE = 20
PROMPT_MAX_LENGTH = 40
MAX_TIME_LIMIT = 3600

PROMPT_LABELS = {
    "level_name": "Level name",
    "time_limit": "Time limit (seconds)",
    "load_file": "Load level (name or path to .json)",
    "player_name": "Your name",
}


class GameState:
    """All mutable game state plus the rules that act on it.

    Every operation takes the current time in ms explicitly; nothing here reads a
    clock, touches pygame or does file I/O. Invalid input is ignored and reported
    through return values, never exceptions.
    """

    def __init__(
        self,
        cfg: GameConfig,
        rng: Optional[random.Random] = None,
        levels: Optional[LevelCache] = None,
    ) -> None:
        self.cfg = cfg
        self.rng = rng if rng is not None else random.Random()
        self.generator = LevelGenerator(cfg.grid_size, self.rng)
        self.levels = (
            levels if levels is not None else LevelCache(self.generator, cfg.pregenerated_levels)
        )

        self.mode = MENU
        self.grid: Grid = empty_grid(cfg.grid_size)
        self.level_state = LevelState(
            time_limit=cfg.timing.base_time_limit,
            time_remaining=cfg.timing.base_time_limit,
        )
        self.player = Player(cfg.movement)
        self.effects: List[ActiveEffect] = []
        self.messages: List[Message] = []
        self.sound_cues: List[str] = []
        self.held_direction: Optional[Direction] = None

        # editor
        self.editor_level_name = "level"
        self.editor_time_limit = cfg.timing.base_time_limit

        self.player_name = "player"
        self.text_prompt: Optional[TextPrompt] = None

        # portal easter egg, once per session
        self.secret_buffer = ""
        self.portal_until = 0
        self.portal_used = False
        self.portal_cycle_index = 0

    @property
    def grid_size(self) -> int:
        return len(self.grid)

    # ----------------------------
    # Grid queries
    # ----------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= y < len(self.grid) and 0 <= x < len(self.grid[y])

    def tile_at(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            return TileKind.WALL
        return self.grid[y][x]

    def set_tile(self, x: int, y: int, tile: TileKind) -> None:
        if self.in_bounds(x, y):
            self.grid[y][x] = tile

    def is_valid_move(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.grid[y][x] not in IMPASSABLE

    def find_tiles(self, kind: TileKind) -> List[Position]:
        """Row-major positions of every tile of the given kind."""
        return [
            (x, y)
            for y, row in enumerate(self.grid)
            for x, tile in enumerate(row)
            if tile == kind
        ]

    def remaining_keys(self) -> int:
        return sum(row.count(TileKind.KEY) for row in self.grid)

    def keys_total(self) -> int:
        return self.level_state.keys + self.remaining_keys()

    # ----------------------------
    # Output surface helpers
    # ----------------------------

    def notify(self, text: str, color: Color, now_ms: int) -> None:
        logger.debug("message: %s", text)
        self.messages.append(Message(text, color, now_ms + self.cfg.timing.message_ms))

    def add_effect(self, name: str, duration_ms: int, now_ms: int) -> None:
        expiry = now_ms + duration_ms if duration_ms > 0 else 0
        self.effects.append(ActiveEffect(name=name, expiry=expiry))

    def effect_labels(self, now_ms: int) -> List[str]:
        return [effect.label(now_ms) for effect in self.effects]

    def cue(self, name: str) -> None:
        self.sound_cues.append(name)

    def drain_cues(self) -> List[str]:
        cues, self.sound_cues = self.sound_cues, []
        return cues

    def adjust_time(self, seconds: int) -> None:
        """Add (or remove) seconds for the current level."""
        ls = self.level_state
        ls.time_adjust += seconds
        ls.time_remaining = max(0, ls.time_remaining + seconds)

    # ----------------------------
    # Session lifecycle
    # ----------------------------

    def _reset_level(self, now_ms: int) -> None:
        ls = self.level_state
        ls.keys = 0
        ls.started_ms = now_ms
        ls.time_adjust = 0
        ls.time_remaining = ls.time_limit
        self.player.reset(START)
        self.effects = []
        self.held_direction = None

    def start(self, now_ms: int) -> None:
        """Start a new run from level 1."""
        self.mode = PLAYING
        self.level_state.level = 1
        self.level_state.score = 0
        self.level_state.time_limit = self.cfg.timing.base_time_limit
        self.grid = self.levels.get(1)
        self._reset_level(now_ms)
        logger.info("new run started")

    def restart(self, now_ms: int) -> None:
        self.start(now_ms)

    def regenerate_level(self, now_ms: int) -> bool:
        """Replace the current level with a freshly generated one (timer keeps running)."""
        if self.mode != PLAYING:
            return False
        level = self.level_state.level
        self.grid = self.levels.regenerate(level)
        self.level_state.keys = 0
        self.player.reset(START)
        self.effects = []
        self.cue("regenerate")
        logger.info("level %d regenerated", level)
        return True

    def next_level(self, now_ms: int) -> None:
        ls = self.level_state
        timing = self.cfg.timing
        ls.level += 1
        ls.score += int(ls.time_remaining * self.cfg.scoring.time_bonus_multiplier)
        self.grid = self.levels.get(ls.level)
        ls.time_limit = time_limit_for(
            ls.level, timing.base_time_limit, timing.time_limit_step, timing.min_time_limit
        )
        self._reset_level(now_ms)
        logger.info(
            "advanced to level %d (score=%d, time limit=%ds)",
            ls.level,
            ls.score,
            ls.time_limit,
        )

    def game_over(self, now_ms: int) -> None:
        self.mode = GAME_OVER
        self.held_direction = None
        self.cue("game_over")
        logger.info(
            "game over at level %d with score %d", self.level_state.level, self.level_state.score
        )

    def close_game_over(self) -> None:
        if self.mode == GAME_OVER:
            self.mode = MENU

    def leaderboard_entry(self, name: str, date: str) -> LeaderboardEntry:
        return LeaderboardEntry(
            name=name,
            score=self.level_state.score,
            level=self.level_state.level,
            date=date,
            grid_size=self.grid_size,
        )

    # ----------------------------
    # Tick
    # ----------------------------

    def prune(self, now_ms: int) -> None:
        self.effects = [e for e in self.effects if not e.is_expired(now_ms)]
        self.messages = [m for m in self.messages if now_ms < m.expiry]
        self.player.prune_trail(now_ms)

    def update(self, now_ms: int) -> None:
        """One tick: timer, expiry pruning, then continuous (held) movement."""
        if self.mode == PLAYING:
            ls = self.level_state
            elapsed = (now_ms - ls.started_ms) // 1000
            ls.time_remaining = max(0, ls.time_limit + ls.time_adjust - elapsed)
            if ls.time_remaining <= 0:
                self.game_over(now_ms)
        self.prune(now_ms)

        if self.mode == PLAYING and self.held_direction is not None:
            self.apply_move(self.held_direction, now_ms)

    # ----------------------------
    # Movement
    # ----------------------------

    def apply_move(self, direction: Direction, now_ms: int) -> bool:
        """Handle one movement request; returns True if the player moved."""
        if self.mode != PLAYING:
            return False
        if self.portal_active(now_ms) and self._portal_jump(direction, now_ms):
            return True

        player = self.player
        if not player.ready_to_move(direction, now_ms):
            return False

        nx, ny = player.x + direction.dx, player.y + direction.dy
        if not self.is_valid_move(nx, ny):
            return False

        player.step_to(nx, ny, direction, now_ms)
        tile = self.grid[ny][nx]
        player.move_delay = player.delay_for_tile(tile, now_ms)
        logger.debug("moved %s to %s (delay=%dms)", direction.name, (nx, ny), player.move_delay)
        self.handle_tile_interaction(tile, nx, ny, now_ms)
        return True

    def handle_tile_interaction(self, tile: int, x: int, y: int, now_ms: int) -> None:
        ls = self.level_state
        scoring = self.cfg.scoring
        timing = self.cfg.timing

        if tile == TileKind.KEY:
            ls.keys += 1
            ls.score += scoring.key_points
            self.set_tile(x, y, TileKind.GRASS)
            self.cue("key")

        elif tile == TileKind.EXIT:
            if self.remaining_keys() == 0:
                self.cue("exit")
                self.next_level(now_ms)

        elif tile == TileKind.TRAP:
            if self.player.is_trap_immune(now_ms):
                ls.score += scoring.immunity_bonus
                self.notify("Immune!", (39, 174, 96), now_ms)
                self.notify(f"Bonus +{scoring.immunity_bonus}", (39, 174, 96), now_ms)
                self.cue("immunity")
            else:
                self.adjust_time(-scoring.trap_time_penalty)
                ls.score -= scoring.trap_penalty
                self.player.slowdown_until = now_ms + timing.slowdown_ms
                self.notify("Slowed down!", (231, 76, 60), now_ms)
                self.add_effect("Slowdown", timing.slowdown_ms, now_ms)
                self.cue("trap")
            self.set_tile(x, y, TileKind.GRASS)

        elif tile == TileKind.TRIGGER:
            self.set_tile(x, y, TileKind.GRASS)
            self.cue("trigger")
            apply_random_trigger(self, now_ms)

        elif tile == TileKind.POWERUP:
            ls.score += scoring.powerup_points
            self.set_tile(x, y, TileKind.GRASS)
            self.player.speed_boost_until = now_ms + timing.speed_boost_ms
            self.notify("Speed boost!", (241, 196, 15), now_ms)
            self.add_effect("Speed boost", timing.speed_boost_ms, now_ms)
            self.cue("powerup")

    # ----------------------------
    # Portal mode
    # ----------------------------

    def portal_active(self, now_ms: int) -> bool:
        return now_ms < self.portal_until

    def feed_secret(self, char: str, now_ms: int) -> bool:
        """Record a typed character; returns True when this activates portal mode."""
        if len(char) != 1:
            return False
        size = max(SECRET_BUFFER_SIZE, len(self.cfg.secret))
        self.secret_buffer = (self.secret_buffer + char.lower())[-size:]
        if self.portal_used or not self.secret_buffer.endswith(self.cfg.secret):
            return False

        duration = self.cfg.timing.portal_ms
        self.portal_used = True
        self.portal_until = now_ms + duration
        self.portal_cycle_index = 0
        self.notify("Key portal active! Use the arrows to jump.", (155, 89, 182), now_ms)
        self.add_effect("Portal", duration, now_ms)
        self.cue("portal")
        logger.info("portal mode activated for %dms", duration)
        return True

    def portal_targets(self) -> List[Position]:
        targets = self.find_tiles(TileKind.KEY)
        exits = self.find_tiles(TileKind.EXIT)
        if exits:
            targets.append(exits[0])
        return targets

    def _portal_jump(self, direction: Direction, now_ms: int) -> bool:
        targets = self.portal_targets()
        if not targets:
            return False
        dest = targets[self.portal_cycle_index % len(targets)]
        self.portal_cycle_index += 1

        player = self.player
        player.step_to(dest[0], dest[1], direction, now_ms)
        player.move_delay = self.cfg.movement.min_step
        self.cue("teleport")
        logger.debug("portal jump to %s", dest)
        self.handle_tile_interaction(self.tile_at(*dest), dest[0], dest[1], now_ms)
        return True

    # ----------------------------
    # Editor
    # ----------------------------

    def toggle_editor(self, now_ms: int) -> bool:
        """Enter the editor with a blank grid, or leave it for the menu."""
        if not self.cfg.editor_enabled:
            self.notify("The editor is not available in this variant.", (231, 76, 60), now_ms)
            return False
        if self.mode == EDITOR:
            self.mode = MENU
        else:
            self.mode = EDITOR
            self.grid = empty_grid(self.cfg.grid_size)
            self.held_direction = None
        return True

    def paint(self, x: int, y: int, kind: TileKind) -> bool:
        """Editor paint; writes are unchecked apart from bounds."""
        if self.mode != EDITOR or not self.in_bounds(x, y):
            return False
        self.grid[y][x] = kind
        return True

    def clear_editor(self) -> None:
        self.grid = empty_grid(self.cfg.grid_size)

    def validate_level(self) -> bool:
        """Playable: at least one key, at least one exit, start cell not impassable."""
        has_key = bool(self.find_tiles(TileKind.KEY))
        has_exit = bool(self.find_tiles(TileKind.EXIT))
        sx, sy = START
        can_start = self.in_bounds(sx, sy) and self.grid[sy][sx] not in IMPASSABLE
        return has_key and has_exit and can_start

    def test_level(self, now_ms: int) -> bool:
        """Play the editor grid as level 1. Blocked (False) when it does not validate."""
        if not self.validate_level():
            self.notify(
                "Level is not valid: it needs a free start cell (1,1), a key and an exit.",
                (231, 76, 60),
                now_ms,
            )
            return False
        self.mode = PLAYING
        self.level_state.level = 1
        self.level_state.score = 0
        self.level_state.time_limit = self.editor_time_limit
        self._reset_level(now_ms)
        logger.info("testing editor level %r", self.editor_level_name)
        return True

    def load_level(self, level_file: LevelFile, now_ms: int) -> None:
        self.grid = copy.deepcopy(level_file.map)
        self.editor_level_name = level_file.name
        self.editor_time_limit = level_file.time_limit
        self.level_state.time_limit = level_file.time_limit
        self.notify(f"Level {level_file.name!r} loaded.", (39, 174, 96), now_ms)

    def level_file(self, name: Optional[str] = None, time_limit: Optional[int] = None) -> LevelFile:
        return LevelFile(
            name=name or self.editor_level_name,
            map=copy.deepcopy(self.grid),
            time_limit=time_limit if time_limit is not None else self.editor_time_limit,
        )

    def quick_save_file(self) -> LevelFile:
        ls = self.level_state
        return LevelFile(
            name=quick_save_name(ls.level),
            map=copy.deepcopy(self.grid),
            time_limit=ls.time_limit,
            level=ls.level,
        )

    # ----------------------------
    # Text entry
    # ----------------------------

    def begin_prompt(self, purpose: str) -> TextPrompt:
        """Open a text prompt, prefilled with the value it edits."""
        initial = {
            "level_name": self.editor_level_name,
            "time_limit": str(self.editor_time_limit),
            "load_file": self.editor_level_name,
            "player_name": self.player_name,
        }
        if purpose not in initial:
            raise ValueError(f"unknown prompt purpose: {purpose!r}")
        self.text_prompt = TextPrompt(purpose, PROMPT_LABELS[purpose], initial[purpose])
        self.held_direction = None
        return self.text_prompt

    def prompt_type(self, text: str) -> None:
        prompt = self.text_prompt
        if prompt is None:
            return
        printable = "".join(ch for ch in text if ch.isprintable())
        prompt.text = (prompt.text + printable)[:PROMPT_MAX_LENGTH]

    def prompt_backspace(self) -> None:
        if self.text_prompt is not None:
            self.text_prompt.text = self.text_prompt.text[:-1]

    def cancel_prompt(self) -> None:
        self.text_prompt = None

    def submit_prompt(self, now_ms: int) -> Optional[Tuple[str, str]]:
        """Apply the prompt's value.

        Returns (purpose, value) once accepted, None when the value is rejected
        (the prompt then stays open). File actions are left to the caller.
        """
        prompt = self.text_prompt
        if prompt is None:
            return None
        value = prompt.text.strip()
        if not value:
            self.notify(f"{prompt.label} cannot be empty.", (231, 76, 60), now_ms)
            return None

        if prompt.purpose == "time_limit":
            if not value.isdigit() or not 0 < int(value) <= MAX_TIME_LIMIT:
                self.notify(
                    f"Time limit must be a whole number from 1 to {MAX_TIME_LIMIT}.",
                    (231, 76, 60),
                    now_ms,
                )
                return None
            self.editor_time_limit = int(value)
        elif prompt.purpose == "level_name":
            self.editor_level_name = value
        elif prompt.purpose == "player_name":
            self.player_name = value

        self.text_prompt = None
        logger.debug("prompt %s accepted: %r", prompt.purpose, value)
        return prompt.purpose, value
