from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pygame

from config_io import load_json_config
from config_parsing import parse_game_config, parse_legend
from game_state import EDITOR, GAME_OVER, MENU, PLAYING, GameState
from level_loader import (
    LevelFileError,
    level_filename,
    load_level_file,
    resolve_level_path,
    save_level_file,
)
from models import Direction, TileKind
from rendering import RENDER_MODES, GameRenderer, screen_to_tile
from scoreboard import LeaderboardError, LeaderboardFile, today
from sound_controller import SoundController
from utils import as_color, deep_get, deep_merge

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "window": {"title": "Tile Maze", "tile_size": 28, "bg": [18, 20, 28], "font_size": 16},
    "render": {"mode": "flat"},
    "sound": {"enabled": True, "sample_rate": 22050, "volume": 0.1},
    "controls": {"drag_dead_zone": 20},
    "levels_dir": "levels",
    "exports_dir": "exports",
    "leaderboard_file": "leaderboard.json",
    "leaderboard_import_file": "leaderboard-import.json",
    "player_name": "player",
}

MOVE_KEYS: Dict[int, Direction] = {
    pygame.K_UP: Direction.UP,
    pygame.K_w: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_s: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_a: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_d: Direction.RIGHT,
}

# editor palette: 0-9 select tile ids 0-9, '-' trigger, '=' powerup
PALETTE_KEYS: Dict[int, TileKind] = {
    **{getattr(pygame, f"K_{i}"): TileKind(i) for i in range(10)},
    pygame.K_MINUS: TileKind.TRIGGER,
    pygame.K_EQUALS: TileKind.POWERUP,
}


def drag_direction(dx: int, dy: int, dead_zone: int) -> Optional[Direction]:
    """Direction of a drag gesture by its dominant axis, None inside the dead zone."""
    if abs(dx) < dead_zone and abs(dy) < dead_zone:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


class Game:
    """Top-level game orchestration (config, input, loop, render, sound)."""

    def __init__(
        self,
        cfg_path: Path,
        seed: Optional[int] = None,
        level_path: Optional[Path] = None,
    ) -> None:
        self.cfg = deep_merge(DEFAULT_CONFIG, load_json_config(cfg_path))
        self.game_cfg = parse_game_config(self.cfg)
        self.legend = parse_legend(self.cfg)
        self.levels_dir = Path(self.cfg.get("levels_dir", "levels"))
        self.exports_dir = Path(self.cfg.get("exports_dir", "exports"))
        self.leaderboard = LeaderboardFile(Path(self.cfg.get("leaderboard_file", "leaderboard.json")))
        self.drag_dead_zone = int(deep_get(self.cfg, "controls.drag_dead_zone", 20))

        self.state = GameState(self.game_cfg, random.Random(seed))
        self.state.player_name = str(self.cfg.get("player_name", "player")).strip() or "player"
        self.render_mode = str(deep_get(self.cfg, "render.mode", "flat")).lower()
        if self.render_mode not in RENDER_MODES:
            self.render_mode = "flat"
        self.selected_tile = TileKind.WALL
        self.held_key: Optional[int] = None
        self.drag_start: Optional[Tuple[int, int]] = None
        self.skip_text_input = False
        self.top_scores = self._load_top_scores()

        self._init_pygame()
        self.sound = SoundController(
            enabled=bool(deep_get(self.cfg, "sound.enabled", True)),
            sample_rate=int(deep_get(self.cfg, "sound.sample_rate", 22050)),
            volume=float(deep_get(self.cfg, "sound.volume", 0.1)),
        )
        if level_path is not None:
            self.open_level(level_path, self._now())
        logger.info(
            "game ready: variant=%s grid=%d seed=%s",
            self.game_cfg.variant,
            self.game_cfg.grid_size,
            seed,
        )

    # ----------------------------
    # Initialization
    # ----------------------------

    def _init_pygame(self) -> None:
        """Initialize pygame and create window + clock."""
        pygame.init()
        tile_size = int(deep_get(self.cfg, "window.tile_size", 28))
        font_size = int(deep_get(self.cfg, "window.font_size", 16))
        self.renderer = GameRenderer(tile_size, font_size)
        self.bg = as_color(deep_get(self.cfg, "window.bg", [18, 20, 28]), (18, 20, 28))
        self.screen = pygame.display.set_mode(self.renderer.window_size(self.game_cfg.grid_size))
        pygame.display.set_caption(str(deep_get(self.cfg, "window.title", "Tile Maze")))
        pygame.key.start_text_input()
        self.clock = pygame.time.Clock()

    def _now(self) -> int:
        return pygame.time.get_ticks()

    def _load_top_scores(self) -> List[Any]:
        try:
            return self.leaderboard.top_scores()
        except LeaderboardError as e:
            logger.warning("leaderboard unreadable: %s", e)
            return []

    def _error(self, text: str, now: int) -> None:
        logger.warning(text)
        self.state.notify(text, (231, 76, 60), now)

    # ----------------------------
    # Files
    # ----------------------------

    def _editor_level_path(self) -> Path:
        return self.levels_dir / level_filename(self.state.editor_level_name)

    def save_editor_level(self, now: int) -> None:
        path = self._editor_level_path()
        try:
            save_level_file(self.state.level_file(), path)
        except LevelFileError as e:
            self._error(str(e), now)
            return
        self.state.notify(f"Level saved to {path}", (39, 174, 96), now)

    def open_level(self, path: Path, now: int) -> None:
        """Load a level file into the editor (entering it first when needed)."""
        if self.state.mode != EDITOR and not self.state.toggle_editor(now):
            logger.warning("cannot open %s: the editor is disabled", path)
            return
        self.load_editor_level(path, now)

    def load_editor_level(self, path: Path, now: int) -> None:
        try:
            level_file = load_level_file(path, grid_size=self.game_cfg.grid_size)
        except LevelFileError as e:
            self._error(f"Cannot load level: {e}", now)
            return
        self.state.load_level(level_file, now)

    def quick_save(self, now: int) -> None:
        level_file = self.state.quick_save_file()
        path = self.levels_dir / level_filename(level_file.name)
        try:
            save_level_file(level_file, path)
        except LevelFileError as e:
            self._error(str(e), now)
            return
        self.state.notify(f"Level saved as {level_file.name}", (39, 174, 96), now)

    def save_score(self, now: int) -> None:
        entry = self.state.leaderboard_entry(self.state.player_name, today())
        try:
            self.top_scores = self.leaderboard.add(entry)
        except (LeaderboardError, OSError) as e:
            self._error(f"Cannot save score: {e}", now)
            return
        self.state.close_game_over()

    def export_leaderboard(self, now: int) -> None:
        path = self.exports_dir / f"leaderboard-{today()}.json"
        try:
            count = self.leaderboard.export(path)
        except (LeaderboardError, OSError) as e:
            self._error(f"Export failed: {e}", now)
            return
        if count == 0:
            self.state.notify("Leaderboard is empty.", (230, 126, 34), now)
            return
        self.state.notify(f"Exported {count} scores to {path}", (39, 174, 96), now)

    def import_leaderboard(self, now: int) -> None:
        path = Path(self.cfg.get("leaderboard_import_file", "leaderboard-import.json"))
        try:
            count = self.leaderboard.import_file(path)
        except (LeaderboardError, OSError) as e:
            self._error(f"Import failed: {e}", now)
            return
        self.top_scores = self._load_top_scores()
        self.state.notify(f"Imported {count} scores.", (39, 174, 96), now)

    def clear_leaderboard(self, now: int) -> None:
        try:
            self.leaderboard.clear()
        except OSError as e:
            self._error(f"Cannot clear leaderboard: {e}", now)
            return
        self.top_scores = []
        self.state.notify("Leaderboard cleared.", (230, 126, 34), now)

    # ----------------------------
    # Events
    # ----------------------------

    def _handle_keydown(self, e: pygame.event.Event, now: int) -> bool:
        """Handle KEYDOWN events.

        Returns:
            False if the game should exit, True otherwise.
        """
        state = self.state
        if state.text_prompt is not None:
            self._handle_prompt_key(e.key, now)
            return True
        if e.unicode and len(e.unicode) == 1 and e.unicode.isprintable():
            state.feed_secret(e.unicode, now)

        if e.key == pygame.K_TAB:
            idx = RENDER_MODES.index(self.render_mode)
            self.render_mode = RENDER_MODES[(idx + 1) % len(RENDER_MODES)]
            return True
        if e.key == pygame.K_m and state.mode != EDITOR:
            self.sound.toggle()
            return True

        if state.mode == PLAYING:
            return self._handle_playing_key(e, now)
        if state.mode == EDITOR:
            self._handle_editor_key(e, now)
            return True
        if state.mode == GAME_OVER:
            if e.key == pygame.K_RETURN:
                state.begin_prompt("player_name")
            elif e.key == pygame.K_BACKSPACE:
                state.close_game_over()
            elif e.key == pygame.K_l:
                self.export_leaderboard(now)
            elif e.key == pygame.K_i:
                self.import_leaderboard(now)
            elif e.key == pygame.K_c and e.mod & pygame.KMOD_CTRL:
                self.clear_leaderboard(now)
            return True

        # menu
        if e.key == pygame.K_ESCAPE:
            return False
        if e.key == pygame.K_RETURN:
            state.start(now)
        elif e.key == pygame.K_e:
            state.toggle_editor(now)
        return True

    def _handle_prompt_key(self, key: int, now: int) -> None:
        state = self.state
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            accepted = state.submit_prompt(now)
            if accepted is not None:
                self._prompt_accepted(*accepted, now)
        elif key == pygame.K_ESCAPE:
            state.cancel_prompt()
        elif key == pygame.K_BACKSPACE:
            state.prompt_backspace()

    def _prompt_accepted(self, purpose: str, value: str, now: int) -> None:
        if purpose == "load_file":
            self.load_editor_level(resolve_level_path(self.levels_dir, value), now)
        elif purpose == "player_name":
            self.save_score(now)
        elif purpose == "level_name":
            self.state.notify(f"Level name: {value}", (39, 174, 96), now)
        elif purpose == "time_limit":
            self.state.notify(f"Time limit: {value}s", (39, 174, 96), now)

    def _handle_playing_key(self, e: pygame.event.Event, now: int) -> bool:
        state = self.state
        if e.key == pygame.K_s and e.mod & pygame.KMOD_CTRL:
            self.quick_save(now)
            return True
        if e.key == pygame.K_ESCAPE:
            state.mode = MENU
            state.held_direction = None
            return True
        if e.key == pygame.K_F2:
            state.restart(now)
        elif e.key == pygame.K_F3:
            state.regenerate_level(now)
        elif e.key in MOVE_KEYS:
            self.held_key = e.key
            state.held_direction = MOVE_KEYS[e.key]
            state.apply_move(MOVE_KEYS[e.key], now)
        return True

    def _handle_editor_key(self, e: pygame.event.Event, now: int) -> None:
        state = self.state
        if e.key in PALETTE_KEYS:
            self.selected_tile = PALETTE_KEYS[e.key]
        elif e.key == pygame.K_c:
            state.clear_editor()
        elif e.key == pygame.K_F5:
            self.save_editor_level(now)
        elif e.key == pygame.K_F9:
            state.begin_prompt("load_file")
        elif e.key in (pygame.K_n, pygame.K_l):
            state.begin_prompt("level_name" if e.key == pygame.K_n else "time_limit")
            # the key that opened the prompt still arrives as TEXTINPUT
            self.skip_text_input = True
        elif e.key == pygame.K_t:
            state.test_level(now)
        elif e.key in (pygame.K_e, pygame.K_ESCAPE):
            state.toggle_editor(now)

    def _handle_keyup(self, key: int) -> None:
        if key == self.held_key:
            self.held_key = None
            self.state.held_direction = None

    def _paint_at(self, pos: Tuple[int, int]) -> None:
        x, y = screen_to_tile(pos, self.renderer.tile_size, self.renderer.hud_height())
        self.state.paint(x, y, self.selected_tile)

    def _handle_mouse(self, e: pygame.event.Event) -> None:
        state = self.state
        if state.text_prompt is not None:
            return
        if state.mode == EDITOR:
            if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                self._paint_at(e.pos)
            elif e.type == pygame.MOUSEMOTION and e.buttons[0]:
                self._paint_at(e.pos)
            return

        if state.mode != PLAYING:
            return
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            self.drag_start = e.pos
            state.held_direction = None
        elif e.type == pygame.MOUSEMOTION and self.drag_start is not None:
            dx = e.pos[0] - self.drag_start[0]
            dy = e.pos[1] - self.drag_start[1]
            state.held_direction = drag_direction(dx, dy, self.drag_dead_zone)
        elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            self.drag_start = None
            state.held_direction = None

    def _handle_events(self, now: int) -> bool:
        """Process pygame events.

        Returns:
            False if the game should exit, True otherwise.
        """
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                return False
            if e.type == pygame.KEYDOWN:
                if not self._handle_keydown(e, now):
                    return False
            elif e.type == pygame.TEXTINPUT:
                if self.skip_text_input:
                    self.skip_text_input = False
                elif self.state.text_prompt is not None:
                    self.state.prompt_type(e.text)
            elif e.type == pygame.KEYUP:
                self._handle_keyup(e.key)
            elif e.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
                self._handle_mouse(e)
        return True

    # ----------------------------
    # Loop
    # ----------------------------

    def run(self) -> None:
        """Run the main game loop."""
        running = True
        while running:
            self.clock.tick(60)
            now = self._now()
            running = self._handle_events(now)
            self.state.update(now)
            for cue in self.state.drain_cues():
                self.sound.play_cue(cue)

            self.renderer.render_frame(
                screen=self.screen,
                bg=self.bg,
                state=self.state,
                legend=self.legend,
                now_ms=now,
                render_mode=self.render_mode,
                sound_on=self.sound.enabled,
                selected_tile=self.selected_tile if self.state.mode == EDITOR else None,
                leaderboard=self.top_scores,
                player_name=self.state.player_name,
            )

        pygame.quit()
