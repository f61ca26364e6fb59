from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pygame

from game_state import EDITOR, GAME_OVER, MENU, GameState
from game_types import Color
from models import LeaderboardEntry, TileKind, TileSpec

RENDER_MODES = ("flat", "gradient", "ascii")

TRAIL_COLOR: Color = (255, 255, 255)
TRAIL_SPEED_COLOR: Color = (241, 196, 15)
TRAIL_SLOW_COLOR: Color = (231, 76, 60)
PLAYER_COLOR: Color = (235, 240, 255)


def tile_rect(x: int, y: int, tile_size: int, top: int) -> pygame.Rect:
    return pygame.Rect(x * tile_size, top + y * tile_size, tile_size, tile_size)


def screen_to_tile(pos: Tuple[int, int], tile_size: int, top: int) -> Tuple[int, int]:
    """Convert a screen pixel to (x, y) grid coordinates (may be out of bounds)."""
    return (pos[0] // tile_size, (pos[1] - top) // tile_size)


def _shade(color: Color, factor: float) -> Color:
    return (
        max(0, min(255, int(color[0] * factor))),
        max(0, min(255, int(color[1] * factor))),
        max(0, min(255, int(color[2] * factor))),
    )


def _draw_shape_with_color(
    surf: pygame.Surface, shape: str, r: pygame.Rect, color: Color
) -> None:
    """Draw a tile shape inside r using the provided color."""
    if shape == "circle":
        radius = int(min(r.w, r.h) * 0.33)
        pygame.draw.circle(surf, color, r.center, radius)
        return

    pad = max(2, int(r.w * 0.15))
    if shape == "triangle":
        p1 = (r.centerx, r.top + pad)
        p2 = (r.left + pad, r.bottom - pad)
        p3 = (r.right - pad, r.bottom - pad)
        pygame.draw.polygon(surf, color, [p1, p2, p3])
        return

    if shape == "diamond":
        points = [
            (r.centerx, r.top + pad),
            (r.right - pad, r.centery),
            (r.centerx, r.bottom - pad),
            (r.left + pad, r.centery),
        ]
        pygame.draw.polygon(surf, color, points)
        return

    pygame.draw.rect(surf, color, r)


def _vertical_gradient_surface(
    size: Tuple[int, int], top: Color, bottom: Color
) -> pygame.Surface:
    """Create a vertical gradient surface from top to bottom."""
    w, h = size
    grad = pygame.Surface((w, h), pygame.SRCALPHA)

    def lerp(a: int, b: int, t: float) -> int:
        return int(a + (b - a) * t)

    for y in range(h):
        t = y / max(1, h - 1)
        color = (
            lerp(top[0], bottom[0], t),
            lerp(top[1], bottom[1], t),
            lerp(top[2], bottom[2], t),
        )
        grad.fill(color, pygame.Rect(0, y, w, 1))
    return grad


def _draw_gradient_shape(surf: pygame.Surface, shape: str, r: pygame.Rect, color: Color) -> None:
    """Draw a shape filled with a vertical gradient derived from its base color."""
    grad = _vertical_gradient_surface((r.w, r.h), _shade(color, 1.05), _shade(color, 0.55))
    if shape == "rect":
        surf.blit(grad, r)
        return
    mask = pygame.Surface((r.w, r.h), pygame.SRCALPHA)
    _draw_shape_with_color(mask, shape, pygame.Rect(0, 0, r.w, r.h), (255, 255, 255))
    grad.blit(mask, (0, 0), special_flags=pygame.BLEND_RGBA_MULT)
    surf.blit(grad, r.topleft)


def draw_tile(
    surf: pygame.Surface,
    spec: TileSpec,
    floor: TileSpec,
    r: pygame.Rect,
    render_mode: str,
    tile_font: pygame.font.Font,
) -> None:
    """Draw a single tile; non-rect items sit on a floor background."""
    if render_mode == "ascii":
        if spec.kind == TileKind.GRASS:
            return
        text = tile_font.render(spec.char, True, spec.color)
        surf.blit(text, text.get_rect(center=r.center))
        return

    if spec.shape != "rect":
        pygame.draw.rect(surf, floor.color, r)
    if render_mode == "gradient":
        _draw_gradient_shape(surf, spec.shape, r, spec.color)
    else:
        _draw_shape_with_color(surf, spec.shape, r, spec.color)


def draw_board(
    surf: pygame.Surface,
    state: GameState,
    legend: Dict[TileKind, TileSpec],
    tile_size: int,
    top: int,
    render_mode: str,
    tile_font: pygame.font.Font,
) -> None:
    floor = legend[TileKind.GRASS]
    for y, row in enumerate(state.grid):
        for x, tile in enumerate(row):
            spec = legend[TileKind(tile)]
            draw_tile(surf, spec, floor, tile_rect(x, y, tile_size, top), render_mode, tile_font)


def draw_grid_lines(
    surf: pygame.Surface, grid_size: int, tile_size: int, top: int, color: Color
) -> None:
    """Thin cell outlines (editor aid)."""
    extent = grid_size * tile_size
    for i in range(grid_size + 1):
        p = i * tile_size
        pygame.draw.line(surf, color, (p, top), (p, top + extent), 1)
        pygame.draw.line(surf, color, (0, top + p), (extent, top + p), 1)


def draw_trail(
    surf: pygame.Surface, state: GameState, tile_size: int, top: int, now_ms: int
) -> None:
    """Fading squares behind the player, tinted by the status active at the time."""
    max_age = max(1, state.cfg.movement.trail_max_age_ms)
    for point in state.player.trail:
        age = now_ms - point.timestamp
        alpha = int(160 * max(0.0, 1.0 - age / max_age))
        if alpha <= 0:
            continue
        if point.slowdown_active:
            color = TRAIL_SLOW_COLOR
        elif point.speed_active:
            color = TRAIL_SPEED_COLOR
        else:
            color = TRAIL_COLOR
        r = tile_rect(point.x, point.y, tile_size, top).inflate(-tile_size // 3, -tile_size // 3)
        dot = pygame.Surface((r.w, r.h), pygame.SRCALPHA)
        dot.fill((*color, alpha))
        surf.blit(dot, r.topleft)


def draw_player(
    surf: pygame.Surface, state: GameState, tile_size: int, top: int, now_ms: int
) -> None:
    player = state.player
    r = tile_rect(player.x, player.y, tile_size, top).inflate(-4, -4)
    color = PLAYER_COLOR
    if player.is_slowed(now_ms):
        color = TRAIL_SLOW_COLOR
    elif player.is_speed_boosted(now_ms):
        color = TRAIL_SPEED_COLOR
    alpha = 90 if player.is_invisible(now_ms) else 255
    body = pygame.Surface((r.w, r.h), pygame.SRCALPHA)
    pygame.draw.rect(body, (*color, alpha), body.get_rect(), border_radius=8)
    if player.is_trap_immune(now_ms):
        pygame.draw.rect(body, (39, 174, 96, alpha), body.get_rect(), width=3, border_radius=8)
    surf.blit(body, r.topleft)


def hud_lines(state: GameState, now_ms: int, sound_on: bool) -> List[str]:
    ls = state.level_state
    effects = state.effect_labels(now_ms)
    first = (
        f"Level {ls.level} | Time {ls.time_remaining}s | Score {ls.score} | "
        f"Keys {ls.keys}/{state.keys_total()} | Delay {state.player.move_delay}ms | "
        f"Sound (M): {'on' if sound_on else 'off'}"
    )
    second = "Effects: " + (", ".join(effects) if effects else "none")
    return [first, second]


def draw_hud(surf: pygame.Surface, font: pygame.font.Font, lines: Sequence[str]) -> int:
    """Draw HUD text lines in a top bar; returns the bar height."""
    line_h = font.get_height() + 4
    bar_height = line_h * len(lines) + 8
    bar = pygame.Surface((surf.get_width(), bar_height), pygame.SRCALPHA)
    bar.fill((0, 0, 0, 230))
    surf.blit(bar, (0, 0))
    for i, line in enumerate(lines):
        surf.blit(font.render(line, True, (255, 255, 255)), (12, 4 + i * line_h))
    return bar_height


def draw_messages(surf: pygame.Surface, font: pygame.font.Font, state: GameState) -> None:
    """Stack live toasts in the middle of the board, newest at the bottom."""
    if not state.messages:
        return
    cx, cy = surf.get_width() // 2, surf.get_height() // 2
    shown = state.messages[-3:]
    y = cy - (len(shown) * (font.get_height() + 24)) // 2
    for message in shown:
        text = font.render(message.text, True, (255, 255, 255))
        box = text.get_rect(center=(cx, y + text.get_height() // 2)).inflate(30, 18)
        pygame.draw.rect(surf, message.color, box, border_radius=10)
        surf.blit(text, text.get_rect(center=box.center))
        y += box.h + 6


def draw_panel(
    surf: pygame.Surface,
    title: str,
    lines: Sequence[str],
    title_font: pygame.font.Font,
    body_font: pygame.font.Font,
) -> None:
    """Modal panel (menu / game over) in the monospace white-on-black style."""
    window_w, window_h = surf.get_size()
    dim = pygame.Surface((window_w, window_h), pygame.SRCALPHA)
    dim.fill((0, 0, 0, 200))
    surf.blit(dim, (0, 0))

    padding = 22
    body_h = len(lines) * (body_font.get_height() + 4)
    panel_w = min(int(window_w * 0.86), 820)
    panel_h = min(title_font.get_height() + body_h + padding * 3, int(window_h * 0.9))
    panel_rect = pygame.Rect(0, 0, panel_w, panel_h)
    panel_rect.center = (window_w // 2, window_h // 2)
    pygame.draw.rect(surf, (0, 0, 0), panel_rect)
    pygame.draw.rect(surf, (255, 255, 255), panel_rect, width=2)

    title_surface = title_font.render(title, True, (255, 255, 255))
    title_rect = title_surface.get_rect(centerx=panel_rect.centerx, top=panel_rect.y + padding)
    surf.blit(title_surface, title_rect.topleft)

    cursor_y = title_rect.bottom + padding
    for line in lines:
        line_surface = body_font.render(line, True, (255, 255, 255))
        surf.blit(line_surface, (panel_rect.x + padding, cursor_y))
        cursor_y += line_surface.get_height() + 4


def leaderboard_lines(entries: Sequence[LeaderboardEntry]) -> List[str]:
    if not entries:
        return ["(no scores yet)"]
    lines = []
    for i, entry in enumerate(entries, start=1):
        grid = f", GS {entry.grid_size}" if entry.grid_size else ""
        lines.append(f"{i:>2}. {entry.name:<12} {entry.score:>7} (level {entry.level}{grid})")
    return lines


class GameRenderer:
    """Renderer that owns fonts and draws one full frame from a GameState."""

    def __init__(self, tile_size: int, font_size: int = 18) -> None:
        self.tile_size = tile_size
        self.hud_font = pygame.font.SysFont("monospace", font_size)
        self.message_font = pygame.font.SysFont("monospace", font_size + 4, bold=True)
        self.title_font = pygame.font.SysFont("monospace", int(font_size * 1.6), bold=True)
        self.tile_font = pygame.font.SysFont("monospace", max(12, int(tile_size * 0.7)))

    def hud_height(self, line_count: int = 2) -> int:
        return (self.hud_font.get_height() + 4) * line_count + 8

    def window_size(self, grid_size: int) -> Tuple[int, int]:
        return (self.tile_size * grid_size, self.tile_size * grid_size + self.hud_height())

    def render_frame(
        self,
        screen: pygame.Surface,
        bg: Color,
        state: GameState,
        legend: Dict[TileKind, TileSpec],
        now_ms: int,
        render_mode: str,
        sound_on: bool,
        selected_tile: Optional[TileKind] = None,
        leaderboard: Sequence[LeaderboardEntry] = (),
        player_name: str = "",
    ) -> None:
        """Render and present a full frame."""
        mode = render_mode if render_mode in RENDER_MODES else "flat"
        top = self.hud_height()
        screen.fill(bg)
        draw_board(screen, state, legend, self.tile_size, top, mode, self.tile_font)

        if state.mode == EDITOR:
            draw_grid_lines(screen, state.grid_size, self.tile_size, top, (40, 40, 40))
            selected = legend[selected_tile].title if selected_tile is not None else "-"
            lines = [
                f"EDITOR | Tile (0-9, -, =): {selected} | Level: {state.editor_level_name} "
                f"({state.editor_time_limit}s)",
                "Click: paint | C: clear | N: name | L: time limit | F5: save | F9: load | "
                "T: test | E: exit",
            ]
            draw_hud(screen, self.hud_font, lines)
        else:
            draw_trail(screen, state, self.tile_size, top, now_ms)
            draw_player(screen, state, self.tile_size, top, now_ms)
            draw_hud(screen, self.hud_font, hud_lines(state, now_ms, sound_on))

        if state.mode == MENU:
            draw_panel(
                screen,
                "TILE MAZE",
                [
                    "Enter: start | E: editor | Tab: render mode | Esc: quit",
                    "Arrows/WASD or mouse drag: move | F2: restart | F3: new map | Ctrl+S: quick save",
                    "Collect every key, then reach the exit before time runs out.",
                    "",
                    "Leaderboard:",
                    *leaderboard_lines(leaderboard),
                ],
                self.title_font,
                self.hud_font,
            )
        elif state.mode == GAME_OVER:
            draw_panel(
                screen,
                "TIME IS UP!",
                [
                    f"Final score: {state.level_state.score} (level {state.level_state.level})",
                    f"Enter: save score (name: {player_name}) | Backspace: skip",
                    "L: export leaderboard | I: import leaderboard | Ctrl+C: clear leaderboard",
                    "",
                    *leaderboard_lines(leaderboard),
                ],
                self.title_font,
                self.hud_font,
            )

        if state.text_prompt is not None:
            prompt = state.text_prompt
            draw_panel(
                screen,
                prompt.label,
                [prompt.text + "_", "", "Enter: confirm | Esc: cancel"],
                self.title_font,
                self.hud_font,
            )

        draw_messages(screen, self.message_font, state)
        pygame.display.flip()
