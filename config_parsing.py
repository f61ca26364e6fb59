from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from models import (
    DEFAULT_TILE_SPEEDS,
    GameConfig,
    MovementConfig,
    ScoringConfig,
    TileKind,
    TileSpec,
    TimingConfig,
)
from utils import as_color, clamp_int

logger = logging.getLogger(__name__)

VARIANTS = ("desktop", "compact")

# compact (touch) variant: smaller grid, slower steps to match key-repeat feel
COMPACT_GRID_SIZE = 16
COMPACT_SPEED_FACTOR = 2.75
COMPACT_MIN_STEP = 90
COMPACT_MIN_TURN_STEP = 110

DEFAULT_LEGEND: Dict[TileKind, Dict[str, Any]] = {
    TileKind.WALL: {"char": "#", "shape": "rect", "color": [52, 73, 94], "title": "Wall"},
    TileKind.GRASS: {"char": ".", "shape": "rect", "color": [87, 176, 55], "title": "Grass"},
    TileKind.SNOW: {"char": "*", "shape": "rect", "color": [236, 240, 241], "title": "Snow"},
    TileKind.WATER: {"char": "~", "shape": "rect", "color": [52, 152, 219], "title": "Water"},
    TileKind.STONE: {"char": ":", "shape": "rect", "color": [127, 140, 141], "title": "Stone"},
    TileKind.SAND: {"char": ",", "shape": "rect", "color": [243, 156, 18], "title": "Sand"},
    TileKind.TREE: {"char": "T", "shape": "triangle", "color": [34, 139, 34], "title": "Tree"},
    TileKind.KEY: {"char": "k", "shape": "circle", "color": [241, 196, 15], "title": "Key"},
    TileKind.EXIT: {"char": "E", "shape": "rect", "color": [90, 49, 5], "title": "Exit"},
    TileKind.TRAP: {"char": "x", "shape": "diamond", "color": [142, 68, 173], "title": "Trap"},
    TileKind.TRIGGER: {"char": "?", "shape": "circle", "color": [230, 126, 34], "title": "Trigger"},
    TileKind.POWERUP: {"char": "+", "shape": "diamond", "color": [255, 215, 0], "title": "Powerup"},
}

SHAPES = ("rect", "circle", "triangle", "diamond")


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _parse_variant(raw: Any) -> str:
    if isinstance(raw, str) and raw.strip().lower() in VARIANTS:
        return raw.strip().lower()
    return "desktop"


def _tile_kind_from_name(name: Any) -> Optional[TileKind]:
    """Resolve "snow" / "SNOW" / "2" into a TileKind."""
    if isinstance(name, str):
        key = name.strip().upper()
        if key in TileKind.__members__:
            return TileKind[key]
        if key.isdigit():
            name = int(key)
    if isinstance(name, int) and name in TileKind._value2member_map_:
        return TileKind(name)
    return None


def _scale(ms: int, factor: float) -> int:
    return int(math.floor(ms * factor + 0.5))


def parse_tile_speeds(raw: Any, factor: float = 1.0) -> Dict[TileKind, int]:
    """Parse per-tile move delays (ms) on top of the defaults, then apply factor."""
    speeds = dict(DEFAULT_TILE_SPEEDS)
    if isinstance(raw, dict):
        for name, value in raw.items():
            kind = _tile_kind_from_name(name)
            if kind is None:
                logger.warning("ignoring tile speed for unknown tile %r", name)
                continue
            try:
                speeds[kind] = max(0, int(value))
            except (TypeError, ValueError):
                continue
    if factor != 1.0:
        speeds = {kind: _scale(ms, factor) for kind, ms in speeds.items()}
    return speeds


def parse_movement_config(raw: Dict[str, Any], variant: str) -> MovementConfig:
    compact = variant == "compact"
    factor = COMPACT_SPEED_FACTOR if compact else 1.0
    return MovementConfig(
        tile_speeds=parse_tile_speeds(raw.get("tile_speeds"), factor),
        min_step=int(raw.get("min_step", COMPACT_MIN_STEP if compact else 25)),
        min_turn_step=int(
            raw.get("min_turn_step", COMPACT_MIN_TURN_STEP if compact else 50)
        ),
        default_delay=int(raw.get("default_delay", 200)),
        turn_factor=float(raw.get("turn_factor", 0.3)),
        trail_capacity=max(0, int(raw.get("trail_capacity", 15))),
        trail_max_age_ms=max(0, int(raw.get("trail_max_age_ms", 1500))),
    )


def parse_scoring_config(raw: Dict[str, Any]) -> ScoringConfig:
    defaults = ScoringConfig()
    values = {
        name: int(raw.get(name, getattr(defaults, name)))
        for name in ScoringConfig.__dataclass_fields__
    }
    return ScoringConfig(**values)


def parse_timing_config(raw: Dict[str, Any]) -> TimingConfig:
    defaults = TimingConfig()
    values = {
        name: max(0, int(raw.get(name, getattr(defaults, name))))
        for name in TimingConfig.__dataclass_fields__
    }
    return TimingConfig(**values)


def parse_game_config(raw: Dict[str, Any]) -> GameConfig:
    """Parse the gameplay part of the config.

    Args:
        raw: Full config dict (sections: variant, grid_size, movement, scoring, timing).

    Returns:
        GameConfig with defaults and variant rules applied.
    """
    if not isinstance(raw, dict):
        raw = {}
    variant = _parse_variant(raw.get("variant"))
    compact = variant == "compact"
    grid_default = COMPACT_GRID_SIZE if compact else 32
    grid_size = clamp_int(int(raw.get("grid_size", grid_default)), 8, 128)
    secret = str(raw.get("secret", "keyportal")).strip().lower() or "keyportal"
    return GameConfig(
        variant=variant,
        grid_size=grid_size,
        pregenerated_levels=max(0, int(raw.get("pregenerated_levels", 10))),
        secret=secret,
        editor_enabled=bool(raw.get("editor_enabled", not compact)),
        movement=parse_movement_config(_section(raw, "movement"), variant),
        scoring=parse_scoring_config(_section(raw, "scoring")),
        timing=parse_timing_config(_section(raw, "timing")),
    )


def parse_legend(cfg: Dict[str, Any]) -> Dict[TileKind, TileSpec]:
    """Parse the render legend (per tile kind glyph/shape/color) from config data."""
    legend_raw = cfg.get("legend", {})
    if not isinstance(legend_raw, dict):
        legend_raw = {}

    overrides: Dict[TileKind, Dict[str, Any]] = {}
    for name, raw in legend_raw.items():
        kind = _tile_kind_from_name(name)
        if kind is None or not isinstance(raw, dict):
            continue
        overrides[kind] = raw

    legend: Dict[TileKind, TileSpec] = {}
    for kind, base in DEFAULT_LEGEND.items():
        raw = overrides.get(kind, {})
        shape = str(raw.get("shape", base["shape"])).lower()
        if shape not in SHAPES:
            shape = base["shape"]
        char_raw = str(raw.get("char", base["char"])).strip()
        legend[kind] = TileSpec(
            kind=kind,
            char=char_raw[0] if char_raw else base["char"],
            shape=shape,
            color=as_color(raw.get("color"), tuple(base["color"])),
            title=str(raw.get("title", base["title"])),
        )
    return legend
