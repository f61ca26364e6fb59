from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, List, Optional

from game_types import Color, Grid


class TileKind(IntEnum):
    """Tile ids. Values are persisted in level files, do not renumber."""

    WALL = 0
    GRASS = 1
    SNOW = 2
    WATER = 3
    STONE = 4
    SAND = 5
    TREE = 6
    KEY = 7
    EXIT = 8
    TRAP = 9
    TRIGGER = 10
    POWERUP = 11


IMPASSABLE: FrozenSet[TileKind] = frozenset({TileKind.WALL, TileKind.WATER, TileKind.TREE})


class Direction(Enum):
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


@dataclass(frozen=True)
class TileSpec:
    kind: TileKind
    char: str
    shape: str  # rect|circle|triangle|diamond
    color: Color
    title: str


@dataclass(frozen=True)
class TrailPoint:
    x: int
    y: int
    timestamp: int
    speed_active: bool
    slowdown_active: bool


@dataclass
class ActiveEffect:
    """Display-only effect entry. expiry == 0 means permanent."""

    name: str
    expiry: int

    def is_expired(self, now_ms: int) -> bool:
        return self.expiry != 0 and now_ms >= self.expiry

    def remaining_seconds(self, now_ms: int) -> int:
        if self.expiry == 0:
            return 0
        # ceil without floats
        return max(0, -(-(self.expiry - now_ms) // 1000))

    def label(self, now_ms: int) -> str:
        if self.expiry > 0:
            return f"{self.name} ({self.remaining_seconds(now_ms)}s)"
        return self.name


@dataclass
class Message:
    text: str
    color: Color
    expiry: int


@dataclass
class TextPrompt:
    """Line of typed text the shell collects before acting on it."""

    purpose: str  # level_name|time_limit|load_file|player_name
    label: str
    text: str = ""


@dataclass
class LevelState:
    level: int = 1
    score: int = 0
    time_limit: int = 120
    time_remaining: int = 120
    keys: int = 0
    started_ms: int = 0
    # seconds added/removed by traps and triggers during the level
    time_adjust: int = 0


@dataclass
class LevelFile:
    name: str
    map: Grid
    time_limit: int = 120
    created: Optional[str] = None
    level: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "map": [[int(tile) for tile in row] for row in self.map],
            "timeLimit": int(self.time_limit),
            "created": self.created,
        }
        if self.level is not None:
            data["level"] = int(self.level)
        return data


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: int
    level: int
    date: str
    grid_size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "score": self.score,
            "level": self.level,
            "date": self.date,
        }
        if self.grid_size is not None:
            data["gridSize"] = self.grid_size
        return data

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "LeaderboardEntry":
        grid_size = raw.get("gridSize")
        return LeaderboardEntry(
            name=str(raw["name"]),
            score=int(raw["score"]),
            level=int(raw.get("level", 1)),
            date=str(raw.get("date", "")),
            grid_size=int(grid_size) if grid_size is not None else None,
        )

    def identity(self) -> tuple:
        return (self.name, self.score, self.date)


# ----------------------------
# Config
# ----------------------------


DEFAULT_TILE_SPEEDS: Dict[TileKind, int] = {
    TileKind.GRASS: 25,
    TileKind.SNOW: 700,
    TileKind.STONE: 1500,
    TileKind.SAND: 400,
    TileKind.KEY: 200,
    TileKind.EXIT: 500,
    TileKind.TRAP: 1500,
    TileKind.TRIGGER: 25,
    TileKind.POWERUP: 25,
}


@dataclass(frozen=True)
class MovementConfig:
    tile_speeds: Dict[TileKind, int] = field(default_factory=lambda: dict(DEFAULT_TILE_SPEEDS))
    min_step: int = 25
    min_turn_step: int = 50
    default_delay: int = 200
    turn_factor: float = 0.3
    trail_capacity: int = 15
    trail_max_age_ms: int = 1500

    def speed_for(self, tile: int) -> int:
        return self.tile_speeds.get(TileKind(tile), self.min_step)


@dataclass(frozen=True)
class ScoringConfig:
    key_points: int = 100
    powerup_points: int = 150
    immunity_bonus: int = 150
    trap_penalty: int = 1500
    trap_time_penalty: int = 10
    time_bonus_multiplier: int = 10
    trigger_time_bonus: int = 10
    trigger_score_bonus: int = 700
    trigger_delay_reduction: int = 15
    trigger_delay_floor: int = 50
    trigger_no_key_bonus: int = 100
    trigger_key_bonus: int = 350


@dataclass(frozen=True)
class TimingConfig:
    base_time_limit: int = 120
    time_limit_step: int = 8
    min_time_limit: int = 45
    slowdown_ms: int = 5000
    speed_boost_ms: int = 10000
    trap_immunity_ms: int = 10000
    invisibility_ms: int = 8000
    portal_ms: int = 2000
    message_ms: int = 2000


@dataclass(frozen=True)
class GameConfig:
    variant: str = "desktop"  # desktop|compact
    grid_size: int = 32
    pregenerated_levels: int = 10
    secret: str = "keyportal"
    editor_enabled: bool = True
    movement: MovementConfig = field(default_factory=MovementConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
