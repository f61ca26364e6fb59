#!/usr/bin/env python3
"""
generate_levels.py

Generates tile-maze levels with difficulty scaling by level number.

Per generated level n:
- Border ring of wall (WALL or TREE), GRASS interior
- Random wall cells (no connectivity check, dead ends are accepted)
- max(1, n // 3) keys, exactly one exit at (N-2, N-2)
- traps, triggers, powerups (n >= 3) and SNOW/SAND patches (n > 5)
- start cell (1, 1) is always plain floor

Run as a script to write level files:
    python generate_levels.py 5 --levels-root levels --seed 7
Writes levels/level{n}.json in the editor's level file format.
"""

from __future__ import annotations

import argparse
import copy
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from game_types import Grid, Position
from level_loader import save_level_file
from models import LevelFile, TileKind

logger = logging.getLogger(__name__)

START: Position = (1, 1)
WALL_KINDS: Tuple[TileKind, ...] = (TileKind.WALL, TileKind.TREE)
FLOOR_KIND = TileKind.GRASS
MIXED_KINDS: Tuple[TileKind, ...] = (TileKind.SNOW, TileKind.SAND)


# ----------------------------
# Difficulty formulas
# ----------------------------


def complexity_for(level: int) -> int:
    return min(30 + level * 8, 80)


def key_count(level: int) -> int:
    return max(1, level // 3)


def trap_count(level: int) -> int:
    return min(level + 1, 8)


def trigger_count(level: int) -> int:
    return min(level // 2, 5)


def powerup_count(level: int) -> int:
    if level < 3:
        return 0
    return min(level // 3 + 1, 4)


def mixed_tile_count(level: int) -> int:
    if level <= 5:
        return 0
    return min(level * 3, 30)


def time_limit_for(level: int, base: int = 120, step: int = 8, floor: int = 45) -> int:
    """Seconds allowed for a level; shrinks per level down to floor."""
    return max(floor, base - (level - 1) * step)


def exit_position(grid_size: int) -> Position:
    return (grid_size - 2, grid_size - 2)


def empty_grid(grid_size: int, tile: TileKind = FLOOR_KIND) -> Grid:
    return [[tile for _ in range(grid_size)] for _ in range(grid_size)]


# ----------------------------
# Grid
# ----------------------------


class MazeBuilder:
    def __init__(self, grid_size: int, rng: random.Random) -> None:
        self.size = grid_size
        self.rng = rng
        self.grid: Grid = empty_grid(grid_size)

    def add_border(self, wall: TileKind) -> None:
        n = self.size
        for i in range(n):
            self.grid[0][i] = wall
            self.grid[n - 1][i] = wall
            self.grid[i][0] = wall
            self.grid[i][n - 1] = wall

    def set(self, x: int, y: int, tile: TileKind) -> None:
        if 0 <= x < self.size and 0 <= y < self.size:
            self.grid[y][x] = tile

    def random_interior(self) -> Position:
        """Uniform coordinate in [2, N-3] on both axes."""
        span = max(1, self.size - 4)
        return (self.rng.randrange(span) + 2, self.rng.randrange(span) + 2)

    def carve_walls(self, count: int, wall: TileKind) -> None:
        for _ in range(count):
            x, y = self.random_interior()
            if (x, y) != START:
                self.set(x, y, wall)

    def _candidates(self, floor: TileKind, excluded: Sequence[Position]) -> List[Position]:
        hi = self.size - 2
        return [
            (x, y)
            for y in range(2, hi)
            for x in range(2, hi)
            if self.grid[y][x] == floor and (x, y) not in excluded
        ]

    def scatter(
        self,
        tile: TileKind,
        count: int,
        excluded: Sequence[Position],
        floor: TileKind = FLOOR_KIND,
    ) -> int:
        """Place count tiles on random floor cells; returns how many were placed.

        Uniform over eligible cells, like retrying random coordinates until one is
        floor, but stops when no floor cell is left instead of spinning.
        """
        placed = 0
        for _ in range(count):
            candidates = self._candidates(floor, excluded)
            if not candidates:
                logger.warning(
                    "no free floor cell for %s (%d/%d placed)", tile.name, placed, count
                )
                break
            x, y = self.rng.choice(candidates)
            self.set(x, y, tile)
            placed += 1
        return placed

    def scatter_mixed(self, count: int, excluded: Sequence[Position]) -> int:
        placed = 0
        for _ in range(count):
            kind = self.rng.choice(MIXED_KINDS)
            placed += self.scatter(kind, 1, excluded)
        return placed


# ----------------------------
# Generator orchestration
# ----------------------------


class LevelGenerator:
    def __init__(self, grid_size: int = 32, rng: Optional[random.Random] = None) -> None:
        if grid_size < 6:
            raise ValueError(f"grid_size must be >= 6, got {grid_size}")
        self.grid_size = grid_size
        self.rng = rng if rng is not None else random.Random()

    def generate(self, level: int) -> Grid:
        """Build a fresh grid for the given level number (1-based)."""
        level = max(1, int(level))
        wall = self.rng.choice(WALL_KINDS)
        mb = MazeBuilder(self.grid_size, self.rng)
        mb.add_border(wall)
        mb.carve_walls(complexity_for(level), wall)

        exit_pos = exit_position(self.grid_size)
        mb.scatter(TileKind.KEY, key_count(level), excluded=[START])
        mb.set(exit_pos[0], exit_pos[1], TileKind.EXIT)

        no_go = [START, exit_pos]
        mb.scatter(TileKind.TRAP, trap_count(level), excluded=no_go)
        mb.scatter(TileKind.TRIGGER, trigger_count(level), excluded=no_go)
        mb.scatter(TileKind.POWERUP, powerup_count(level), excluded=no_go)
        mb.scatter_mixed(mixed_tile_count(level), excluded=no_go)

        logger.debug(
            "generated level %d (%dx%d, wall=%s)",
            level,
            self.grid_size,
            self.grid_size,
            wall.name,
        )
        return mb.grid


class LevelCache:
    """Pre-generated first levels; later levels are generated on demand."""

    def __init__(self, generator: LevelGenerator, count: int = 10) -> None:
        self.generator = generator
        self.levels: List[Grid] = [generator.generate(i) for i in range(1, count + 1)]

    def __len__(self) -> int:
        return len(self.levels)

    def get(self, level: int) -> Grid:
        """Return a private copy of the level grid (cached levels stay pristine)."""
        if 1 <= level <= len(self.levels):
            return copy.deepcopy(self.levels[level - 1])
        return self.generator.generate(level)

    def regenerate(self, level: int) -> Grid:
        grid = self.generator.generate(level)
        if 1 <= level <= len(self.levels):
            self.levels[level - 1] = grid
            return copy.deepcopy(grid)
        return grid


# ----------------------------
# Writer
# ----------------------------


class LevelWriter:
    def __init__(self, levels_root: Path) -> None:
        self.levels_root = levels_root

    def path_for(self, idx: int) -> Path:
        return self.levels_root / f"level{idx}.json"

    def write(self, idx: int, grid: Grid, time_limit: int) -> Path:
        level_file = LevelFile(
            name=f"level{idx}",
            map=grid,
            time_limit=time_limit,
            created=datetime.now().isoformat(timespec="seconds"),
            level=idx,
        )
        return save_level_file(level_file, self.path_for(idx))


def tile_counts(grid: Grid) -> Dict[TileKind, int]:
    counts: Dict[TileKind, int] = {}
    for row in grid:
        for tile in row:
            kind = TileKind(tile)
            counts[kind] = counts.get(kind, 0) + 1
    return counts


# ----------------------------
# CLI
# ----------------------------


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate tile-maze level files.")
    p.add_argument("count", type=int, help="How many levels to generate.")
    p.add_argument(
        "--levels-root",
        type=str,
        default="levels",
        help="Levels folder (default: levels)",
    )
    p.add_argument(
        "--start-level",
        type=int,
        default=1,
        help="Level number of the first generated level (default: 1)",
    )
    p.add_argument(
        "--grid-size",
        type=int,
        default=32,
        help="Grid dimension N (default: 32, use 16 for the compact variant)",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducible generation.",
    )
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.count <= 0:
        raise SystemExit("count must be > 0")
    if args.start_level <= 0:
        raise SystemExit("start-level must be > 0")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    generator = LevelGenerator(args.grid_size, random.Random(args.seed))
    writer = LevelWriter(Path(args.levels_root))
    for idx in range(args.start_level, args.start_level + args.count):
        grid = generator.generate(idx)
        path = writer.write(idx, grid, time_limit_for(idx))
        counts = tile_counts(grid)
        logger.info(
            "wrote %s | keys=%d traps=%d triggers=%d powerups=%d",
            path,
            counts.get(TileKind.KEY, 0),
            counts.get(TileKind.TRAP, 0),
            counts.get(TileKind.TRIGGER, 0),
            counts.get(TileKind.POWERUP, 0),
        )


if __name__ == "__main__":
    main()
