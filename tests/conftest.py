from __future__ import annotations

import random

import pytest

from game_state import GameState
from models import GameConfig, TileKind


def open_grid(size: int = 8):
    """Walled border, grass inside."""
    grid = [[TileKind.GRASS for _ in range(size)] for _ in range(size)]
    for i in range(size):
        grid[0][i] = grid[size - 1][i] = TileKind.WALL
        grid[i][0] = grid[i][size - 1] = TileKind.WALL
    return grid


class FixedChoice(random.Random):
    """Random whose choice() always returns the element at `index`."""

    def __init__(self, index: int = 0) -> None:
        super().__init__(0)
        self.index = index

    def choice(self, seq):
        return seq[self.index]


@pytest.fixture
def cfg() -> GameConfig:
    return GameConfig(grid_size=8, pregenerated_levels=0)


@pytest.fixture
def state(cfg: GameConfig) -> GameState:
    """A running game on an open 8x8 board, started at t=0."""
    st = GameState(cfg, random.Random(1))
    st.start(0)
    st.grid = open_grid(8)
    return st
