from __future__ import annotations

import pygame

from game import MOVE_KEYS, PALETTE_KEYS, drag_direction
from models import Direction, TileKind


def test_drag_dead_zone():
    assert drag_direction(19, -19, 20) is None
    assert drag_direction(20, 5, 20) is Direction.RIGHT
    assert drag_direction(-3, -40, 20) is Direction.UP
    assert drag_direction(-30, 25, 20) is Direction.LEFT
    assert drag_direction(10, 30, 20) is Direction.DOWN


def test_key_maps():
    assert MOVE_KEYS[pygame.K_w] is Direction.UP
    assert MOVE_KEYS[pygame.K_RIGHT] is Direction.RIGHT
    assert PALETTE_KEYS[pygame.K_7] is TileKind.KEY
    assert PALETTE_KEYS[pygame.K_EQUALS] is TileKind.POWERUP
    assert len(PALETTE_KEYS) == len(TileKind)
