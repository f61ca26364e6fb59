from __future__ import annotations

import logging
from typing import Dict, List, Optional

from game_types import Position
from models import Direction, MovementConfig, TrailPoint

logger = logging.getLogger(__name__)

START: Position = (1, 1)


class Player:
    """Grid player: position, move pacing, timed statuses and a short trail.

    Statuses are absolute "until" timestamps (ms); 0 means inactive. They lapse
    by comparison with the current time, nothing needs cancelling.
    """

    def __init__(self, cfg: MovementConfig, start: Position = START) -> None:
        self.cfg = cfg
        self.x, self.y = start
        self.last_move_ms: int = 0
        self.move_delay: int = cfg.default_delay
        self.last_direction: Optional[Direction] = None
        self.speed_boost_until: int = 0
        self.slowdown_until: int = 0
        self.trap_immunity_until: int = 0
        self.invisibility_until: int = 0
        self.trail: List[TrailPoint] = []

    @property
    def pos(self) -> Position:
        return (self.x, self.y)

    # ---------
    # Run state
    # ---------

    def reset(self, start: Position = START) -> None:
        """Per-level reset: back to start, default pace, all statuses cleared."""
        self.x, self.y = start
        self.move_delay = self.cfg.default_delay
        self.last_direction = None
        self.speed_boost_until = 0
        self.slowdown_until = 0
        self.trap_immunity_until = 0
        self.invisibility_until = 0
        self.trail.clear()

    # ---------
    # Statuses
    # ---------

    def is_speed_boosted(self, now_ms: int) -> bool:
        return now_ms < self.speed_boost_until

    def is_slowed(self, now_ms: int) -> bool:
        return now_ms < self.slowdown_until

    def is_trap_immune(self, now_ms: int) -> bool:
        return self.trap_immunity_until > 0 and now_ms < self.trap_immunity_until

    def is_invisible(self, now_ms: int) -> bool:
        return now_ms < self.invisibility_until

    # ---------
    # Pacing
    # ---------

    def required_delay(self, direction: Direction) -> float:
        """Minimum ms since the last accepted move before moving in direction.

        Turning uses a shorter threshold so direction changes stay responsive even
        on slow tiles.
        """
        if direction == self.last_direction:
            return self.move_delay
        return max(self.move_delay * self.cfg.turn_factor, self.cfg.min_turn_step)

    def ready_to_move(self, direction: Direction, now_ms: int) -> bool:
        return now_ms - self.last_move_ms >= self.required_delay(direction)

    def delay_for_tile(self, tile: int, now_ms: int) -> int:
        """Move delay after stepping onto tile, with speed boost / slowdown applied."""
        delay = float(self.cfg.speed_for(tile))
        if self.is_speed_boosted(now_ms):
            delay = max(delay / 2, self.cfg.min_step)
        if self.is_slowed(now_ms):
            delay = delay * 2
        return int(delay)

    def step_to(self, x: int, y: int, direction: Direction, now_ms: int) -> None:
        """Move to (x, y), leaving a trail point at the previous cell."""
        self.add_trail_point(now_ms)
        self.x, self.y = x, y
        self.last_move_ms = now_ms
        self.last_direction = direction

    def teleport(self, x: int, y: int) -> None:
        self.x, self.y = x, y

    # ---------
    # Trail
    # ---------

    def add_trail_point(self, now_ms: int) -> None:
        if self.cfg.trail_capacity <= 0:
            return
        self.trail.append(
            TrailPoint(
                x=self.x,
                y=self.y,
                timestamp=now_ms,
                speed_active=self.is_speed_boosted(now_ms),
                slowdown_active=self.is_slowed(now_ms),
            )
        )
        if len(self.trail) > self.cfg.trail_capacity:
            del self.trail[: len(self.trail) - self.cfg.trail_capacity]

    def prune_trail(self, now_ms: int) -> None:
        max_age = self.cfg.trail_max_age_ms
        self.trail = [p for p in self.trail if now_ms - p.timestamp < max_age]
