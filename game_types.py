from __future__ import annotations

from typing import List, Tuple

Color = Tuple[int, int, int]
Position = Tuple[int, int]

# grid[y][x] -> TileKind value
Grid = List[List[int]]
