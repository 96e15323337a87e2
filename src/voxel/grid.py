"""
Voxel lattice math: snapping, clamping and cell keys.

World coordinates put the grid centred on the origin in x/z with the
ground at y = 0. A cell's centre sits half a cell above its lower corner,
so the lowest layer is at y = cell_size / 2.
"""
from typing import Sequence, Tuple
import math

import numpy as np

from webcam.config import GridConfig

CellKey = Tuple[int, int, int]


class Grid:
    """Fixed-size lattice used by the cursor, the store and gravity."""

    def __init__(self, config: GridConfig):
        self.size = float(config.cell_size)
        self.grid_size = int(config.grid_size)
        self.max_height = int(config.max_height)

        half = self.size / 2
        half_extent = self.grid_size * self.size / 2
        self.min_xz = -half_extent + half
        self.max_xz = half_extent - half
        self.min_y = half
        self.max_y = self.max_height * self.size - half

    @property
    def ground_y(self) -> float:
        return self.min_y

    def contains(self, key: CellKey) -> bool:
        """Whether a cell key lies inside the placeable volume."""
        lo = self.key((self.min_xz, self.min_y, self.min_xz))
        hi = self.key((self.max_xz, self.max_y, self.max_xz))
        return all(l <= k <= h for k, l, h in zip(key, lo, hi))

    def snap(self, position: Sequence[float]) -> np.ndarray:
        """Snap to the enclosing cell centre and clamp to the grid bounds."""
        s = self.size
        x, y, z = (math.floor(v / s) * s + s / 2 for v in position[:3])

        x = max(self.min_xz, min(self.max_xz, x))
        y = max(self.min_y, min(self.max_y, y))
        z = max(self.min_xz, min(self.max_xz, z))
        return np.array([x, y, z], dtype=float)

    def column_center(self, x: float, z: float) -> Tuple[float, float]:
        s = self.size
        return math.floor(x / s) * s + s / 2, math.floor(z / s) * s + s / 2

    def key(self, position: Sequence[float]) -> CellKey:
        """Integer lattice coordinates of the cell containing position."""
        s = self.size
        return tuple(int(math.floor(v / s)) for v in position[:3])

    def center(self, key: CellKey) -> np.ndarray:
        s = self.size
        return np.array([(k + 0.5) * s for k in key], dtype=float)
