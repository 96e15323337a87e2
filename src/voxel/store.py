"""
Indexed voxel collection.
"""
from dataclasses import dataclass
from itertools import count
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

from .grid import CellKey, Grid


@dataclass(eq=False)
class Voxel:
    """A placed unit cube. Identity survives gravity moves."""
    id: int
    cell: CellKey
    position: np.ndarray
    color: int


class VoxelStore:
    """
    Set of voxels keyed by grid cell.

    A dict gives O(1) lookup by cell; a parallel list keeps insertion
    order for iteration, rendering and persistence. Both are only changed
    through the methods below so they always hold the same voxels.
    """

    def __init__(self, grid: Grid):
        self._grid = grid
        self._by_cell: Dict[CellKey, Voxel] = {}
        self._voxels: List[Voxel] = []
        self._ids = count(1)

    @property
    def grid(self) -> Grid:
        return self._grid

    def __len__(self) -> int:
        return len(self._voxels)

    def __iter__(self) -> Iterator[Voxel]:
        return iter(self._voxels)

    def __contains__(self, key: CellKey) -> bool:
        return key in self._by_cell

    @property
    def voxels(self) -> List[Voxel]:
        """Snapshot of the voxels in insertion order."""
        return list(self._voxels)

    def key_of(self, position: Sequence[float]) -> CellKey:
        return self._grid.key(position)

    def exists(self, key: CellKey) -> bool:
        return key in self._by_cell

    def get(self, key: CellKey) -> Optional[Voxel]:
        return self._by_cell.get(key)

    def exists_at(self, position: Sequence[float]) -> bool:
        return self._grid.key(position) in self._by_cell

    def get_at(self, position: Sequence[float]) -> Optional[Voxel]:
        return self._by_cell.get(self._grid.key(position))

    def insert(self, position: Sequence[float], color: int) -> Optional[Voxel]:
        """
        Place a voxel in the cell containing position.

        Returns:
            The new voxel, or None if the cell was already occupied.
        """
        key = self._grid.key(position)
        if key in self._by_cell:
            return None

        voxel = Voxel(id=next(self._ids), cell=key, position=self._grid.center(key), color=int(color))
        self._by_cell[key] = voxel
        self._voxels.append(voxel)
        return voxel

    def remove(self, position: Sequence[float]) -> Optional[Voxel]:
        """
        Remove the voxel in the cell containing position.

        Returns:
            The removed voxel (for its color), or None if the cell was empty.
        """
        key = self._grid.key(position)
        voxel = self._by_cell.pop(key, None)
        if voxel is None:
            return None
        self._voxels.remove(voxel)
        return voxel

    def move(self, voxel: Voxel, key: CellKey) -> None:
        """Re-key an existing voxel to an empty cell, keeping its identity."""
        if key in self._by_cell:
            raise ValueError(f"cell {key} is occupied")
        if self._by_cell.get(voxel.cell) is not voxel:
            raise KeyError(f"voxel {voxel.id} is not in the store")

        del self._by_cell[voxel.cell]
        voxel.cell = key
        voxel.position = self._grid.center(key)
        self._by_cell[key] = voxel

    def clear(self) -> None:
        self._by_cell.clear()
        self._voxels.clear()
