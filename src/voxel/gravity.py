"""
Single-axis gravity for unsupported voxels.
"""
from dataclasses import dataclass
from typing import List
import logging

from webcam.config import GravityConfig

from .grid import CellKey
from .store import Voxel, VoxelStore

logger = logging.getLogger(__name__)


@dataclass
class Drop:
    voxel: Voxel
    previous: CellKey


class GravitySimulator:
    """
    Drops every unsupported voxel by one cell per step.

    A voxel resting on one that falls only notices on the next step, so a
    collapsing tower falls as a visible cascade over several passes.
    """

    def __init__(self, store: VoxelStore, config: GravityConfig):
        self._store = store
        self._rate = max(1, int(config.rate))
        self.enabled = bool(config.enabled)
        self._frame = 0

    @property
    def rate(self) -> int:
        return self._rate

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        logger.info("Gravity: %s", "ON" if self.enabled else "OFF")

    def tick(self) -> List[Drop]:
        """Count one rendered frame; run a step every `rate` frames."""
        self._frame += 1
        if self._frame % self._rate != 0:
            return []
        return self.step()

    def step(self) -> List[Drop]:
        if not self.enabled:
            return []

        drops = []
        # Support is judged against the occupancy at the start of the step,
        # independent of insertion order
        snapshot = self._store.voxels
        occupied = {voxel.cell for voxel in snapshot}
        for voxel in snapshot:
            x, y, z = voxel.cell
            if y <= 0:
                continue
            below = (x, y - 1, z)
            if below in occupied:
                continue
            previous = voxel.cell
            self._store.move(voxel, below)
            drops.append(Drop(voxel=voxel, previous=previous))
        return drops
