"""
Fingertip to grid cell.

MediaPipe landmarks live in normalized [0, 1] image space with (0, 0) at
the top-left of the (mirrored) selfie view. Resolving a landmark to a cell:

1. Unmirror x and convert to NDC: ndc = (2(1 - x) - 1, -(2y - 1)).
2. Cast a ray from the camera through that NDC point.
3. Voxel faces take priority: the candidate is the hit voxel's cell plus
   one cell along the face normal. Side hits in the upper band of the face
   are bent straight up (top-edge magnetism) so stacking does not need a
   precise aim at the top face.
4. Otherwise the ray meets the floor. If the floor cell's column already
   holds voxels, the candidate is the cell above the highest one.
5. Snap and clamp to the grid.
"""
from typing import Optional, Sequence, Tuple

import numpy as np

from .camera import PerspectiveCamera
from .grid import Grid
from .raycast import intersect_ground, raycast_voxels
from .store import VoxelStore

# Side-face hits above this fraction of a cell from the centre stack upward
MAGNET_BAND = 0.3
# |normal.y| below this counts as a side face
SIDE_FACE_LIMIT = 0.9


def landmark_to_ndc(landmark: Sequence[float]) -> Tuple[float, float]:
    mirrored_x = 1.0 - landmark[0]
    return mirrored_x * 2 - 1, -(landmark[1] * 2 - 1)


class CursorResolver:
    """
    Pure function of camera, store contents and one landmark. Never
    mutates the store.
    """

    def __init__(self, camera: PerspectiveCamera, store: VoxelStore, grid: Grid):
        self._camera = camera
        self._store = store
        self._grid = grid

    @property
    def camera(self) -> PerspectiveCamera:
        return self._camera

    def target(self, landmark: Sequence[float]) -> np.ndarray:
        """Unsnapped candidate position for a fingertip landmark."""
        ndc = landmark_to_ndc(landmark)
        ray = self._camera.ray_from_ndc(ndc)
        size = self._grid.size

        hit = raycast_voxels(ray, self._store.voxels, size)
        if hit is not None:
            normal = hit.normal
            if abs(normal[1]) < SIDE_FACE_LIMIT and hit.local[1] > MAGNET_BAND * size:
                normal = np.array([0.0, 1.0, 0.0])
            return hit.voxel.position + normal * size

        point = intersect_ground(ray)
        if point is not None:
            return self._stack_on_column(point)

        # Ray never meets the floor: degenerate fallback
        fallback = self._camera.unproject(ndc, 0.5)
        fallback[1] = size / 2
        return fallback

    def _stack_on_column(self, point: np.ndarray) -> np.ndarray:
        size = self._grid.size
        gx, gz = self._grid.column_center(point[0], point[2])
        kx, _, kz = self._grid.key((gx, 0.0, gz))

        highest: Optional[int] = None
        for layer in range(self._grid.max_height):
            if self._store.exists((kx, layer, kz)):
                highest = layer

        if highest is not None:
            top_y = (highest + 0.5) * size
            return np.array([gx, top_y + size, gz])

        return np.array([point[0], size / 2, point[2]])

    def resolve(self, landmark: Sequence[float]) -> np.ndarray:
        return self._grid.snap(self.target(landmark))


class GhostCursor:
    """
    Damped preview position.

    Lerps toward each resolved cell and re-snaps, so a fingertip sitting on
    a cell boundary does not flicker between neighbours.
    """

    def __init__(self, grid: Grid, smoothing: float):
        self._grid = grid
        self._smoothing = smoothing
        self.raw: Optional[np.ndarray] = None
        self.smoothed = np.array([0.0, grid.ground_y, 0.0])
        self.position: Optional[np.ndarray] = None
        self.visible = False

    def update(self, target: np.ndarray) -> np.ndarray:
        self.raw = np.asarray(target, dtype=float)
        self.smoothed = self.smoothed + (self.raw - self.smoothed) * self._smoothing
        self.position = self._grid.snap(self.smoothed)
        self.visible = True
        return self.position

    def hide(self) -> None:
        self.visible = False
