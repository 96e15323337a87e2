"""
Scene hit testing: ray vs. voxel boxes and ray vs. ground plane.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .camera import Ray
from .store import Voxel

# Rendered cubes leave a small gap between neighbours
VOXEL_SCALE = 0.98


@dataclass
class VoxelHit:
    voxel: Voxel
    point: np.ndarray      # World hit point
    normal: np.ndarray     # World face normal (axis aligned)
    local: np.ndarray      # Hit point relative to the voxel centre
    distance: float


def intersect_ground(ray: Ray, height: float = 0.0) -> Optional[np.ndarray]:
    """Hit point on the horizontal plane y = height, or None."""
    denom = ray.direction[1]
    if abs(denom) < 1e-9:
        return None
    t = (height - ray.origin[1]) / denom
    if t < 0:
        return None
    return ray.at(t)


def raycast_voxels(
    ray: Ray,
    voxels: Sequence[Voxel],
    cell_size: float,
    scale: float = VOXEL_SCALE,
) -> Optional[VoxelHit]:
    """
    Nearest voxel hit along the ray (slab test over all boxes at once).

    Rays starting inside a box do not hit it.
    """
    if not voxels:
        return None

    centers = np.array([v.position for v in voxels], dtype=float)
    half = cell_size * scale / 2

    direction = ray.direction
    safe = np.where(np.abs(direction) < 1e-12, np.copysign(1e-12, direction), direction)
    inv = 1.0 / safe

    t1 = (centers - half - ray.origin) * inv
    t2 = (centers + half - ray.origin) * inv
    near = np.minimum(t1, t2)
    far = np.maximum(t1, t2)
    t_enter = near.max(axis=1)
    t_exit = far.min(axis=1)

    hits = (t_enter <= t_exit) & (t_enter >= 0)
    if not hits.any():
        return None

    candidates = np.where(hits, t_enter, np.inf)
    idx = int(np.argmin(candidates))
    t = float(candidates[idx])

    axis = int(np.argmax(near[idx]))
    normal = np.zeros(3)
    normal[axis] = -1.0 if direction[axis] > 0 else 1.0

    point = ray.at(t)
    voxel = voxels[idx]
    return VoxelHit(
        voxel=voxel,
        point=point,
        normal=normal,
        local=point - voxel.position,
        distance=t,
    )
