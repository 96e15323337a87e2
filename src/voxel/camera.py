"""
Perspective camera: NDC rays, projection and orbit controls.

Conventions follow the usual OpenGL / three.js camera: right-handed,
looking down -Z in view space, NDC in [-1, 1] with +Y up.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple
import math

import numpy as np

from webcam.config import SceneConfig

WORLD_UP = np.array([0.0, 1.0, 0.0])


@dataclass
class Ray:
    origin: np.ndarray
    direction: np.ndarray

    def at(self, t: float) -> np.ndarray:
        return self.origin + self.direction * t


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / (np.linalg.norm(v) + 1e-12)


class PerspectiveCamera:
    MIN_DISTANCE = 5.0
    MAX_DISTANCE = 50.0
    MIN_POLAR = 0.05
    MAX_POLAR = math.pi - 0.05

    def __init__(
        self,
        position: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        fov: float = 60.0,
        aspect: float = 4 / 3,
        near: float = 0.1,
        far: float = 1000.0,
    ):
        self.position = np.asarray(position, dtype=float)
        self.target = np.asarray(target, dtype=float)
        self.fov = float(fov)
        self.aspect = float(aspect)
        self.near = float(near)
        self.far = float(far)

    @classmethod
    def from_config(cls, config: SceneConfig, aspect: float = 4 / 3) -> "PerspectiveCamera":
        return cls(
            position=config.camera_position,
            target=config.camera_target,
            fov=config.fov,
            aspect=aspect,
            near=config.near,
            far=config.far,
        )

    def basis(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(right, up, forward) unit vectors in world space."""
        forward = _normalize(self.target - self.position)
        right = _normalize(np.cross(forward, WORLD_UP))
        up = np.cross(right, forward)
        return right, up, forward

    @property
    def _tan_half_fov(self) -> float:
        return math.tan(math.radians(self.fov) / 2)

    def _view_direction(self, ndc: Sequence[float]) -> np.ndarray:
        right, up, forward = self.basis()
        t = self._tan_half_fov
        return forward + right * (ndc[0] * t * self.aspect) + up * (ndc[1] * t)

    def ray_from_ndc(self, ndc: Sequence[float]) -> Ray:
        return Ray(origin=self.position.copy(), direction=_normalize(self._view_direction(ndc)))

    def unproject(self, ndc: Sequence[float], ndc_depth: float) -> np.ndarray:
        """World point at NDC (x, y, ndc_depth), ndc_depth in [-1, 1]."""
        n, f = self.near, self.far
        view_depth = 2 * f * n / ((f + n) - ndc_depth * (f - n))
        return self.position + self._view_direction(ndc) * view_depth

    def project(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Project world points to NDC.

        Args:
            points: (N, 3) array of world positions.

        Returns:
            (ndc, depth): (N, 2) NDC coordinates and (N,) distances along
            the view axis. Points behind the camera have depth <= 0.
        """
        right, up, forward = self.basis()
        rel = np.atleast_2d(points) - self.position
        depth = rel @ forward
        safe = np.where(np.abs(depth) < 1e-9, 1e-9, depth)
        t = self._tan_half_fov
        ndc = np.stack([
            (rel @ right) / (safe * t * self.aspect),
            (rel @ up) / (safe * t),
        ], axis=-1)
        return ndc, depth

    def orbit(self, d_yaw: float, d_pitch: float) -> None:
        """Rotate the camera around its target (radians)."""
        offset = self.position - self.target
        radius = np.linalg.norm(offset)
        theta = math.atan2(offset[0], offset[2])
        phi = math.acos(max(-1.0, min(1.0, offset[1] / radius)))

        theta += d_yaw
        phi = max(self.MIN_POLAR, min(self.MAX_POLAR, phi + d_pitch))

        self.position = self.target + radius * np.array([
            math.sin(phi) * math.sin(theta),
            math.cos(phi),
            math.sin(phi) * math.cos(theta),
        ])

    def zoom(self, factor: float) -> None:
        offset = self.position - self.target
        radius = np.linalg.norm(offset)
        new_radius = max(self.MIN_DISTANCE, min(self.MAX_DISTANCE, radius * factor))
        self.position = self.target + offset * (new_radius / radius)
