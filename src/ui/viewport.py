"""
3D voxel viewport drawn with QPainter.

Cubes are projected through the engine's camera and painted back to
front, which is plenty for a few hundred unit cubes.
"""
from typing import Optional, Tuple
import math
import time

import numpy as np
from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import Qt, QPointF, QRectF
from PyQt5.QtGui import QPainter, QPen, QColor, QPolygonF, QBrush

from voxel.engine import FrameResult, InteractionEngine, VoxelEvent
from voxel.effects import ParticleSystem
from voxel.raycast import VOXEL_SCALE
from webcam.config import SceneConfig
from webcam.gesture_machine import Phase

BACKGROUND = QColor(0x0a, 0x0a, 0x15)
GRID_COLOR = QColor(0x44, 0x44, 0x66)
LIGHT_DIR = np.array([10.0, 15.0, 10.0]) / np.linalg.norm([10.0, 15.0, 10.0])

# (normal, corner indices) for the six cube faces; corners are the
# combinations of (-1, 1) per axis in x-major order
CUBE_FACES = [
    ((1, 0, 0), (4, 5, 7, 6)),
    ((-1, 0, 0), (0, 2, 3, 1)),
    ((0, 1, 0), (2, 6, 7, 3)),
    ((0, -1, 0), (0, 1, 5, 4)),
    ((0, 0, 1), (1, 3, 7, 5)),
    ((0, 0, -1), (0, 4, 6, 2)),
]
CORNER_SIGNS = np.array([
    (sx, sy, sz) for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)
], dtype=float)


def hex_to_qcolor(value: int, alpha: int = 255) -> QColor:
    return QColor((value >> 16) & 0xff, (value >> 8) & 0xff, value & 0xff, alpha)


class VoxelViewport(QWidget):
    """
    Renders the store, floor grid, ghost cube, dwell ring and particles.

    Mouse drag orbits the camera, the wheel zooms.
    """

    def __init__(
        self,
        engine: InteractionEngine,
        particles: ParticleSystem,
        scene: SceneConfig,
        parent=None,
    ):
        super().__init__(parent)
        self._engine = engine
        self._particles = particles
        self._scene = scene
        self._result: Optional[FrameResult] = None
        self._drag_pos: Optional[QPointF] = None
        self.setMinimumSize(640, 480)
        self.setMouseTracking(False)

    def set_result(self, result: FrameResult):
        """Latest processed frame, used for the ghost and dwell ring."""
        if not result.skipped:
            self._result = result
        self.update()

    # Mesh sink: the store is redrawn every frame, so any change is a repaint
    def on_place(self, event: VoxelEvent):
        self.update()

    def on_remove(self, event: VoxelEvent):
        self.update()

    def on_move(self, event: VoxelEvent):
        self.update()

    def on_clear(self, event: VoxelEvent):
        self.update()

    # ------------------------------------------------------------------
    # Projection helpers
    # ------------------------------------------------------------------

    def _to_screen(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        ndc, depth = self._engine.camera.project(points)
        w, h = self.width(), self.height()
        screen = np.empty_like(ndc)
        screen[:, 0] = (ndc[:, 0] + 1) / 2 * w
        screen[:, 1] = (1 - ndc[:, 1]) / 2 * h
        return screen, depth

    def _cube_faces(self, center: np.ndarray, half: float, color: QColor):
        """Visible faces of one cube as (depth, polygon, shaded color)."""
        camera = self._engine.camera
        corners = center + CORNER_SIGNS * half
        screen, depth = self._to_screen(corners)
        if (depth <= camera.near).any():
            return []

        faces = []
        for normal, idx in CUBE_FACES:
            n = np.array(normal, dtype=float)
            face_center = center + n * half
            if np.dot(n, camera.position - face_center) <= 0:
                continue
            shade = 0.45 + 0.55 * max(0.0, float(np.dot(n, LIGHT_DIR)))
            shaded = QColor(
                int(color.red() * shade),
                int(color.green() * shade),
                int(color.blue() * shade),
                color.alpha(),
            )
            polygon = QPolygonF([QPointF(*screen[i]) for i in idx])
            faces.append((float(depth[list(idx)].mean()), polygon, shaded))
        return faces

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), BACKGROUND)

        self._draw_grid(painter)

        size = self._engine.grid.size
        half = size * VOXEL_SCALE / 2
        faces = []
        for voxel in self._engine.store:
            faces.extend(self._cube_faces(voxel.position, half, hex_to_qcolor(voxel.color)))

        ghost = self._engine.ghost
        if ghost.visible and ghost.position is not None:
            over = self._result.over_voxel if self._result else False
            ghost_hex = self._scene.ghost_remove_color if over else self._scene.ghost_color
            ghost_color = hex_to_qcolor(ghost_hex, int(self._scene.ghost_opacity * 255))
            faces.extend(self._cube_faces(ghost.position, half, ghost_color))

        # Painter's algorithm: far faces first
        faces.sort(key=lambda f: f[0], reverse=True)
        outline = QPen(QColor(0, 0, 0, 60))
        outline.setWidthF(1.0)
        for _, polygon, color in faces:
            painter.setPen(outline)
            painter.setBrush(QBrush(color))
            painter.drawPolygon(polygon)

        self._draw_particles(painter)
        self._draw_dwell_ring(painter)

    def _draw_grid(self, painter: QPainter):
        grid = self._engine.grid
        extent = grid.grid_size * grid.size / 2
        pen = QPen(GRID_COLOR)
        pen.setWidthF(1.0)
        painter.setPen(pen)

        for i in range(grid.grid_size + 1):
            v = -extent + i * grid.size
            for a, b in (((v, 0, -extent), (v, 0, extent)), ((-extent, 0, v), (extent, 0, v))):
                screen, depth = self._to_screen(np.array([a, b], dtype=float))
                if (depth <= self._engine.camera.near).any():
                    continue
                painter.drawLine(QPointF(*screen[0]), QPointF(*screen[1]))

    def _draw_particles(self, painter: QPainter):
        if not len(self._particles):
            return
        screen, depth = self._to_screen(self._particles.positions)
        painter.setPen(Qt.NoPen)
        focal = self.height() / (2 * math.tan(math.radians(self._engine.camera.fov) / 2))
        for (x, y), d, color, scale in zip(screen, depth, self._particles.colors, self._particles.scales):
            if d <= self._engine.camera.near:
                continue
            side = max(1.0, 0.2 * scale * focal / d)
            painter.setBrush(hex_to_qcolor(int(color)))
            painter.drawRect(QRectF(x - side / 2, y - side / 2, side, side))

    def _draw_dwell_ring(self, painter: QPainter):
        result = self._result
        ghost = self._engine.ghost
        if result is None or not ghost.visible or ghost.position is None:
            return
        progress = result.decision.dwell_progress
        if result.decision.phase != Phase.DWELLING or progress <= 0.05:
            return

        anchor = ghost.position + np.array([0.0, 0.8, 0.0])
        screen, depth = self._to_screen(anchor[None, :])
        if depth[0] <= self._engine.camera.near:
            return

        focal = self.height() / (2 * math.tan(math.radians(self._engine.camera.fov) / 2))
        scale = 0.5 + progress * 0.5
        radius = 0.675 * scale * focal / depth[0]

        # Cyan -> green as the dwell fills, with a gentle pulse
        pulse = 0.6 + math.sin(time.perf_counter() * 10) * 0.2
        color = QColor.fromRgbF(0.0, 0.7 + progress * 0.3, 1 - progress * 0.5, pulse)
        pen = QPen(color)
        pen.setWidthF(max(2.0, 0.15 * scale * focal / depth[0]))
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)

        x, y = screen[0]
        rect = QRectF(x - radius, y - radius, 2 * radius, 2 * radius)
        painter.drawArc(rect, 90 * 16, -int(progress * 360 * 16))

    # ------------------------------------------------------------------
    # Camera controls
    # ------------------------------------------------------------------

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self.height() > 0:
            self._engine.camera.aspect = self.width() / self.height()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._drag_pos = QPointF(event.pos())

    def mouseMoveEvent(self, event):
        if self._drag_pos is None:
            return
        delta = QPointF(event.pos()) - self._drag_pos
        self._drag_pos = QPointF(event.pos())
        self._engine.camera.orbit(-delta.x() * 0.01, -delta.y() * 0.01)
        self.update()

    def mouseReleaseEvent(self, event):
        self._drag_pos = None

    def wheelEvent(self, event):
        factor = 0.9 if event.angleDelta().y() > 0 else 1.1
        self._engine.camera.zoom(factor)
        self.update()
