"""
Per-frame interaction pipeline.

hand frame -> smoother -> cursor resolver -> ghost cursor -> gesture
machine -> voxel store, plus a gravity pass every few rendered frames.

The engine never calls effect sinks. Every mutation returns a VoxelEvent
describing what happened and the caller hands those to an
EffectDispatcher.
"""
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from webcam.config import Config
from webcam.gesture_machine import Action, GestureDecision, GestureMachine, select_roles
from webcam.landmarks import HandFrame, HandLandmarks
from webcam.smoothing import Handedness, LandmarkSmoother

from .camera import PerspectiveCamera
from .cursor import CursorResolver, GhostCursor
from .gravity import GravitySimulator
from .grid import Grid
from .persistence import MapStorage
from .store import VoxelStore

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


class EventKind(Enum):
    PLACED = auto()
    REMOVED = auto()
    MOVED = auto()
    CLEARED = auto()


@dataclass(frozen=True)
class VoxelEvent:
    kind: EventKind
    position: Optional[Vec3] = None
    color: Optional[int] = None
    previous: Optional[Vec3] = None
    voxel_id: Optional[int] = None


@dataclass
class FrameResult:
    """What one processed hand frame did, for the HUD and effect dispatch."""
    skipped: bool = False
    hand_count: int = 0
    events: List[VoxelEvent] = field(default_factory=list)
    decision: GestureDecision = field(default_factory=GestureDecision)
    cursor: Optional[np.ndarray] = None
    over_voxel: bool = False


def _vec(position: Sequence[float]) -> Vec3:
    return (float(position[0]), float(position[1]), float(position[2]))


class InteractionEngine:
    """
    Owns every piece of interaction state. Runs on a single thread; call
    process() for each new hand frame and tick() once per rendered frame.
    """

    def __init__(
        self,
        config: Config,
        camera: Optional[PerspectiveCamera] = None,
        storage: Optional[MapStorage] = None,
    ):
        self._config = config
        self.grid = Grid(config.grid)
        self.store = VoxelStore(self.grid)
        self.camera = camera or PerspectiveCamera.from_config(config.scene)
        self.storage = storage

        self.smoother = LandmarkSmoother(config.gestures.smoothing_alpha)
        self.resolver = CursorResolver(self.camera, self.store, self.grid)
        self.ghost = GhostCursor(self.grid, config.gestures.ghost_smoothing)
        self.gestures = GestureMachine(config.gestures)
        self.gravity = GravitySimulator(self.store, config.gravity)

        self.active_color = config.scene.voxel_colors[0]
        self._last_timestamp: Optional[int] = None

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_color(self, color: int) -> None:
        self.active_color = int(color)

    def set_gravity(self, enabled: bool) -> None:
        self.gravity.set_enabled(enabled)

    # ------------------------------------------------------------------
    # Frame processing
    # ------------------------------------------------------------------

    def process(self, frame: HandFrame, now_ms: Optional[float] = None) -> FrameResult:
        """
        Run one hand frame through the pipeline.

        Args:
            frame: Perception output. Frames whose timestamp is not newer
                than the last processed one are skipped.
            now_ms: Clock for dwell timing. Defaults to the frame timestamp.
        """
        if self._last_timestamp is not None and frame.timestamp_ms <= self._last_timestamp:
            return FrameResult(skipped=True)
        self._last_timestamp = frame.timestamp_ms
        if now_ms is None:
            now_ms = float(frame.timestamp_ms)

        if frame.hand_count == 0:
            self.smoother.reset()
            self.gestures.reset()
            self.ghost.hide()
            return FrameResult()

        smoothed = []
        for hand in frame.hands:
            label = Handedness.from_label(hand.handedness)
            smoothed.append((label, self.smoother.smooth(label, hand.landmarks)))

        roles = select_roles(smoothed)
        fingertip = roles.cursor[HandLandmarks.INDEX_TIP]
        position = self.ghost.update(self.resolver.resolve(fingertip))
        over_voxel = self.store.exists_at(position)

        decision = self.gestures.update(roles, _vec(position), over_voxel, now_ms)

        events = []
        if decision.action == Action.PLACE:
            event = self.place(position)
        elif decision.action == Action.REMOVE:
            event = self.remove(position)
        else:
            event = None
        if event is not None:
            events.append(event)

        return FrameResult(
            hand_count=frame.hand_count,
            events=events,
            decision=decision,
            cursor=position,
            over_voxel=self.store.exists_at(position),
        )

    def tick(self) -> List[VoxelEvent]:
        """Advance one rendered frame; runs gravity on its cadence."""
        drops = self.gravity.tick()
        if not drops:
            return []

        self._save()
        return [
            VoxelEvent(
                kind=EventKind.MOVED,
                position=_vec(drop.voxel.position),
                color=drop.voxel.color,
                previous=_vec(self.grid.center(drop.previous)),
                voxel_id=drop.voxel.id,
            )
            for drop in drops
        ]

    # ------------------------------------------------------------------
    # Store mutations
    # ------------------------------------------------------------------

    def place(self, position: Sequence[float], color: Optional[int] = None) -> Optional[VoxelEvent]:
        """Insert a voxel; None if the cell was already occupied."""
        voxel = self.store.insert(position, self.active_color if color is None else color)
        if voxel is None:
            return None

        self._save()
        x, y, z = voxel.position
        logger.info("Placed voxel at (%.1f, %.1f, %.1f)", x, y, z)
        return VoxelEvent(kind=EventKind.PLACED, position=_vec(voxel.position), color=voxel.color, voxel_id=voxel.id)

    def remove(self, position: Sequence[float]) -> Optional[VoxelEvent]:
        """Delete a voxel; None if the cell was empty."""
        voxel = self.store.remove(position)
        if voxel is None:
            return None

        self._save()
        x, y, z = voxel.position
        logger.info("Removed voxel at (%.1f, %.1f, %.1f)", x, y, z)
        return VoxelEvent(kind=EventKind.REMOVED, position=_vec(voxel.position), color=voxel.color, voxel_id=voxel.id)

    def reset(self) -> VoxelEvent:
        """Clear the scene and persist the empty map."""
        self.store.clear()
        self._save()
        logger.info("Scene cleared")
        return VoxelEvent(kind=EventKind.CLEARED)

    def load(self) -> int:
        """Rebuild the store from saved state. Returns the voxel count."""
        if self.storage is None:
            return len(self.store)
        self.storage.load(self.store)
        return len(self.store)

    def _save(self) -> None:
        if self.storage is not None:
            self.storage.save(self.store)
