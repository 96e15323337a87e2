"""
Gesture state machine for voxel placement.

Decides, once per frame, whether the hands ask to place a block, remove
a block, or do nothing:

- Two hands: the Right hand aims, a pinch on the Left hand fires. The
  action is remove when the aimed cell is occupied, place otherwise.
- One hand over an empty cell: hold still for the dwell time to place.
- One hand over an occupied cell: pinch to remove.

Transitions are pure functions over frozen state records, so the timing
rules can be tested without a camera or a scene.
"""
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Dict, List, Optional, Sequence, Tuple
import math

from .config import GestureConfig
from .landmarks import HandLandmarks, Landmark
from .smoothing import Handedness

Vec3 = Tuple[float, float, float]

# Anchor used after a dwell placement so the same spot cannot re-trigger
FAR_AWAY: Vec3 = (9999.0, 9999.0, 9999.0)


class Phase(Enum):
    """Observable state of the machine after a frame."""
    IDLE = auto()          # No hand
    AIMING = auto()        # Cursor resolved, nothing armed
    DWELLING = auto()      # One-hand dwell timer running
    PINCH_ARMED = auto()   # A pinch is held (action already consumed)


class Mode(Enum):
    NONE = auto()
    ONE_HAND = auto()
    TWO_HAND = auto()


class Action(Enum):
    NONE = auto()
    PLACE = auto()
    REMOVE = auto()


@dataclass(frozen=True)
class PinchEdge:
    """Rising-edge tracker for one hand's pinch."""
    is_pinching: bool = False
    was_pinching: bool = False
    consumed: bool = False


@dataclass(frozen=True)
class DwellState:
    anchor: Vec3 = FAR_AWAY
    start_ms: float = 0.0
    progress: float = 0.0
    active: bool = False


@dataclass
class Roles:
    """Which hand aims and which hand triggers this frame."""
    mode: Mode
    cursor: Optional[List[Landmark]] = None
    cursor_label: Optional[Handedness] = None
    trigger: Optional[List[Landmark]] = None
    trigger_label: Optional[Handedness] = None
    hand_count: int = 0


@dataclass
class GestureDecision:
    """Outcome of one update."""
    action: Action = Action.NONE
    phase: Phase = Phase.IDLE
    mode: Mode = Mode.NONE
    dwell_progress: float = 0.0
    pinching: Dict[Handedness, bool] = field(default_factory=dict)


def pinch_distance(landmarks: Sequence[Landmark]) -> float:
    """Planar distance between thumb tip and index tip (depth ignored)."""
    thumb = landmarks[HandLandmarks.THUMB_TIP]
    index = landmarks[HandLandmarks.INDEX_TIP]
    return math.hypot(thumb[0] - index[0], thumb[1] - index[1])


def is_pinching(landmarks: Optional[Sequence[Landmark]], threshold: float) -> bool:
    if not landmarks or len(landmarks) < 21:
        return False
    return pinch_distance(landmarks) < threshold


def advance_pinch(edge: PinchEdge, pinching: bool, armed: bool = True) -> Tuple[PinchEdge, bool]:
    """
    Feed one frame of pinch state.

    Args:
        edge: Previous edge state for this hand.
        pinching: Whether the hand pinches this frame.
        armed: Whether a rising edge may fire an action this frame. An
            unarmed rising edge is observed but does not consume the pinch.

    Returns:
        (new edge state, True if an action fires this frame)
    """
    fired = armed and pinching and not edge.was_pinching and not edge.consumed
    consumed = (edge.consumed or fired) and pinching
    return PinchEdge(is_pinching=pinching, was_pinching=pinching, consumed=consumed), fired


def advance_dwell(
    dwell: DwellState,
    position: Vec3,
    now_ms: float,
    duration_ms: float,
    tolerance: float,
) -> Tuple[DwellState, bool]:
    """
    Feed one frame of cursor position to the dwell timer.

    Leaving tolerance re-anchors on the new position immediately, so a
    cursor that stops there starts accumulating on the next frame.

    Returns:
        (new dwell state, True if the dwell completed this frame)
    """
    stable = math.dist(position, dwell.anchor) < tolerance

    if stable and dwell.active:
        elapsed = now_ms - dwell.start_ms
        progress = min(1.0, elapsed / duration_ms)
        if progress >= 1.0:
            return DwellState(anchor=FAR_AWAY), True
        return replace(dwell, progress=progress), False

    if stable:
        return DwellState(anchor=tuple(position), start_ms=now_ms, progress=0.0, active=True), False

    return DwellState(anchor=tuple(position)), False


def select_roles(hands: Sequence[Tuple[Handedness, List[Landmark]]]) -> Roles:
    """
    Assign cursor and trigger hands.

    With two or more hands the Right hand aims (Left if there is no Right)
    and the Left hand triggers; two Left labels make one hand do both.
    Two hands without a Left label fall back to one-hand behaviour on the
    aiming hand.
    """
    by_label: Dict[Handedness, List[Landmark]] = {}
    for label, landmarks in hands:
        by_label[label] = landmarks

    count = len(hands)
    if count == 0:
        return Roles(mode=Mode.NONE)

    if Handedness.RIGHT in by_label:
        cursor_label = Handedness.RIGHT
    else:
        cursor_label = Handedness.LEFT
    cursor = by_label[cursor_label]

    if count >= 2 and Handedness.LEFT in by_label:
        return Roles(
            mode=Mode.TWO_HAND,
            cursor=cursor,
            cursor_label=cursor_label,
            trigger=by_label[Handedness.LEFT],
            trigger_label=Handedness.LEFT,
            hand_count=count,
        )

    return Roles(mode=Mode.ONE_HAND, cursor=cursor, cursor_label=cursor_label, hand_count=count)


class GestureMachine:
    """
    Holds dwell and pinch state across frames and turns roles, the
    resolved cursor cell and its occupancy into an Action.
    """

    def __init__(self, config: GestureConfig):
        self._config = config
        self._dwell = DwellState()
        self._pinch: Dict[Handedness, PinchEdge] = {
            Handedness.LEFT: PinchEdge(),
            Handedness.RIGHT: PinchEdge(),
        }
        self._mode = Mode.NONE
        self._phase = Phase.IDLE

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def dwell(self) -> DwellState:
        return self._dwell

    def pinch_edge(self, label: Handedness) -> PinchEdge:
        return self._pinch[label]

    def reset(self) -> None:
        """Drop all transient state (hand tracking lost)."""
        self._dwell = DwellState()
        for label in self._pinch:
            self._pinch[label] = PinchEdge()
        self._mode = Mode.NONE
        self._phase = Phase.IDLE

    def update(
        self,
        roles: Roles,
        position: Optional[Vec3],
        occupied: bool,
        now_ms: float,
    ) -> GestureDecision:
        """
        Advance one frame.

        Args:
            roles: Output of select_roles for this frame.
            position: Grid-snapped cursor position, None when no cursor.
            occupied: Whether the cell at position holds a voxel.
            now_ms: Current time in milliseconds.
        """
        if roles.mode == Mode.NONE or roles.cursor is None or position is None:
            self.reset()
            return GestureDecision()

        if roles.mode != self._mode:
            # Entering a mode never resumes a timer from the previous one
            self._dwell = DwellState()
        self._mode = roles.mode

        present = {roles.cursor_label, roles.trigger_label}
        for label in self._pinch:
            if label not in present:
                self._pinch[label] = PinchEdge()

        cfg = self._config
        pinching = {
            roles.cursor_label: is_pinching(roles.cursor, cfg.pinch_threshold),
        }
        if roles.trigger is not None:
            pinching[roles.trigger_label] = is_pinching(roles.trigger, cfg.pinch_threshold)

        if roles.mode == Mode.TWO_HAND:
            decision = self._update_two_hand(roles, pinching, occupied)
        else:
            decision = self._update_one_hand(roles, pinching, position, occupied, now_ms)

        decision.pinching = pinching
        decision.mode = roles.mode
        self._phase = decision.phase
        return decision

    def _update_two_hand(self, roles: Roles, pinching, occupied: bool) -> GestureDecision:
        self._dwell = DwellState()

        # The cursor hand's pinch is tracked but never fires here
        if roles.cursor_label != roles.trigger_label:
            self._pinch[roles.cursor_label], _ = advance_pinch(
                self._pinch[roles.cursor_label], pinching[roles.cursor_label], armed=False
            )
        edge, fired = advance_pinch(self._pinch[roles.trigger_label], pinching[roles.trigger_label])
        self._pinch[roles.trigger_label] = edge

        action = Action.NONE
        if fired:
            action = Action.REMOVE if occupied else Action.PLACE
        phase = Phase.PINCH_ARMED if edge.consumed else Phase.AIMING
        return GestureDecision(action=action, phase=phase)

    def _update_one_hand(self, roles: Roles, pinching, position: Vec3, occupied: bool, now_ms: float) -> GestureDecision:
        cfg = self._config
        label = roles.cursor_label

        edge, fired = advance_pinch(self._pinch[label], pinching[label], armed=occupied)
        self._pinch[label] = edge

        if occupied:
            self._dwell = replace(self._dwell, active=False, progress=0.0)
            action = Action.REMOVE if fired else Action.NONE
            phase = Phase.PINCH_ARMED if edge.consumed else Phase.AIMING
            return GestureDecision(action=action, phase=phase)

        self._dwell, completed = advance_dwell(
            self._dwell, position, now_ms, cfg.dwell_time_ms, cfg.dwell_tolerance
        )
        if completed:
            return GestureDecision(action=Action.PLACE, phase=Phase.AIMING, dwell_progress=1.0)

        phase = Phase.DWELLING if self._dwell.active else Phase.AIMING
        return GestureDecision(phase=phase, dwell_progress=self._dwell.progress)
