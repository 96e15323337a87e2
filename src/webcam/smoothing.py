"""
Per-hand exponential smoothing of landmark sequences.
"""
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .landmarks import Landmark


class Handedness(Enum):
    """Hand label as reported by MediaPipe."""
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def from_label(cls, label: str) -> "Handedness":
        return cls(label)


class LandmarkSmoother:
    """
    First-order low-pass filter over whole landmark sequences.

    smoothed = alpha * raw + (1 - alpha) * previous

    One filter state is kept per hand label. The first sample for a label
    is stored verbatim so a freshly acquired hand does not drift in from
    a stale position.
    """

    def __init__(self, alpha: float):
        """
        Args:
            alpha: Smoothing coefficient in (0, 1). Lower = smoother.
        """
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        self._alpha = alpha
        self._states: Dict[Handedness, Optional[List[Landmark]]] = {
            Handedness.LEFT: None,
            Handedness.RIGHT: None,
        }

    @property
    def alpha(self) -> float:
        return self._alpha

    def state(self, label: Handedness) -> Optional[List[Landmark]]:
        return self._states[label]

    def smooth(self, label: Handedness, raw: Sequence[Landmark]) -> List[Landmark]:
        """Filter one hand's landmarks and return the smoothed sequence."""
        previous = self._states[label]
        if previous is None:
            smoothed = [tuple(lm) for lm in raw]
        else:
            a = self._alpha
            smoothed = [
                (
                    a * lm[0] + (1 - a) * prev[0],
                    a * lm[1] + (1 - a) * prev[1],
                    a * lm[2] + (1 - a) * prev[2],
                )
                for lm, prev in zip(raw, previous)
            ]
        self._states[label] = smoothed
        return smoothed

    def reset(self) -> None:
        """Forget every hand. Called when a frame reports no hands at all."""
        for label in self._states:
            self._states[label] = None
