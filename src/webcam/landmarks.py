"""
Hand landmark containers shared by the tracker, the smoother and the
gesture machine.
"""
from dataclasses import dataclass, field
from typing import List, Tuple

Landmark = Tuple[float, float, float]


@dataclass
class HandLandmarks:
    """
    Normalized hand landmarks from MediaPipe.

    Attributes:
        landmarks: List of 21 (x, y, z) tuples, normalized 0-1
        handedness: 'Left' or 'Right'
        confidence: Detection confidence 0-1
    """
    landmarks: List[Landmark]
    handedness: str
    confidence: float = 1.0

    # MediaPipe landmark indices used for pinch and aiming
    THUMB_TIP = 4
    INDEX_TIP = 8


@dataclass
class HandFrame:
    """All hands detected in one camera frame."""
    timestamp_ms: int
    hands: List[HandLandmarks] = field(default_factory=list)

    @property
    def hand_count(self) -> int:
        return len(self.hands)


# Hand connections for drawing (same as MediaPipe's HAND_CONNECTIONS)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),      # Index
    (0, 9), (9, 10), (10, 11), (11, 12), # Middle
    (0, 13), (13, 14), (14, 15), (15, 16), # Ring
    (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
    (5, 9), (9, 13), (13, 17),           # Palm
]
