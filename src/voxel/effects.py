"""
Fire-and-forget feedback for voxel events: particles and tones.
"""
from typing import List, Optional, Sequence
import io
import logging
import wave

import numpy as np

from .engine import EventKind, VoxelEvent

logger = logging.getLogger(__name__)

_HANDLERS = {
    EventKind.PLACED: 'on_place',
    EventKind.REMOVED: 'on_remove',
    EventKind.MOVED: 'on_move',
    EventKind.CLEARED: 'on_clear',
}


class EffectDispatcher:
    """
    Fans voxel events out to sinks.

    A sink is any object with some of on_place / on_remove / on_move /
    on_clear, each taking the VoxelEvent. A sink that raises is logged and
    skipped; feedback never interrupts the frame loop.
    """

    def __init__(self, sinks: Optional[Sequence[object]] = None):
        self._sinks: List[object] = list(sinks or [])

    def add_sink(self, sink: object) -> None:
        self._sinks.append(sink)

    def dispatch(self, events: Sequence[VoxelEvent]) -> None:
        for event in events:
            name = _HANDLERS[event.kind]
            for sink in self._sinks:
                handler = getattr(sink, name, None)
                if handler is None:
                    continue
                try:
                    handler(event)
                except Exception:
                    logger.exception("Effect sink %r failed on %s", sink, event.kind.name)


class ParticleSystem:
    """
    Small cube bursts at place/remove positions.

    Each particle gets a random velocity with an upward bias, falls under
    a constant pull, shrinks every frame and is retired after MAX_AGE
    frames.
    """

    MAX_AGE = 40
    GRAVITY = 0.01
    SHRINK = 0.9
    PLACE_COUNT = 4
    REMOVE_COUNT = 8

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)
        self.positions = np.zeros((0, 3))
        self.velocities = np.zeros((0, 3))
        self.colors = np.zeros(0, dtype=np.int64)
        self.ages = np.zeros(0, dtype=np.int64)
        self.scales = np.zeros(0)

    def __len__(self) -> int:
        return len(self.ages)

    def spawn(self, position: Sequence[float], color: int, count: int = 8) -> None:
        velocity = (self._rng.random((count, 3)) - 0.5) * 0.2
        velocity[:, 1] += 0.2

        self.positions = np.vstack([self.positions, np.tile(np.asarray(position, dtype=float), (count, 1))])
        self.velocities = np.vstack([self.velocities, velocity])
        self.colors = np.concatenate([self.colors, np.full(count, int(color), dtype=np.int64)])
        self.ages = np.concatenate([self.ages, np.zeros(count, dtype=np.int64)])
        self.scales = np.concatenate([self.scales, np.ones(count)])

    def update(self) -> None:
        if not len(self):
            return
        self.ages += 1
        self.positions += self.velocities
        self.velocities[:, 1] -= self.GRAVITY
        self.scales *= self.SHRINK

        alive = self.ages <= self.MAX_AGE
        if not alive.all():
            self.positions = self.positions[alive]
            self.velocities = self.velocities[alive]
            self.colors = self.colors[alive]
            self.ages = self.ages[alive]
            self.scales = self.scales[alive]

    def on_place(self, event: VoxelEvent) -> None:
        self.spawn(event.position, event.color, self.PLACE_COUNT)

    def on_remove(self, event: VoxelEvent) -> None:
        self.spawn(event.position, event.color, self.REMOVE_COUNT)


# ----------------------------------------------------------------------
# Tone synthesis
# ----------------------------------------------------------------------

SAMPLE_RATE = 22050


def _sweep_phase(f0: float, f1: float, duration: float, rate: int) -> np.ndarray:
    """Phase of an exponential frequency sweep from f0 to f1."""
    t = np.arange(int(duration * rate)) / rate
    k = np.log(f1 / f0) / duration
    return 2 * np.pi * f0 * (np.exp(k * t) - 1) / k


def _envelope(n: int, attack: float, peak: float, rate: int) -> np.ndarray:
    """Linear attack to peak then exponential decay to 1% of full scale."""
    a = max(1, int(attack * rate))
    attack_part = np.linspace(0, peak, a, endpoint=False)
    decay_part = peak * np.exp(np.linspace(0, np.log(0.01 / peak), max(1, n - a)))
    return np.concatenate([attack_part, decay_part])[:n]


def place_tone(rate: int = SAMPLE_RATE) -> np.ndarray:
    """Short rising sine blip, 400 -> 800 Hz."""
    duration = 0.3
    phase = _sweep_phase(400, 800, 0.1, rate)
    # Hold 800 Hz after the sweep
    tail = phase[-1] + 2 * np.pi * 800 * np.arange(1, int(duration * rate) - len(phase) + 1) / rate
    wave_ = np.sin(np.concatenate([phase, tail]))
    samples = wave_ * _envelope(len(wave_), 0.02, 1.0, rate)
    return (samples * 0.3 * 32767).astype(np.int16)


def remove_tone(rate: int = SAMPLE_RATE) -> np.ndarray:
    """Lower, rougher falling sawtooth, 200 -> 50 Hz."""
    phase = _sweep_phase(200, 50, 0.2, rate)
    saw = 2 * ((phase / (2 * np.pi)) % 1.0) - 1
    samples = saw * _envelope(len(saw), 0.05, 0.8, rate)
    return (samples * 0.3 * 32767).astype(np.int16)


def to_wav_bytes(samples: np.ndarray, rate: int = SAMPLE_RATE) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(samples.astype(np.int16).tobytes())
    return buffer.getvalue()
