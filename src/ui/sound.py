"""
Audio feedback sink for voxel events.
"""
from pathlib import Path
import logging
import tempfile

from PyQt5.QtCore import QUrl
from PyQt5.QtMultimedia import QSoundEffect

from voxel.effects import place_tone, remove_tone, to_wav_bytes
from voxel.engine import VoxelEvent

logger = logging.getLogger(__name__)


class SoundSink:
    """
    Plays the place / remove tones through QSoundEffect.

    The tones are synthesized once and written to a temp directory since
    QSoundEffect only plays from a URL.
    """

    def __init__(self, volume: float = 1.0):
        self._dir = tempfile.TemporaryDirectory(prefix="airblocks-")
        self._place = self._load("place.wav", to_wav_bytes(place_tone()), volume)
        self._remove = self._load("remove.wav", to_wav_bytes(remove_tone()), volume)

    def _load(self, name: str, data: bytes, volume: float) -> QSoundEffect:
        path = Path(self._dir.name) / name
        path.write_bytes(data)
        effect = QSoundEffect()
        effect.setSource(QUrl.fromLocalFile(str(path)))
        effect.setVolume(volume)
        return effect

    def on_place(self, event: VoxelEvent):
        self._place.play()

    def on_remove(self, event: VoxelEvent):
        self._remove.play()

    def on_clear(self, event: VoxelEvent):
        self._remove.play()

    def close(self):
        self._dir.cleanup()
