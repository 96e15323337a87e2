"""
AirBlocks UI Module

PyQt5 window and QPainter voxel viewport.
"""
from .viewport import VoxelViewport
from .main_window import MainWindow
from .sound import SoundSink

__all__ = [
    'VoxelViewport',
    'MainWindow',
    'SoundSink',
]
