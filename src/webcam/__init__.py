"""
AirBlocks Webcam Module

Hand landmarks, smoothing and the placement gesture state machine.
The MediaPipe tracker and its Qt worker live in webcam.hand_tracker and
webcam.worker and are imported where the camera is actually used.
"""
from .config import Config, load_config
from .landmarks import HandLandmarks, HandFrame
from .smoothing import Handedness, LandmarkSmoother
from .gesture_machine import GestureMachine, GestureDecision, Action, Phase, Mode, select_roles

__all__ = [
    'Config',
    'load_config',
    'HandLandmarks',
    'HandFrame',
    'Handedness',
    'LandmarkSmoother',
    'GestureMachine',
    'GestureDecision',
    'Action',
    'Phase',
    'Mode',
    'select_roles',
]
