"""
AirBlocks Voxel Module

Grid, voxel store, gravity, persistence, scene hit testing and the
per-frame interaction engine.
"""
from .grid import Grid, CellKey
from .store import Voxel, VoxelStore
from .gravity import GravitySimulator
from .persistence import MapStorage
from .camera import PerspectiveCamera, Ray
from .cursor import CursorResolver, GhostCursor
from .engine import InteractionEngine, VoxelEvent, EventKind, FrameResult
from .effects import EffectDispatcher, ParticleSystem

__all__ = [
    'Grid',
    'CellKey',
    'Voxel',
    'VoxelStore',
    'GravitySimulator',
    'MapStorage',
    'PerspectiveCamera',
    'Ray',
    'CursorResolver',
    'GhostCursor',
    'InteractionEngine',
    'VoxelEvent',
    'EventKind',
    'FrameResult',
    'EffectDispatcher',
    'ParticleSystem',
]
