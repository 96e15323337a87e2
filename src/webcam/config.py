"""
Config loader for AirBlocks.
Loads YAML configuration with dataclass validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple
import yaml


@dataclass
class CameraConfig:
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass
class MediaPipeConfig:
    model_complexity: int = 1
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass
class GridConfig:
    grid_size: int = 10       # Cells per side
    cell_size: float = 1.0
    max_height: int = 10      # Cells


@dataclass
class GestureConfig:
    smoothing_alpha: float = 0.15   # Landmark EMA - lower = more stable
    ghost_smoothing: float = 0.12   # Ghost lerp speed - lower = smoother
    pinch_threshold: float = 0.09   # Thumb/index planar distance
    dwell_time_ms: float = 1500.0   # Hold time before auto-place
    dwell_tolerance: float = 0.5    # Movement tolerance during dwell


@dataclass
class SceneConfig:
    ghost_color: int = 0x00d4ff
    ghost_remove_color: int = 0xff6b6b
    ghost_opacity: float = 0.4
    voxel_colors: List[int] = field(default_factory=lambda: [
        0x00ff88, 0xff6b6b, 0x00d4ff, 0xffd93d,
        0xff7eb3, 0x6bcb77, 0xc9b1ff, 0xffa45b,
    ])
    camera_position: Tuple[float, float, float] = (8.0, 8.0, 12.0)
    camera_target: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    fov: float = 60.0
    near: float = 0.1
    far: float = 1000.0


@dataclass
class GravityConfig:
    enabled: bool = False
    rate: int = 5             # Apply gravity every N frames


@dataclass
class StorageConfig:
    map_path: str = str(Path.home() / "voxel-map.json")


@dataclass
class UIConfig:
    debug_overlay: bool = False
    show_preview: bool = True


@dataclass
class Config:
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)
    gravity: GravityConfig = field(default_factory=GravityConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ui: UIConfig = field(default_factory=UIConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Returns:
        Config dataclass with all settings.
    """
    if config_path is None:
        # Default to config.yaml in project root
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        # Return defaults if no config file
        return Config()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    scene = _dict_to_dataclass(SceneConfig, data.get('scene'))
    # YAML gives lists; the camera fields are used as fixed triples
    scene.camera_position = tuple(float(v) for v in scene.camera_position)
    scene.camera_target = tuple(float(v) for v in scene.camera_target)

    return Config(
        camera=_dict_to_dataclass(CameraConfig, data.get('camera')),
        mediapipe=_dict_to_dataclass(MediaPipeConfig, data.get('mediapipe')),
        grid=_dict_to_dataclass(GridConfig, data.get('grid')),
        gestures=_dict_to_dataclass(GestureConfig, data.get('gestures')),
        scene=scene,
        gravity=_dict_to_dataclass(GravityConfig, data.get('gravity')),
        storage=_dict_to_dataclass(StorageConfig, data.get('storage')),
        ui=_dict_to_dataclass(UIConfig, data.get('ui')),
    )
