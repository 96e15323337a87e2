"""
Saving and loading the voxel map as JSON.
"""
from numbers import Real
from pathlib import Path
from typing import List, Optional
import json
import logging
import math

from .store import VoxelStore

logger = logging.getLogger(__name__)


class MapFormatError(ValueError):
    """The saved map is not a list of {x, y, z, color} records."""


def serialize(store: VoxelStore) -> List[dict]:
    return [
        {
            'x': float(v.position[0]),
            'y': float(v.position[1]),
            'z': float(v.position[2]),
            'color': int(v.color),
        }
        for v in store
    ]


def validate(data) -> List[dict]:
    """Check the whole record list before anything touches the store."""
    if not isinstance(data, list):
        raise MapFormatError(f"expected a list of records, got {type(data).__name__}")

    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise MapFormatError(f"record {i} is not an object")
        for axis in ('x', 'y', 'z'):
            value = item.get(axis)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise MapFormatError(f"record {i} has no numeric '{axis}'")
            if not math.isfinite(value):
                raise MapFormatError(f"record {i} has a non-finite '{axis}'")
        color = item.get('color')
        if isinstance(color, str):
            try:
                int(color.lstrip('#'), 16)
            except ValueError:
                raise MapFormatError(f"record {i} has a bad color {color!r}") from None
        elif isinstance(color, bool) or not isinstance(color, int):
            raise MapFormatError(f"record {i} has no integer 'color'")
    return data


def _reject_constant(name: str):
    raise MapFormatError(f"non-finite number {name} in map")


def _parse_color(color) -> int:
    if isinstance(color, str):
        return int(color.lstrip('#'), 16)
    return int(color)


class MapStorage:
    """
    Best-effort JSON file store for the voxel map.

    Every save overwrites the file with the full voxel list. Neither save
    nor load raises: failures are logged and the in-memory store is left
    as it was.
    """

    def __init__(self, path: Path):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, store: VoxelStore) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + '.tmp')
            with open(tmp, 'w') as f:
                json.dump(serialize(store), f)
            tmp.replace(self._path)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save map to %s", self._path)
            return False
        return True

    def load(self, store: VoxelStore) -> Optional[int]:
        """
        Clear the store and rebuild it from the saved map.

        Returns:
            Number of voxels loaded, or None if there was nothing usable
            (no file, unreadable file, malformed records).
        """
        if not self._path.exists():
            return None

        try:
            with open(self._path, 'r') as f:
                data = validate(json.load(f, parse_constant=_reject_constant))
            for i, item in enumerate(data):
                key = store.key_of((item['x'], item['y'], item['z']))
                if not store.grid.contains(key):
                    raise MapFormatError(f"record {i} lies outside the grid at {key}")
        except (OSError, ValueError):
            # json.JSONDecodeError and MapFormatError are ValueErrors
            logger.exception("Failed to load map from %s", self._path)
            return None

        store.clear()
        for item in data:
            store.insert((item['x'], item['y'], item['z']), _parse_color(item['color']))

        logger.info("Loaded %d voxels from %s", len(store), self._path)
        return len(store)
