import json

import pytest

from voxel.persistence import MapFormatError, MapStorage, validate
from voxel.store import VoxelStore


def test_round_trip(tmp_path, grid, store):
    store.insert((0.5, 0.5, 0.5), 0x00ff88)
    store.insert((-1.5, 1.5, 2.5), 0xff6b6b)
    storage = MapStorage(tmp_path / "map.json")

    assert storage.save(store)

    restored = VoxelStore(grid)
    assert storage.load(restored) == 2
    assert [(v.cell, v.color) for v in restored] == [(v.cell, v.color) for v in store]


def test_saved_records_use_world_positions(tmp_path, store):
    store.insert((2.2, 0.1, -0.3), 0xffd93d)
    path = tmp_path / "map.json"

    MapStorage(path).save(store)

    assert json.loads(path.read_text()) == [{'x': 2.5, 'y': 0.5, 'z': -0.5, 'color': 0xffd93d}]


def test_missing_file_leaves_store_alone(tmp_path, store):
    store.insert((0.5, 0.5, 0.5), 1)

    assert MapStorage(tmp_path / "nope.json").load(store) is None
    assert len(store) == 1


def test_invalid_json_is_ignored(tmp_path, store):
    path = tmp_path / "map.json"
    path.write_text("{not json")
    store.insert((0.5, 0.5, 0.5), 1)

    assert MapStorage(path).load(store) is None
    assert len(store) == 1


def test_one_bad_record_rejects_whole_file(tmp_path, store):
    path = tmp_path / "map.json"
    path.write_text(json.dumps([
        {'x': 0.5, 'y': 0.5, 'z': 0.5, 'color': 1},
        {'x': 1.5, 'y': 'high', 'z': 0.5, 'color': 2},
    ]))
    store.insert((3.5, 0.5, 3.5), 7)

    assert MapStorage(path).load(store) is None
    assert [v.cell for v in store] == [(3, 0, 3)]


def test_load_replaces_existing_voxels(tmp_path, store):
    path = tmp_path / "map.json"
    path.write_text(json.dumps([{'x': 0.5, 'y': 0.5, 'z': 0.5, 'color': '#00d4ff'}]))
    store.insert((3.5, 0.5, 3.5), 7)

    assert MapStorage(path).load(store) == 1
    assert [(v.cell, v.color) for v in store] == [((0, 0, 0), 0x00d4ff)]


def test_save_failure_returns_false(tmp_path, store):
    blocker = tmp_path / "file"
    blocker.write_text("")

    assert MapStorage(blocker / "map.json").save(store) is False


@pytest.mark.parametrize("data", [
    {'x': 1},
    [1, 2, 3],
    [{'x': 0, 'y': 0, 'z': 0}],
    [{'x': True, 'y': 0, 'z': 0, 'color': 1}],
    [{'x': 0, 'y': 0, 'z': 0, 'color': 'zz'}],
    [{'x': 0, 'y': 0, 'z': 0, 'color': 1.5}],
    [{'x': float('nan'), 'y': 0.5, 'z': 0.5, 'color': 1}],
    [{'x': 0.5, 'y': float('inf'), 'z': 0.5, 'color': 1}],
])
def test_validate_rejects_malformed(data):
    with pytest.raises(MapFormatError):
        validate(data)


@pytest.mark.parametrize("text", [
    '[{"x": 0.5, "y": 0.5, "z": 0.5, "color": 1}, {"x": NaN, "y": 0.5, "z": 0.5, "color": 2}]',
    '[{"x": Infinity, "y": 0.5, "z": 0.5, "color": 1}]',
    '[{"x": 0.5, "y": -Infinity, "z": 0.5, "color": 1}]',
])
def test_non_finite_coordinates_leave_store_unchanged(tmp_path, store, text):
    path = tmp_path / "map.json"
    path.write_text(text)
    store.insert((3.5, 0.5, 3.5), 7)

    assert MapStorage(path).load(store) is None
    assert [v.cell for v in store] == [(3, 0, 3)]


@pytest.mark.parametrize("record", [
    {'x': 0.5, 'y': -3.5, 'z': 0.5, 'color': 1},
    {'x': 40.0, 'y': 0.5, 'z': 0.5, 'color': 1},
    {'x': 0.5, 'y': 10.5, 'z': 0.5, 'color': 1},
])
def test_records_outside_grid_reject_file(tmp_path, store, record):
    path = tmp_path / "map.json"
    path.write_text(json.dumps([{'x': 0.5, 'y': 0.5, 'z': 0.5, 'color': 2}, record]))
    store.insert((3.5, 0.5, 3.5), 7)

    assert MapStorage(path).load(store) is None
    assert [v.cell for v in store] == [(3, 0, 3)]
