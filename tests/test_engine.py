import json

import numpy as np
import pytest

from webcam.config import Config
from webcam.landmarks import HandFrame, HandLandmarks
from webcam.smoothing import Handedness
from voxel.engine import EventKind, InteractionEngine
from voxel.persistence import MapStorage


@pytest.fixture
def engine(config):
    return InteractionEngine(config)


@pytest.fixture
def frame_for(engine, make_hand, aim):
    """Build a HandFrame whose Right index tip aims at a world point."""
    def _frame(timestamp, point=(0.3, 0.0, 0.3), left_pinch=None):
        x, y, _ = aim(engine.camera, np.array(point))
        hands = [HandLandmarks(make_hand(x, y), "Right")]
        if left_pinch is not None:
            hands.append(HandLandmarks(make_hand(x, y, pinch=left_pinch), "Left"))
        return HandFrame(timestamp_ms=timestamp, hands=hands)
    return _frame


def test_stale_frames_are_skipped(engine, frame_for):
    assert not engine.process(frame_for(10)).skipped
    assert engine.process(frame_for(10)).skipped
    assert engine.process(frame_for(5)).skipped
    assert not engine.process(frame_for(11)).skipped


def test_frame_without_hands_resets(engine, frame_for):
    engine.process(frame_for(1))
    assert engine.ghost.visible

    result = engine.process(HandFrame(timestamp_ms=2))

    assert result.hand_count == 0
    assert not engine.ghost.visible
    assert engine.smoother.state(Handedness.RIGHT) is None


def test_cursor_follows_fingertip(engine, frame_for):
    result = engine.process(frame_for(1))

    assert result.hand_count == 1
    assert np.allclose(result.cursor, (0.5, 0.5, 0.5))
    assert not result.over_voxel


def test_dwell_places_one_voxel(engine, frame_for):
    events = []
    for t in range(1, 2500, 33):
        events.extend(engine.process(frame_for(t)).events)

    assert [e.kind for e in events] == [EventKind.PLACED]
    assert events[0].position == (0.5, 0.5, 0.5)
    assert events[0].color == engine.active_color
    assert engine.store.exists((0, 0, 0))


def test_two_hand_pinch_places_then_holds(engine, frame_for):
    results = [engine.process(frame_for(t, left_pinch=True)) for t in (1, 2, 3)]

    assert [len(r.events) for r in results] == [1, 0, 0]
    assert results[0].events[0].kind == EventKind.PLACED
    assert results[-1].over_voxel


def test_place_and_remove_events(engine):
    engine.set_color(0xffd93d)

    placed = engine.place((1.2, 0.4, -0.3))
    assert placed.kind == EventKind.PLACED
    assert placed.position == (1.5, 0.5, -0.5)
    assert placed.color == 0xffd93d
    assert engine.place((1.5, 0.5, -0.5)) is None

    removed = engine.remove((1.5, 0.5, -0.5))
    assert removed.kind == EventKind.REMOVED
    assert removed.color == 0xffd93d
    assert removed.voxel_id == placed.voxel_id
    assert engine.remove((1.5, 0.5, -0.5)) is None


def test_reset_clears_scene(engine):
    engine.place((0.5, 0.5, 0.5))
    engine.place((1.5, 0.5, 0.5))

    event = engine.reset()

    assert event.kind == EventKind.CLEARED
    assert len(engine.store) == 0


def test_gravity_runs_on_frame_cadence():
    config = Config()
    config.gravity.enabled = True
    config.gravity.rate = 5
    engine = InteractionEngine(config)
    engine.place((0.5, 2.5, 0.5))

    results = [engine.tick() for _ in range(5)]

    assert results[:4] == [[], [], [], []]
    (moved,) = results[4]
    assert moved.kind == EventKind.MOVED
    assert moved.previous == (0.5, 2.5, 0.5)
    assert moved.position == (0.5, 1.5, 0.5)


def test_set_gravity_toggles_simulation(engine):
    engine.place((0.5, 1.5, 0.5))

    assert all(engine.tick() == [] for _ in range(10))

    engine.set_gravity(True)
    moved = [e for _ in range(5) for e in engine.tick()]
    assert len(moved) == 1


def test_mutations_are_saved_and_reloaded(tmp_path, config):
    path = tmp_path / "map.json"
    engine = InteractionEngine(config, storage=MapStorage(path))
    engine.set_color(0xc9b1ff)
    engine.place((0.5, 0.5, 0.5))
    engine.place((0.5, 1.5, 0.5))
    engine.remove((0.5, 1.5, 0.5))

    assert json.loads(path.read_text()) == [{'x': 0.5, 'y': 0.5, 'z': 0.5, 'color': 0xc9b1ff}]

    reloaded = InteractionEngine(config, storage=MapStorage(path))
    assert reloaded.load() == 1
    assert reloaded.store.get((0, 0, 0)).color == 0xc9b1ff


def test_reset_persists_empty_map(tmp_path, config):
    path = tmp_path / "map.json"
    engine = InteractionEngine(config, storage=MapStorage(path))
    engine.place((0.5, 0.5, 0.5))

    engine.reset()

    assert json.loads(path.read_text()) == []


def test_gravity_compacts_stack_and_saves(tmp_path):
    config = Config()
    config.gravity.enabled = True
    config.gravity.rate = 5
    path = tmp_path / "map.json"
    engine = InteractionEngine(config, storage=MapStorage(path))
    engine.set_color(0x6bcb77)
    for y in (0.5, 1.5, 2.5):
        engine.place((0.5, y, 0.5))

    engine.remove((0.5, 0.5, 0.5))
    moved = [e for _ in range(2 * config.gravity.rate) for e in engine.tick()]

    assert len(moved) == 2
    assert sorted(v.cell for v in engine.store) == [(0, 0, 0), (0, 1, 0)]
    assert json.loads(path.read_text()) == [
        {'x': 0.5, 'y': 0.5, 'z': 0.5, 'color': 0x6bcb77},
        {'x': 0.5, 'y': 1.5, 'z': 0.5, 'color': 0x6bcb77},
    ]
