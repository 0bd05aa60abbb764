import math
import random

import numpy as np
import pytest

from orbit_picking.config import OrbitCameraConfig
from orbit_picking.geometry import rotate_vector
from orbit_picking.intent import Orbit, Pan, Rotate, Zoom
from orbit_picking.orbit_camera import OrbitCamera
from orbit_picking.scene import PoseStore

MIN_PITCH = math.radians(1.0)
MAX_PITCH = math.radians(179.0)


def make_rig(config=None):
    store = PoseStore()
    pivot = store.spawn(entity_id="pivot")
    camera = store.spawn(parent=pivot, entity_id="camera")
    light = store.spawn(translation=(0.0, 0.0, 5.0), parent=pivot, entity_id="light")
    orbit = OrbitCamera(config=config or OrbitCameraConfig(), camera_entity=camera, light_entity=light)
    return store, orbit


def test_defaults():
    cam = OrbitCamera()
    assert cam.distance == 20.0
    assert cam.pitch == pytest.approx(math.radians(30.0))
    assert cam.yaw == 0.0
    assert cam.camera_entity is None and cam.light_entity is None


def test_zoom_past_range_clamps_to_min_distance():
    cam = OrbitCamera(distance=20.0, pitch=math.radians(30.0), yaw=0.0)
    cam.update(Zoom((0.0, 1.0)), 1.0)
    assert cam.distance == 5.0


def test_zoom_out_clamps_to_max_distance():
    cam = OrbitCamera()
    cam.update(Zoom((0.0, -1.0)), 1.0)
    assert cam.distance == 30.0


def test_zoom_within_range():
    cam = OrbitCamera()
    cam.update(Zoom((0.0, 0.1)), 0.5)
    assert cam.distance == pytest.approx(17.5)


def test_orbit_half_turn_is_exact():
    cam = OrbitCamera()
    pitch = cam.pitch
    cam.update(Orbit((math.pi, 0.0)), 1.0)
    assert cam.yaw == math.pi
    assert cam.pitch == pitch


def test_orbit_vertical_motion_lowers_pitch():
    cam = OrbitCamera()
    cam.update(Orbit((0.0, 0.25)), 1.0)
    assert cam.pitch == pytest.approx(math.radians(30.0) - 0.25)


@pytest.mark.parametrize(
    "intent",
    [None, Orbit((0.0, 0.0)), Zoom((0.0, 0.0)), Pan((12.0, -7.0)), Rotate((3.0, 9.0))],
)
def test_inert_intents_leave_state_unchanged(intent):
    cam = OrbitCamera(distance=12.5, pitch=1.2, yaw=-4.0)
    cam.update(intent, 0.016)
    assert (cam.distance, cam.pitch, cam.yaw) == (12.5, 1.2, -4.0)


def test_clamp_applies_to_external_mutation():
    cam = OrbitCamera()
    cam.pitch = -3.0
    cam.distance = 1000.0
    cam.update(None, 0.016)
    assert cam.pitch == pytest.approx(MIN_PITCH)
    assert cam.distance == 30.0


def test_random_intents_respect_clamps():
    rng = random.Random(1234)
    cam = OrbitCamera()
    for _ in range(2000):
        if rng.random() < 0.5:
            intent = Orbit((rng.uniform(-500, 500), rng.uniform(-500, 500)))
        else:
            intent = Zoom((0.0, rng.uniform(-20, 20)))
        cam.update(intent, rng.uniform(0.0, 0.2))
        assert MIN_PITCH <= cam.pitch <= MAX_PITCH
        assert 5.0 <= cam.distance <= 30.0
        assert math.isfinite(cam.yaw)


@pytest.mark.parametrize(
    "intent, dt",
    [
        (Orbit((0.0, float("nan"))), 0.016),
        (Orbit((float("inf"), 0.0)), 0.016),
        (Orbit((1.0, 1.0)), float("inf")),
        (Zoom((0.0, float("nan"))), 0.016),
        (Zoom((0.0, 1.0)), float("nan")),
    ],
)
def test_non_finite_steps_are_dropped(intent, dt):
    cam = OrbitCamera()
    before = (cam.distance, cam.pitch, cam.yaw)
    cam.update(intent, dt)
    assert (cam.distance, cam.pitch, cam.yaw) == before
    cam.update(Orbit((0.0, 1.0)), 0.1)
    assert MIN_PITCH <= cam.pitch <= MAX_PITCH
    assert 5.0 <= cam.distance <= 30.0


@pytest.mark.parametrize("dy, pole", [(10.0, 0.0), (-10.0, math.pi)])
def test_pitch_never_reaches_pole(dy, pole):
    cam = OrbitCamera()
    for _ in range(100):
        cam.update(Orbit((0.0, dy)), 0.1)
        assert cam.pitch != pole
    assert cam.pitch == pytest.approx(MIN_PITCH if pole == 0.0 else MAX_PITCH)


def test_camera_offset_lies_on_sphere():
    cam = OrbitCamera(distance=8.0, pitch=math.radians(90.0))
    offset = cam.camera_offset()
    assert np.linalg.norm(offset) == pytest.approx(8.0)
    assert np.allclose(offset, [0.0, 0.0, -8.0], atol=1e-9)


def test_custom_limits_from_config():
    cfg = OrbitCameraConfig(min_distance=2.0, max_distance=4.0, min_pitch_deg=10.0, max_pitch_deg=80.0)
    cam = OrbitCamera(config=cfg)
    cam.update(None, 0.0)
    assert cam.distance == 4.0
    cam.update(Orbit((0.0, 100.0)), 1.0)
    assert cam.pitch == pytest.approx(math.radians(10.0))


def test_write_pose_places_camera_looking_at_pivot():
    store, orbit = make_rig()
    orbit.yaw = 0.6
    orbit.write_pose(store, "pivot")
    store.propagate()

    world = store.world_transform("camera")
    position = world[:3, 3]
    assert np.linalg.norm(position) == pytest.approx(orbit.distance)
    forward = world[:3, :3] @ np.array([0.0, 0.0, -1.0])
    assert np.allclose(forward, -position / np.linalg.norm(position))
    assert np.allclose(store.get("camera").translation, orbit.camera_offset())


def test_light_follows_yaw_with_copied_camera_transform():
    store, orbit = make_rig()
    orbit.yaw = 1.1
    store.propagate()
    previous_camera = store.world_transform("camera").copy()
    orbit.write_pose(store, "pivot")

    pivot = store.get("pivot")
    light = store.get("light")
    expected = rotate_vector(pivot.rotation, orbit.camera_offset())
    assert np.allclose(light.translation, expected)
    assert np.linalg.norm(light.translation) == pytest.approx(orbit.distance)
    assert light.sync is False
    assert np.allclose(light.transform, previous_camera)

    store.propagate()
    assert np.allclose(store.world_transform("light"), previous_camera)


def test_light_synced_transform_is_recomputed():
    store, orbit = make_rig(OrbitCameraConfig(sync_light_transform=True))
    orbit.write_pose(store, "pivot")
    store.propagate()
    light = store.get("light")
    assert light.sync is True
    expected = store.world_transform("pivot") @ light.local_matrix()
    assert np.allclose(store.world_transform("light"), expected)


def test_missing_camera_entity_is_skipped():
    store, orbit = make_rig()
    orbit.camera_entity = None
    orbit.write_pose(store, "pivot")
    assert np.allclose(store.get("camera").translation, 0.0)
    assert store.get("light").sync is True
    assert np.allclose(store.get("light").translation, orbit.light_offset())


def test_unknown_entities_are_ignored():
    store = PoseStore()
    orbit = OrbitCamera(camera_entity="gone", light_entity="also-gone")
    orbit.write_pose(store, "no-pivot")
    assert len(store) == 0


def test_reset_restores_initial_pose():
    cam = OrbitCamera()
    cam.update(Orbit((2.0, 0.3)), 1.0)
    cam.reset()
    assert (cam.distance, cam.pitch, cam.yaw) == (20.0, math.radians(30.0), 0.0)
