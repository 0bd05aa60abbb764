import math

import pytest

from orbit_picking.config import OrbitCameraConfig


def test_degrees_are_converted_once():
    cfg = OrbitCameraConfig()
    assert cfg.min_pitch == pytest.approx(math.radians(1.0))
    assert cfg.max_pitch == pytest.approx(math.radians(179.0))
    assert cfg.initial_pitch == pytest.approx(math.radians(30.0))
    assert cfg.fov_y == pytest.approx(math.radians(45.0))


def test_from_env_overrides():
    cfg = OrbitCameraConfig.from_env(
        {"ORBIT_ZOOM_SCALE": "25", "ORBIT_MAX_DISTANCE": "40.5", "ORBIT_SYNC_LIGHT_TRANSFORM": "yes", "OTHER": "x"}
    )
    assert cfg.zoom_scale == 25.0
    assert cfg.max_distance == 40.5
    assert cfg.sync_light_transform is True
    assert cfg.look_scale == 1.0


def test_from_env_rejects_negative_zoom_scale():
    with pytest.raises(ValueError):
        OrbitCameraConfig.from_env({"ORBIT_ZOOM_SCALE": "-50"})


def test_from_env_ignores_blank_values():
    assert OrbitCameraConfig.from_env({"ORBIT_LOOK_SCALE": "  "}).look_scale == 1.0


@pytest.mark.parametrize(
    "env",
    [{"ORBIT_ZOOM_SCALE": "fast"}, {"ORBIT_SYNC_LIGHT_TRANSFORM": "maybe"}],
)
def test_from_env_rejects_bad_values(env):
    with pytest.raises(ValueError):
        OrbitCameraConfig.from_env(env)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(min_distance=10.0, max_distance=5.0),
        dict(min_distance=0.0),
        dict(min_pitch_deg=0.0),
        dict(max_pitch_deg=180.0),
        dict(near=10.0, far=1.0),
        dict(fov_y_deg=0.0),
        dict(zoom_scale=-50.0),
        dict(look_scale=0.0),
    ],
)
def test_invalid_ranges_raise(kwargs):
    with pytest.raises(ValueError):
        OrbitCameraConfig(**kwargs)
