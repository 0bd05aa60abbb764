from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields

ENV_PREFIX = "ORBIT_"


@dataclass
class OrbitCameraConfig:
    min_distance: float = 5.0
    max_distance: float = 30.0
    min_pitch_deg: float = 1.0
    max_pitch_deg: float = 179.0
    look_scale: float = 1.0
    zoom_scale: float = 50.0
    initial_distance: float = 20.0
    initial_pitch_deg: float = 30.0
    initial_yaw: float = 0.0
    fov_y_deg: float = 45.0
    near: float = 1.0
    far: float = 1000.0
    pick_tolerance: float = 1e-9
    sync_light_transform: bool = False

    min_pitch: float = field(init=False, repr=False)
    max_pitch: float = field(init=False, repr=False)
    initial_pitch: float = field(init=False, repr=False)
    fov_y: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.min_distance <= 0.0 or self.min_distance > self.max_distance:
            raise ValueError(f"Invalid distance range [{self.min_distance}, {self.max_distance}]")
        if not (0.0 < self.min_pitch_deg <= self.max_pitch_deg < 180.0):
            raise ValueError(f"Invalid pitch range [{self.min_pitch_deg}, {self.max_pitch_deg}] degrees")
        if self.near <= 0.0 or self.far <= self.near:
            raise ValueError(f"Invalid clip planes near={self.near} far={self.far}")
        if not (0.0 < self.fov_y_deg < 180.0):
            raise ValueError(f"Invalid field of view {self.fov_y_deg} degrees")
        if self.look_scale <= 0.0 or self.zoom_scale <= 0.0:
            raise ValueError(f"Scales must be positive, got look={self.look_scale} zoom={self.zoom_scale}")
        self.min_pitch = math.radians(self.min_pitch_deg)
        self.max_pitch = math.radians(self.max_pitch_deg)
        self.initial_pitch = math.radians(self.initial_pitch_deg)
        self.fov_y = math.radians(self.fov_y_deg)

    @classmethod
    def from_env(cls, environ=None) -> "OrbitCameraConfig":
        """Build a config, overriding defaults from ``ORBIT_<FIELD>`` variables.

        ``ORBIT_ZOOM_SCALE=25`` sets ``zoom_scale``; booleans accept
        1/0, true/false, yes/no, on/off.
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            if not f.init:
                continue
            raw = env.get(ENV_PREFIX + f.name.upper(), "").strip()
            if not raw:
                continue
            if isinstance(f.default, bool):
                kwargs[f.name] = _parse_bool(f.name, raw)
                continue
            try:
                kwargs[f.name] = float(raw)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}") from exc
        return cls(**kwargs)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
