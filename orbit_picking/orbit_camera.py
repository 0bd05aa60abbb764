from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Hashable

import numpy as np

from .config import OrbitCameraConfig
from .geometry import look_at_rotation, quaternion_from_rotation, rotation_y
from .intent import CameraManipulation, Orbit, Pan, Rotate, Zoom
from .scene import PoseStore


@dataclass
class OrbitCamera:
    """Spherical camera state carried by the pivot entity.

    ``camera_entity`` and ``light_entity`` are identifiers looked up in the pose
    store every frame; the pivot does not own them.
    """

    config: OrbitCameraConfig = field(default_factory=OrbitCameraConfig)
    distance: float | None = None
    pitch: float | None = None
    yaw: float | None = None
    camera_entity: Hashable | None = None
    light_entity: Hashable | None = None

    def __post_init__(self) -> None:
        if self.distance is None:
            self.distance = self.config.initial_distance
        if self.pitch is None:
            self.pitch = self.config.initial_pitch
        if self.yaw is None:
            self.yaw = self.config.initial_yaw

    def reset(self) -> None:
        self.distance = self.config.initial_distance
        self.pitch = self.config.initial_pitch
        self.yaw = self.config.initial_yaw

    def apply(self, manipulation: CameraManipulation | None, dt: float) -> None:
        # non-finite steps are dropped; NaN would slip through the clamp
        if isinstance(manipulation, Orbit):
            dx, dy = manipulation.delta
            yaw = self.yaw + dx * dt
            pitch = self.pitch - dy * dt * self.config.look_scale
            if math.isfinite(yaw):
                self.yaw = yaw
            if math.isfinite(pitch):
                self.pitch = pitch
        elif isinstance(manipulation, Zoom):
            distance = self.distance - manipulation.scroll[1] * dt * self.config.zoom_scale
            if math.isfinite(distance):
                self.distance = distance
        elif isinstance(manipulation, (Pan, Rotate)):
            # Recognised but not wired to the camera yet.
            pass

    def clamp(self) -> None:
        cfg = self.config
        self.pitch = min(max(self.pitch, cfg.min_pitch), cfg.max_pitch)
        self.distance = min(max(self.distance, cfg.min_distance), cfg.max_distance)

    def update(self, manipulation: CameraManipulation | None, dt: float) -> None:
        self.apply(manipulation, dt)
        self.clamp()

    def pivot_rotation(self) -> np.ndarray:
        return rotation_y(-self.yaw)

    def camera_offset(self) -> np.ndarray:
        direction = np.array([0.0, math.cos(self.pitch), -math.sin(self.pitch)], dtype=np.float64)
        return direction / np.linalg.norm(direction) * self.distance

    def camera_rotation(self) -> np.ndarray:
        return look_at_rotation(self.camera_offset(), np.zeros(3))

    def light_offset(self) -> np.ndarray:
        return self.pivot_rotation() @ self.camera_offset()

    def write_pose(self, store: PoseStore, pivot_entity: Hashable) -> None:
        """Push the derived pose into the store.

        Steps that need a missing entity are skipped for this frame.
        """
        pivot = store.get(pivot_entity)
        if pivot is not None:
            pivot.rotation = quaternion_from_rotation(self.pivot_rotation())

        offset = self.camera_offset()
        camera = store.get(self.camera_entity)
        if camera is not None:
            camera.translation = offset
            camera.rotation = quaternion_from_rotation(self.camera_rotation())

        light = store.get(self.light_entity)
        if light is None:
            return
        light.translation = self.light_offset()
        if self.config.sync_light_transform or camera is None:
            light.sync = True
        else:
            # the light reuses the camera's previous world transform as-is
            light.transform = camera.transform.copy()
            light.sync = False

    def describe(self) -> str:
        return (
            f"distance={self.distance:.2f} pitch={math.degrees(self.pitch):.1f}deg "
            f"yaw={math.degrees(self.yaw):.1f}deg"
        )
