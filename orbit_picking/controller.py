from __future__ import annotations

import logging
from typing import Hashable, Iterable

from .config import OrbitCameraConfig
from .intent import CameraManipulation, InputSnapshot, classify_input
from .orbit_camera import OrbitCamera
from .picking import PerspectiveProjection, PickableMesh, PickResult, cursor_pick
from .scene import PoseStore

logger = logging.getLogger(__name__)


class OrbitController:
    """Runs one frame of input classification, camera update and picking."""

    def __init__(
        self,
        store: PoseStore,
        pivot_entity: Hashable,
        camera: OrbitCamera | None = None,
        config: OrbitCameraConfig | None = None,
    ) -> None:
        self.store = store
        self.pivot_entity = pivot_entity
        if camera is None:
            camera = OrbitCamera(config=config or OrbitCameraConfig())
        elif config is not None and config != camera.config:
            raise ValueError("config differs from the orbit camera's config")
        self.camera = camera
        self.config = camera.config
        self.last_manipulation: CameraManipulation | None = None

    def tick(self, snapshot: InputSnapshot, dt: float) -> CameraManipulation | None:
        manipulation = classify_input(snapshot)
        self.camera.update(manipulation, dt)
        self.camera.write_pose(self.store, self.pivot_entity)
        self.store.propagate()
        if manipulation is not None:
            logger.debug("%s -> %s", type(manipulation).__name__, self.camera.describe())
        self.last_manipulation = manipulation
        return manipulation

    def projection(self, window_size) -> PerspectiveProjection:
        w = max(1.0, float(window_size[0]))
        h = max(1.0, float(window_size[1]))
        return PerspectiveProjection(self.config.fov_y, w / h, self.config.near, self.config.far)

    def pick(self, snapshot: InputSnapshot, meshes: Iterable[PickableMesh]) -> PickResult | None:
        camera_transform = self.store.world_transform(self.camera.camera_entity)
        if camera_transform is None:
            return None
        return cursor_pick(
            snapshot.cursor,
            snapshot.window_size,
            camera_transform,
            self.projection(snapshot.window_size),
            meshes,
            self.config.pick_tolerance,
        )
