from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Iterator, Sequence, Tuple

import numpy as np

from .geometry import perspective_rh, point_in_triangle, project_points, screen_to_ndc

logger = logging.getLogger(__name__)


class PrimitiveTopology(enum.Enum):
    POINT_LIST = "point_list"
    LINE_LIST = "line_list"
    LINE_STRIP = "line_strip"
    TRIANGLE_LIST = "triangle_list"
    TRIANGLE_STRIP = "triangle_strip"


@dataclass
class MeshGeometry:
    positions: np.ndarray | None
    indices: np.ndarray | None = None
    topology: PrimitiveTopology = PrimitiveTopology.TRIANGLE_LIST

    def triangles(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield ``(triangle_index, 3x3 vertices)``; incomplete chunks are dropped."""
        if self.positions is None:
            return
        positions = np.asarray(self.positions, dtype=np.float64)
        if positions.ndim != 2 or positions.shape[1] != 3:
            return
        if self.indices is None:
            for i in range(len(positions) // 3):
                yield i, positions[3 * i:3 * i + 3]
            return
        flat = np.asarray(self.indices, dtype=np.int64).reshape(-1)
        for i in range(len(flat) // 3):
            tri = flat[3 * i:3 * i + 3]
            if np.any(tri < 0) or np.any(tri >= len(positions)):
                continue
            yield i, positions[tri]


@dataclass
class PickableMesh:
    mesh_id: Hashable
    geometry: MeshGeometry
    world_transform: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=np.float64))


@dataclass(frozen=True)
class PerspectiveProjection:
    fov_y: float
    aspect: float
    near: float
    far: float

    def matrix(self) -> np.ndarray:
        return perspective_rh(self.fov_y, self.aspect, self.near, self.far)


@dataclass(frozen=True)
class PickResult:
    mesh_id: Hashable
    triangle_index: int
    vertices: np.ndarray = field(compare=False)
    projected: np.ndarray = field(compare=False)


def view_projection(camera_transform: np.ndarray, projection: PerspectiveProjection) -> np.ndarray:
    return projection.matrix() @ np.linalg.inv(np.asarray(camera_transform, dtype=np.float64))


def pick_in_ndc(
    ndc: Sequence[float],
    view_proj: np.ndarray,
    meshes: Iterable[PickableMesh],
    tolerance: float = 1e-9,
) -> PickResult | None:
    """First mesh/triangle whose projection contains ``ndc``; no depth sorting."""
    for mesh in meshes:
        geometry = mesh.geometry
        if geometry.topology is not PrimitiveTopology.TRIANGLE_LIST:
            continue
        if geometry.positions is None:
            continue
        combined = view_proj @ np.asarray(mesh.world_transform, dtype=np.float64)
        for index, tri in geometry.triangles():
            projected = project_points(combined, tri)
            if projected is None:
                continue
            if point_in_triangle(ndc, projected[0], projected[1], projected[2], tolerance):
                logger.debug("Pick hit mesh=%r triangle=%d", mesh.mesh_id, index)
                return PickResult(mesh.mesh_id, index, tri.copy(), projected)
    return None


def cursor_pick(
    cursor: Sequence[float],
    screen_size: Sequence[float],
    camera_transform: np.ndarray,
    projection: PerspectiveProjection,
    meshes: Iterable[PickableMesh],
    tolerance: float = 1e-9,
) -> PickResult | None:
    ndc = screen_to_ndc(cursor, screen_size)
    return pick_in_ndc(ndc, view_projection(camera_transform, projection), meshes, tolerance)
