from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from trimesh import transformations as tf

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)


def triangle_area(a, b, c) -> float:
    cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
    return 0.5 * abs(float(cross))


def point_in_triangle(p, a, b, c, tolerance: float = 1e-9) -> bool:
    """Signed-area containment test on 2D points.

    The point is inside when the three sub-triangles it forms with the edges add
    up to the full triangle area. Points on an edge count as inside.
    """
    total = triangle_area(a, b, c)
    parts = triangle_area(p, a, b) + triangle_area(p, b, c) + triangle_area(p, c, a)
    return abs(parts - total) <= tolerance


def transform_points(matrix: np.ndarray, points) -> np.ndarray:
    """Apply a 4x4 matrix to Nx3 points and return the Nx4 homogeneous result."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homo = np.concatenate((pts, np.ones((len(pts), 1), dtype=np.float64)), axis=1)
    return homo @ np.asarray(matrix, dtype=np.float64).T


def project_points(matrix: np.ndarray, points, eps: float = 1e-12) -> np.ndarray | None:
    """Project points through ``matrix`` and return their 2D device-space x/y.

    Returns ``None`` when any point lands on or behind the eye plane (w <= eps).
    """
    clip = transform_points(matrix, points)
    w = clip[:, 3]
    if np.any(w <= eps):
        return None
    return clip[:, :2] / w[:, None]


def screen_to_ndc(cursor: Sequence[float], screen_size: Sequence[float]) -> np.ndarray:
    # window pixels grow downwards, device space grows upwards
    w = max(1.0, float(screen_size[0]))
    h = max(1.0, float(screen_size[1]))
    x_ndc = (float(cursor[0]) / w) * 2.0 - 1.0
    y_ndc = 1.0 - (float(cursor[1]) / h) * 2.0
    return np.array([x_ndc, y_ndc], dtype=np.float64)


def perspective_rh(fov_y: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Right-handed perspective matrix mapping view depth to the [0, 1] range."""
    f = 1.0 / math.tan(0.5 * fov_y)
    depth = far / (near - far)
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, depth, near * depth],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float64,
    )


def rotation_y(angle: float) -> np.ndarray:
    return tf.rotation_matrix(angle, WORLD_UP)[:3, :3]


def look_at_rotation(eye, target, up=WORLD_UP) -> np.ndarray:
    # local -Z points from eye to target
    eye = np.asarray(eye, dtype=np.float64)
    forward = eye - np.asarray(target, dtype=np.float64)
    forward = forward / np.linalg.norm(forward)
    right = np.cross(np.asarray(up, dtype=np.float64), forward)
    right = right / np.linalg.norm(right)
    true_up = np.cross(forward, right)
    return np.column_stack((right, true_up, forward))


def quaternion_from_rotation(rotation: np.ndarray) -> np.ndarray:
    m = np.eye(4, dtype=np.float64)
    m[:3, :3] = rotation
    q = tf.quaternion_from_matrix(m)
    # keep w non-negative so equal rotations compare equal
    return -q if q[0] < 0.0 else q


def quaternion_to_rotation(quaternion) -> np.ndarray:
    return tf.quaternion_matrix(quaternion)[:3, :3]


def rotate_vector(quaternion, v) -> np.ndarray:
    return quaternion_to_rotation(quaternion) @ np.asarray(v, dtype=np.float64)


def compose_transform(translation, quaternion) -> np.ndarray:
    m = tf.quaternion_matrix(quaternion)
    m[:3, 3] = np.asarray(translation, dtype=np.float64)
    return m
