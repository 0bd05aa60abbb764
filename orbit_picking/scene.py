from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, Tuple

import numpy as np

from .geometry import compose_transform

logger = logging.getLogger(__name__)

IDENTITY_QUAT = (1.0, 0.0, 0.0, 0.0)


@dataclass
class EntityPose:
    """Pose fields of one entity. ``rotation`` is a (w, x, y, z) quaternion."""

    translation: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float64))
    rotation: np.ndarray = field(default_factory=lambda: np.array(IDENTITY_QUAT, dtype=np.float64))
    transform: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=np.float64))
    sync: bool = True
    parent: Hashable | None = None

    def local_matrix(self) -> np.ndarray:
        return compose_transform(self.translation, self.rotation)


class PoseStore:
    """In-memory entity pose storage with parent/child world transforms."""

    def __init__(self) -> None:
        self._poses: Dict[Hashable, EntityPose] = {}
        self._ids = itertools.count(1)

    def spawn(self, translation=(0.0, 0.0, 0.0), parent: Hashable | None = None, entity_id: Hashable | None = None) -> Hashable:
        if entity_id is None:
            entity_id = next(self._ids)
        if entity_id in self._poses:
            raise ValueError(f"Entity {entity_id!r} already exists")
        pose = EntityPose(translation=np.asarray(translation, dtype=np.float64).copy(), parent=parent)
        pose.transform = pose.local_matrix()
        self._poses[entity_id] = pose
        return entity_id

    def despawn(self, entity_id: Hashable) -> None:
        self._poses.pop(entity_id, None)

    def get(self, entity_id: Hashable | None) -> EntityPose | None:
        if entity_id is None:
            return None
        return self._poses.get(entity_id)

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._poses

    def __iter__(self) -> Iterator[Tuple[Hashable, EntityPose]]:
        return iter(self._poses.items())

    def __len__(self) -> int:
        return len(self._poses)

    def world_transform(self, entity_id: Hashable) -> np.ndarray | None:
        pose = self._poses.get(entity_id)
        return None if pose is None else pose.transform

    def propagate(self) -> None:
        """Recompute world transforms, parents before children.

        Entities with ``sync`` cleared keep whatever transform was written to them.
        """
        done: Dict[Hashable, np.ndarray] = {}
        for entity_id in self._poses:
            self._resolve(entity_id, done, [])

    def _resolve(self, entity_id: Hashable, done: Dict[Hashable, np.ndarray], chain: List[Hashable]) -> np.ndarray:
        if entity_id in done:
            return done[entity_id]
        if entity_id in chain:
            raise ValueError(f"Cycle in entity hierarchy at {entity_id!r}")
        pose = self._poses[entity_id]
        if pose.sync:
            parent_world = np.eye(4, dtype=np.float64)
            if pose.parent is not None and pose.parent in self._poses:
                parent_world = self._resolve(pose.parent, done, chain + [entity_id])
            elif pose.parent is not None:
                logger.debug("Entity %r has missing parent %r; treating as root", entity_id, pose.parent)
            pose.transform = parent_world @ pose.local_matrix()
        done[entity_id] = pose.transform
        return pose.transform
