from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Hashable, List

import numpy as np
import trimesh

from orbit_picking.config import OrbitCameraConfig
from orbit_picking.orbit_camera import OrbitCamera
from orbit_picking.picking import MeshGeometry, PickableMesh, PrimitiveTopology
from orbit_picking.scene import PoseStore

SUPPORTED_SUFFIXES = {".stl", ".obj", ".ply", ".off", ".glb", ".gltf"}


def geometry_from_trimesh(mesh: trimesh.Trimesh) -> MeshGeometry:
    return MeshGeometry(
        positions=np.asarray(mesh.vertices, dtype=np.float64),
        indices=np.asarray(mesh.faces, dtype=np.int64),
        topology=PrimitiveTopology.TRIANGLE_LIST,
    )


def load_mesh_file(path: str) -> trimesh.Trimesh:
    loaded = trimesh.load(path)
    if isinstance(loaded, trimesh.Scene):
        loaded = loaded.dump(concatenate=True)
    faces = np.asarray(getattr(loaded, "faces", np.empty((0, 3))), dtype=np.int64)
    if len(faces) == 0:
        raise ValueError(f"No triangle faces found in {Path(path).name}")
    return loaded


@dataclass
class SceneObject:
    entity: Hashable
    name: str
    mesh: trimesh.Trimesh
    geometry: MeshGeometry
    color: tuple = (1.0, 1.0, 1.0, 1.0)


@dataclass
class DemoScene:
    store: PoseStore
    pivot: Hashable
    camera_entity: Hashable
    light_entity: Hashable
    orbit: OrbitCamera
    objects: List[SceneObject] = field(default_factory=list)

    def add_mesh(self, name: str, mesh: trimesh.Trimesh, translation=(0.0, 0.0, 0.0), color=(1.0, 1.0, 1.0, 1.0)) -> SceneObject:
        entity = self.store.spawn(translation=translation)
        obj = SceneObject(entity, name, mesh, geometry_from_trimesh(mesh), color)
        self.objects.append(obj)
        return obj

    def remove_loaded(self) -> None:
        keep = []
        for obj in self.objects:
            if obj.name.startswith("file:"):
                self.store.despawn(obj.entity)
            else:
                keep.append(obj)
        self.objects = keep

    def pickables(self) -> List[PickableMesh]:
        result = []
        for obj in self.objects:
            world = self.store.world_transform(obj.entity)
            if world is None:
                continue
            result.append(PickableMesh(obj.name, obj.geometry, world))
        return result

    def object_names(self) -> Dict[Hashable, str]:
        return {obj.entity: obj.name for obj in self.objects}


def build_demo_scene(config: OrbitCameraConfig | None = None, detail: int = 3) -> DemoScene:
    store = PoseStore()
    pivot = store.spawn(entity_id="pivot")
    camera_entity = store.spawn(parent=pivot, entity_id="camera")
    light_entity = store.spawn(translation=(0.0, 0.0, 5.0), parent=pivot, entity_id="light")
    orbit = OrbitCamera(config=config or OrbitCameraConfig(), camera_entity=camera_entity, light_entity=light_entity)
    scene = DemoScene(store, pivot, camera_entity, light_entity, orbit)

    # pivot marker shares the pivot entity so it turns with the camera rig
    marker = trimesh.creation.icosphere(subdivisions=1, radius=0.1)
    scene.objects.append(SceneObject(pivot, "pivot", marker, geometry_from_trimesh(marker), (1.0, 0.0, 0.0, 1.0)))

    scene.add_mesh("cube", trimesh.creation.box(extents=(1.0, 1.0, 1.0)), (-2.0, -2.0, -2.0))
    scene.add_mesh("sphere", trimesh.creation.icosphere(subdivisions=detail, radius=1.0), (0.0, 0.0, 0.0))
    scene.add_mesh("light_indicator", trimesh.creation.icosphere(subdivisions=max(1, detail - 1), radius=1.0), (0.0, 3.0, 8.0))
    store.propagate()
    return scene
