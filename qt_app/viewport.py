from __future__ import annotations

import logging
from typing import Dict, Hashable, Tuple

import numpy as np
import pyqtgraph as pg
import pyqtgraph.opengl as gl
from PySide6.QtCore import QElapsedTimer, Qt, QTimer, Signal
from PySide6.QtGui import QMatrix4x4
from PySide6.QtWidgets import QApplication, QLabel, QSizePolicy, QWidget

from orbit_picking.controller import OrbitController
from orbit_picking.intent import InputSnapshot, ScrollUnit
from orbit_picking.picking import PickResult

from .mesh_io import SUPPORTED_SUFFIXES, DemoScene

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16
CLICK_SLOP_PX2 = 25.0


class OrbitViewportWidget(gl.GLViewWidget):
    cameraChanged = Signal(str)
    trianglePicked = Signal(object)
    modelDropped = Signal(str)

    def __init__(self, scene: DemoScene, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("OrbitViewportWidget")
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMouseTracking(True)
        self.setAcceptDrops(True)
        self.setMinimumSize(100, 100)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setBackgroundColor((204, 204, 204, 255))

        self.scene = scene
        self.controller = OrbitController(scene.store, scene.pivot, scene.orbit)
        self.last_pick: PickResult | None = None
        self._items: Dict[Hashable, gl.GLMeshItem] = {}

        # per-frame accumulators, reset after every tick
        self._mouse_delta = [0.0, 0.0]
        self._scroll = [0.0, 0.0]
        self._scroll_unit = ScrollUnit.LINE
        self._buttons = Qt.MouseButton.NoButton
        self._cursor: Tuple[float, float] = (0.0, 0.0)
        self._nav_last: Tuple[float, float] | None = None
        self._drag_start: Tuple[float, float] | None = None
        self._left_dragging = False
        self._pick_requested = False

        self.grid_item = gl.GLGridItem(color=(120, 120, 120, 110))
        self.grid_item.setSize(x=60.0, y=60.0, z=1.0)
        self.grid_item.setSpacing(1.0, 1.0, 1.0)
        self.grid_item.rotate(90.0, 1.0, 0.0, 0.0)
        self.grid_item.translate(0.0, -3.0, 0.0)
        self.addItem(self.grid_item)

        self.pick_item = gl.GLMeshItem(drawFaces=True, drawEdges=True, smooth=False, shader="shaded", glOptions="translucent")
        self.pick_item.setVisible(False)

        self.overlay = QLabel("", self)
        self.overlay.setStyleSheet(
            "QLabel { color:#20242b; background-color:rgba(255,255,255,170); border:1px solid #8a94a6; padding:4px 8px; }"
        )
        self.overlay.move(14, 14)
        self.overlay.setMinimumSize(260, 28)

        self.rebuild_items()

        self._clock = QElapsedTimer()
        self._clock.start()
        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start()

    def rebuild_items(self) -> None:
        for item in self._items.values():
            self.removeItem(item)
        self._items.clear()
        if self.pick_item in self.items:
            self.removeItem(self.pick_item)
        for obj in self.scene.objects:
            item = gl.GLMeshItem(
                vertexes=np.ascontiguousarray(obj.geometry.positions, dtype=np.float32),
                faces=np.ascontiguousarray(obj.geometry.indices, dtype=np.int32),
                color=obj.color,
                smooth=False,
                shader="shaded",
                drawEdges=False,
            )
            item.setGLOptions("opaque")
            self.addItem(item)
            self._items[obj.entity] = item
        self.addItem(self.pick_item)
        logger.debug("Viewport rebuilt with %d mesh items", len(self._items))
        self.clear_pick()
        self._sync_item_transforms()

    def clear_pick(self) -> None:
        self.last_pick = None
        self.pick_item.setVisible(False)
        self.update()

    def reset_camera(self) -> None:
        self.controller.camera.reset()
        self._on_camera_event()

    # GLViewWidget hooks: the controller's camera replaces pyqtgraph's own orbit state.

    def viewMatrix(self) -> QMatrix4x4:  # noqa: N802
        world = self.scene.store.world_transform(self.scene.camera_entity)
        if world is None:
            return super().viewMatrix()
        return pg.Transform3D(np.linalg.inv(world))

    def projectionMatrix(self, region=None, viewport=None) -> QMatrix4x4:  # noqa: N802
        # same x/y rows as the picking projection; only the depth mapping differs
        cfg = self.controller.config
        w = max(1, int(self.width()))
        h = max(1, int(self.height()))
        m = QMatrix4x4()
        m.perspective(float(cfg.fov_y_deg), w / float(h), float(cfg.near), float(cfg.far))
        return m

    # Qt input: only recorded here, consumed once per frame in _on_frame.

    def mousePressEvent(self, event) -> None:  # noqa: N802
        pos = event.position()
        cur = (float(pos.x()), float(pos.y()))
        self._cursor = cur
        self._nav_last = cur
        self._buttons = event.buttons()
        if event.button() == Qt.MouseButton.LeftButton:
            self._drag_start = cur
            self._left_dragging = False
        event.accept()

    def mouseMoveEvent(self, event) -> None:  # noqa: N802
        pos = event.position()
        cur = (float(pos.x()), float(pos.y()))
        if self._nav_last is None:
            self._nav_last = cur
        self._mouse_delta[0] += cur[0] - self._nav_last[0]
        self._mouse_delta[1] += cur[1] - self._nav_last[1]
        self._nav_last = cur
        self._cursor = cur
        self._buttons = event.buttons()
        if (event.buttons() & Qt.MouseButton.LeftButton) and self._drag_start is not None:
            ddx = cur[0] - self._drag_start[0]
            ddy = cur[1] - self._drag_start[1]
            if (ddx * ddx + ddy * ddy) > CLICK_SLOP_PX2:
                self._left_dragging = True
        event.accept()

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802
        pos = event.position()
        self._cursor = (float(pos.x()), float(pos.y()))
        self._buttons = event.buttons()
        if event.button() == Qt.MouseButton.LeftButton:
            if self._drag_start is not None and not self._left_dragging:
                self._pick_requested = True
            self._drag_start = None
            self._left_dragging = False
        event.accept()

    def wheelEvent(self, event) -> None:  # noqa: N802
        pixel = event.pixelDelta()
        if not pixel.isNull():
            self._scroll[0] += float(pixel.x())
            self._scroll[1] += float(pixel.y())
            self._scroll_unit = ScrollUnit.PIXEL
        else:
            angle = event.angleDelta()
            self._scroll[0] += float(angle.x()) / 120.0
            self._scroll[1] += float(angle.y()) / 120.0
            self._scroll_unit = ScrollUnit.LINE
        event.accept()

    def dragEnterEvent(self, event) -> None:  # noqa: N802
        if event.mimeData().hasUrls():
            urls = event.mimeData().urls()
            if urls:
                p = urls[0].toLocalFile().lower()
                if any(p.endswith(s) for s in SUPPORTED_SUFFIXES):
                    event.acceptProposedAction()
                    return
        event.ignore()

    def dropEvent(self, event) -> None:  # noqa: N802
        urls = event.mimeData().urls()
        if urls:
            self.modelDropped.emit(urls[0].toLocalFile())
            event.acceptProposedAction()

    def take_snapshot(self) -> InputSnapshot:
        mods = QApplication.keyboardModifiers()
        snapshot = InputSnapshot(
            mouse_delta=(self._mouse_delta[0], self._mouse_delta[1]),
            scroll=(self._scroll[0], self._scroll[1]),
            scroll_unit=self._scroll_unit,
            alt=bool(mods & Qt.KeyboardModifier.AltModifier),
            shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
            left=bool(self._buttons & Qt.MouseButton.LeftButton),
            middle=bool(self._buttons & Qt.MouseButton.MiddleButton),
            right=bool(self._buttons & Qt.MouseButton.RightButton),
            cursor=self._cursor,
            window_size=(float(max(1, self.width())), float(max(1, self.height()))),
        )
        self._mouse_delta = [0.0, 0.0]
        self._scroll = [0.0, 0.0]
        return snapshot

    def _on_frame(self) -> None:
        dt = self._clock.restart() / 1000.0
        snapshot = self.take_snapshot()
        manipulation = self.controller.tick(snapshot, dt)
        self._sync_item_transforms()
        if self._pick_requested:
            self._pick_requested = False
            self._run_pick(snapshot)
        if manipulation is not None:
            self._on_camera_event()
        self.update()

    def _run_pick(self, snapshot: InputSnapshot) -> None:
        result = self.controller.pick(snapshot, self.scene.pickables())
        self.last_pick = result
        if result is None:
            self.pick_item.setVisible(False)
        else:
            world = self.scene.store.world_transform(self._entity_for(result.mesh_id))
            self.pick_item.setMeshData(
                vertexes=np.ascontiguousarray(result.vertices, dtype=np.float32),
                faces=np.array([[0, 1, 2]], dtype=np.int32),
                faceColors=np.array([[1.0, 0.42, 0.05, 0.9]], dtype=np.float32),
                smooth=False,
                drawEdges=True,
                shader="shaded",
            )
            if world is not None:
                self.pick_item.setTransform(pg.Transform3D(world))
            self.pick_item.setVisible(True)
        self.trianglePicked.emit(result)

    def _entity_for(self, mesh_id: Hashable) -> Hashable | None:
        for obj in self.scene.objects:
            if obj.name == mesh_id:
                return obj.entity
        return None

    def _sync_item_transforms(self) -> None:
        for entity, item in self._items.items():
            world = self.scene.store.world_transform(entity)
            if world is not None:
                item.setTransform(pg.Transform3D(world))

    def _on_camera_event(self) -> None:
        text = self.controller.camera.describe()
        self.overlay.setText(text)
        self.overlay.adjustSize()
        self.cameraChanged.emit(text)
