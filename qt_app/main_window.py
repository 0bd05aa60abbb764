from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
from PySide6.QtCore import QObject, QSettings, Qt, Signal
from PySide6.QtGui import QAction, QSurfaceFormat
from PySide6.QtWidgets import (
    QApplication,
    QDockWidget,
    QFileDialog,
    QLabel,
    QListWidget,
    QMainWindow,
)

from orbit_picking.config import OrbitCameraConfig
from orbit_picking.picking import PickResult

from .mesh_io import build_demo_scene, load_mesh_file
from .viewport import OrbitViewportWidget

logger = logging.getLogger(__name__)


class LogBridge(QObject):
    message = Signal(str, str)


class QtLogHandler(logging.Handler):
    """Forwards log records to the GUI thread as ``(levelname, text)`` signals."""

    def __init__(self) -> None:
        super().__init__()
        self.bridge = LogBridge()
        self.setFormatter(logging.Formatter("%(levelname)s | %(message)s"))

    def emit(self, record) -> None:
        try:
            self.bridge.message.emit(record.levelname, self.format(record))
        except Exception:
            self.handleError(record)


class OrbitViewerMainWindow(QMainWindow):
    SETTINGS_ORG = "OrbitViewer"
    SETTINGS_APP = "OrbitViewer"

    def __init__(self, config: OrbitCameraConfig | None = None) -> None:
        super().__init__()
        self.setWindowTitle("Orbit Viewer")
        self.resize(1280, 800)
        self._settings = QSettings(self.SETTINGS_ORG, self.SETTINGS_APP)
        self.last_open_dir = str(self._settings.value("last_open_dir", str(Path.home())))

        self.scene = build_demo_scene(config or OrbitCameraConfig.from_env())
        self.viewport = OrbitViewportWidget(self.scene, self)
        self.setCentralWidget(self.viewport)

        self.message_list = QListWidget(self)
        self.messages_dock = QDockWidget("Messages", self)
        self.messages_dock.setObjectName("MessagesDock")
        self.messages_dock.setWidget(self.message_list)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.messages_dock)

        self.camera_label = QLabel("", self)
        self.pick_label = QLabel("Pick: -", self)
        self.statusBar().addWidget(self.camera_label, 1)
        self.statusBar().addPermanentWidget(self.pick_label)

        self._log_handler = QtLogHandler()
        self._log_handler.setLevel(logging.INFO)
        self._log_handler.bridge.message.connect(self._on_log_message)
        logging.getLogger().addHandler(self._log_handler)

        self._build_menu()
        self.viewport.cameraChanged.connect(self.camera_label.setText)
        self.viewport.trianglePicked.connect(self._on_triangle_picked)
        self.viewport.modelDropped.connect(self.load_model_file)
        self._restore_layout()
        self.camera_label.setText(self.scene.orbit.describe())
        logger.info("Scene ready: %d pickable meshes", len(self.scene.objects))

    def _build_menu(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        open_action = QAction("&Open Mesh...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self.open_mesh_dialog)
        file_menu.addAction(open_action)
        exit_action = QAction("E&xit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        view_menu = self.menuBar().addMenu("&View")
        reset_action = QAction("&Reset Camera", self)
        reset_action.setShortcut("Home")
        reset_action.triggered.connect(self.viewport.reset_camera)
        view_menu.addAction(reset_action)
        clear_action = QAction("&Clear Pick", self)
        clear_action.setShortcut("Esc")
        clear_action.triggered.connect(self.viewport.clear_pick)
        view_menu.addAction(clear_action)
        view_menu.addAction(self.messages_dock.toggleViewAction())

    def open_mesh_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Mesh", self.last_open_dir, "Meshes (*.stl *.obj *.ply *.off *.glb *.gltf)"
        )
        if path:
            self.load_model_file(path)

    def load_model_file(self, path: str) -> None:
        try:
            mesh = load_mesh_file(path)
        except Exception as exc:
            logger.error("Could not load %s: %s", Path(path).name, exc)
            return
        self.last_open_dir = str(Path(path).parent)
        self.scene.remove_loaded()
        center = (np.asarray(mesh.bounds[0]) + np.asarray(mesh.bounds[1])) * 0.5
        self.scene.add_mesh(f"file:{Path(path).name}", mesh, translation=-center)
        self.scene.store.propagate()
        self.viewport.rebuild_items()
        logger.info("Loaded %s: %d vertices, %d faces", Path(path).name, len(mesh.vertices), len(mesh.faces))

    def _on_triangle_picked(self, result: PickResult | None) -> None:
        if result is None:
            self.pick_label.setText("Pick: none")
            return
        self.pick_label.setText(f"Pick: {result.mesh_id} #{result.triangle_index}")
        logger.info("Picked %s triangle %d", result.mesh_id, result.triangle_index)

    def _on_log_message(self, level: str, text: str) -> None:
        self.message_list.addItem(text)
        self.message_list.setCurrentRow(self.message_list.count() - 1)

    def closeEvent(self, event) -> None:  # noqa: N802
        logging.getLogger().removeHandler(self._log_handler)
        self._save_layout()
        super().closeEvent(event)

    def _save_layout(self) -> None:
        self._settings.setValue("geometry", self.saveGeometry())
        self._settings.setValue("state", self.saveState())
        self._settings.setValue("last_open_dir", self.last_open_dir)

    def _restore_layout(self) -> None:
        geometry = self._settings.value("geometry")
        state = self._settings.value("state")
        if geometry is not None:
            self.restoreGeometry(geometry)
        if state is not None:
            self.restoreState(state)


def _configure_default_surface() -> None:
    fmt = QSurfaceFormat()
    fmt.setRenderableType(QSurfaceFormat.RenderableType.OpenGL)
    fmt.setDepthBufferSize(24)
    fmt.setSamples(4)
    QSurfaceFormat.setDefaultFormat(fmt)


def run_qt_app() -> int:
    _configure_default_surface()
    app = QApplication.instance() or QApplication(sys.argv)
    win = OrbitViewerMainWindow()
    win.show()
    return app.exec()
