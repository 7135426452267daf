"""
3D Visualization Widget (PyVista Wrapper)
Hosts the render window of the three cubes and drives the frame loop.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from PySide6.QtCore import QTimer, Signal
from PySide6.QtGui import QCloseEvent, QResizeEvent
from PySide6.QtWidgets import QFrame, QHBoxLayout, QPushButton, QStyle, QVBoxLayout, QWidget
from pyvistaqt import QtInteractor

from polycube import config
from polycube.controller.picking import CameraModel, Viewport
from polycube.controller.sync import PolyCubeController
from polycube.model.records import Record
from polycube.model.state import ViewState
from polycube.view.widgets.scene_renderer import SceneRenderer

logger = logging.getLogger(__name__)

# Pointer travel (pixels) below which a press/release pair counts as a click
CLICK_TOLERANCE_PX = 4


class PolyCubeWidget(QWidget):
    record_picked = Signal(object)

    def __init__(self, controller: PolyCubeController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)
        self._init_plotter()

        self.renderer = SceneRenderer(self.plotter)
        self._press_position: Optional[Tuple[int, int]] = None
        self._attach_observers()
        self._setup_overlay_controls()

        controller.subscribe("background", self.set_background)
        controller.subscribe("data", self.reset_view)

        # Render tick: animator, then scene sync, then draw
        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(config.RENDER_TICK_MS)
        self._tick_timer.timeout.connect(self._on_tick)
        self._tick_timer.start()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def set_background(self, color: str) -> None:
        self.plotter.set_background(color)
        self.plotter.render()

    def reset_view(self) -> None:
        """Sync the scene and frame the cubes that are currently shown."""
        self.renderer.sync(self.controller.webgl_scene, self.controller.css_scene)
        self.plotter.view_isometric()
        self.plotter.reset_camera()
        self.plotter.render()

    def focus_view_state(self, view_state: ViewState) -> None:
        cubes = {
            ViewState.GEO_CUBE: self.controller.geo_cube,
            ViewState.SET_CUBE: self.controller.set_cube,
            ViewState.NET_CUBE: self.controller.net_cube,
        }
        cube = cubes.get(view_state)
        self.renderer.sync(self.controller.webgl_scene, self.controller.css_scene)
        if cube is None:
            self.plotter.reset_camera()
        else:
            half = self.controller.dm.cube_width
            x, y, z = cube.get_cube_position()
            self.plotter.reset_camera(bounds=(x - half, x + half, y - half, y + half, z - half, z + half))
        self.plotter.render()

    def camera_model(self) -> CameraModel:
        cam = self.plotter.camera
        return CameraModel(
            position=tuple(cam.position),
            focal_point=tuple(cam.focal_point),
            view_up=tuple(cam.up),
            view_angle=float(cam.view_angle),
            parallel_projection=bool(cam.parallel_projection),
            parallel_scale=float(cam.parallel_scale),
        )

    # ------------------------------------------------------------------------------
    # Internal: Frame loop
    # ------------------------------------------------------------------------------

    def _on_tick(self) -> None:
        if not self.controller.tick():
            return
        self.renderer.sync(self.controller.webgl_scene, self.controller.css_scene)
        self.plotter.render()

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _init_plotter(self) -> None:
        self.plotter.set_background(config.DEFAULT_BACKGROUND)
        self.plotter.view_isometric()

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        iren.add_observer("LeftButtonPressEvent", lambda *_: self._on_press())
        iren.add_observer("LeftButtonReleaseEvent", lambda *_: self._on_release())

    def _on_press(self) -> None:
        self._press_position = tuple(self.plotter.iren.get_event_position())

    def _on_release(self) -> None:
        if self._press_position is None:
            return
        x, y = self.plotter.iren.get_event_position()
        px, py = self._press_position
        self._press_position = None
        if abs(x - px) > CLICK_TOLERANCE_PX or abs(y - py) > CLICK_TOLERANCE_PX:
            return  # camera drag

        width, height = self.plotter.window_size
        if width <= 0 or height <= 0:
            return
        # VTK display coordinates start bottom-left
        pointer = (float(x), float(height - y))
        try:
            record: Optional[Record] = self.controller.on_click(
                pointer, Viewport(0.0, 0.0, float(width), float(height)), self.camera_model()
            )
        except ValueError as e:
            logger.warning(f"Picking failed: {e}")
            return
        self.record_picked.emit(record)

    def _setup_overlay_controls(self) -> None:
        """Floating camera buttons."""
        self.overlay_widget = QFrame(self)
        self.overlay_widget.setStyleSheet("""
            QFrame { background-color: rgba(255, 255, 255, 200); border-radius: 6px; border: 1px solid #ccc; }
            QPushButton { background-color: transparent; border: none; padding: 4px; }
            QPushButton:hover { background-color: rgba(0, 0, 0, 10); }
        """)

        layout = QHBoxLayout(self.overlay_widget)
        layout.setContentsMargins(4, 4, 4, 4)

        def make_btn(icon, slot, tooltip):
            btn = QPushButton()
            btn.setIcon(self.style().standardIcon(icon))
            btn.setToolTip(tooltip)
            btn.clicked.connect(slot)
            layout.addWidget(btn)
            return btn

        self.btn_reset = make_btn(QStyle.SP_BrowserReload, self.reset_view, "Reset camera")
        self.btn_top = make_btn(QStyle.SP_ArrowDown, self._view_from_top, "View from top")
        self.overlay_widget.adjustSize()

    def _view_from_top(self) -> None:
        self.plotter.view_xz()
        self.plotter.render()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self.overlay_widget.move(10, 10)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._tick_timer.stop()
        self.plotter.close()
        event.accept()
