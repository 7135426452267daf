"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the control tabs and the
3D view of the cubes.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects the panels and the menu actions to the
   ``PolyCubeController`` and reports failures to the user.
"""
import logging
import os
from typing import Any, Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QFileDialog, QMainWindow, QMessageBox, QSplitter, QStackedWidget, QTabBar, QVBoxLayout, QWidget
)

from polycube.controller.sync import PolyCubeController
from polycube.model.io import IOManager
from polycube.model.records import Record
from polycube.model.state import LayoutMode, TimeMode, ViewState
from polycube.view.panels.control_panel import ControlPanel
from polycube.view.panels.details_panel import DetailsPanel
from polycube.view.panels.filter_panel import FilterPanel
from polycube.view.widgets.plot_3d import PolyCubeWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "PolyCube"


class MainWindow(QMainWindow):
    def __init__(self, controller: PolyCubeController) -> None:
        super().__init__()
        self.controller = controller
        self.dataset_path: Optional[str] = None

        self.update_window_title()
        self.resize(1400, 900)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # --- 1. TOP TAB BAR ---
        self.tab_bar = QTabBar()
        self.tab_bar.setDrawBase(True)
        self.tab_bar.setShape(QTabBar.RoundedNorth)
        self.tab_bar.setExpanding(True)
        self.tab_bar.addTab("1. Cubes")
        self.tab_bar.addTab("2. Filter")
        self.tab_bar.addTab("3. Details")
        self.tab_bar.setStyleSheet("""
                    QTabBar::tab { height: 35px; min-width: 100px; }
                    QTabBar::tab:selected { font-weight: bold; }
                """)
        main_layout.addWidget(self.tab_bar)

        # --- 2. SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- LEFT SIDE: Control Panels (Stacked) ---
        self.controls_stack = QStackedWidget()
        self.control_panel = ControlPanel(self.controller.style)
        self.filter_panel = FilterPanel(self.controller.dm)
        self.details_panel = DetailsPanel()
        # Order must match Tab Bar order
        self.controls_stack.addWidget(self.control_panel)
        self.controls_stack.addWidget(self.filter_panel)
        self.controls_stack.addWidget(self.details_panel)
        splitter.addWidget(self.controls_stack)

        # --- RIGHT SIDE: 3D Visualization ---
        self.visualizer = PolyCubeWidget(self.controller)
        splitter.addWidget(self.visualizer)
        splitter.setSizes([350, 1050])

        # --- SIGNAL CONNECTIONS ---
        self.tab_bar.currentChanged.connect(self.controls_stack.setCurrentIndex)
        self.control_panel.style_changed.connect(self.on_style_changed)
        self.control_panel.layout_requested.connect(self.on_layout_requested)
        self.control_panel.time_mode_changed.connect(self.on_time_mode_changed)
        self.control_panel.view_state_changed.connect(self.on_view_state_changed)
        self.filter_panel.filter_changed.connect(self.on_filter_changed)
        self.visualizer.record_picked.connect(self.on_record_picked)
        self.controller.subscribe("selection", self.details_panel.show_record)
        self.controller.subscribe("data", self.filter_panel.load_from_datastore)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

    def _create_actions(self) -> None:
        self.act_open = QAction("Open Dataset...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_load_positions = QAction("Load Layout Positions...", self)
        self.act_load_positions.triggered.connect(self.on_load_positions)

        self.act_export_positions = QAction("Export Layout Positions...", self)
        self.act_export_positions.triggered.connect(self.on_export_positions)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        self.act_clear_selection = QAction("Clear Selection", self)
        self.act_clear_selection.setShortcut("Esc")
        self.act_clear_selection.triggered.connect(self.controller.clear_highlight)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_open)
        file_menu.addSeparator()
        file_menu.addAction(self.act_load_positions)
        file_menu.addAction(self.act_export_positions)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_clear_selection)

    # --- HELPER METHODS ---

    def update_window_title(self) -> None:
        filename = os.path.basename(self.dataset_path) if self.dataset_path else "No dataset"
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{filename}]")

    def load_dataset(self, filepath: str, positions_path: Optional[str] = None) -> None:
        """Load a dataset (and optionally its layout positions) into the cubes."""
        records = IOManager.load_records(filepath)
        positions = IOManager.load_positions(positions_path) if positions_path else None
        self.controller.load_records(records, positions)
        self.dataset_path = filepath
        self.update_window_title()

    # --- CONTROL SLOTS ---

    def on_style_changed(self, event: Dict[str, Any]) -> None:
        try:
            self.controller.apply_style(event)
        except ValueError as e:
            logger.exception(f"Invalid style event {event}")
            QMessageBox.critical(self, "Style", str(e))

    def on_layout_requested(self, layout: str) -> None:
        self.controller.transition(LayoutMode(layout))

    def on_time_mode_changed(self, mode: str) -> None:
        self.controller.update_time(TimeMode(mode))

    def on_view_state_changed(self, view_state: str) -> None:
        self.controller.set_view_state(ViewState(view_state))
        self.visualizer.focus_view_state(ViewState(view_state))

    def on_filter_changed(self, category: str, start, end) -> None:
        self.controller.filter_data(category, start, end)

    # --- FILE SLOTS ---

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(
            self, "Open Dataset", "", "Datasets (*.csv *.tsv *.json)"
        )
        if not fname:
            return
        # Positions saved next to the dataset are picked up automatically
        positions_path = os.path.splitext(fname)[0] + ".positions.json"
        try:
            self.load_dataset(fname, positions_path if os.path.exists(positions_path) else None)
        except (OSError, ValueError) as e:
            logger.exception(f"Failed to open dataset {fname}")
            QMessageBox.critical(self, "Error", f"Could not open dataset:\n{e}")

    def on_load_positions(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Load Layout Positions", "", "JSON Files (*.json)")
        if not fname:
            return
        try:
            self.controller.set_layout_positions(IOManager.load_positions(fname))
        except (OSError, ValueError) as e:
            logger.exception(f"Failed to load positions {fname}")
            QMessageBox.critical(self, "Error", f"Could not load layout positions:\n{e}")

    def on_export_positions(self) -> None:
        fname, _ = QFileDialog.getSaveFileName(self, "Export Layout Positions", "", "JSON Files (*.json)")
        if not fname:
            return
        if not fname.endswith(".json"):
            fname += ".json"
        try:
            IOManager.save_positions(fname, self.controller.dm.get_layout_positions())
        except OSError as e:
            logger.exception(f"Failed to export positions {fname}")
            QMessageBox.critical(self, "Error", f"Could not save layout positions:\n{e}")

    def on_record_picked(self, record: Optional[Record]) -> None:
        if record is not None:
            self.tab_bar.setCurrentIndex(2)

    def closeEvent(self, event, /) -> None:
        if self.visualizer and self.visualizer.plotter:
            self.visualizer.plotter.close()
        event.accept()
