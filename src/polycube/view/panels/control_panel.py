"""
Cube Control Panel
View selection, temporal layout, time mode and style settings.
"""
from PySide6.QtCore import Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QCheckBox, QColorDialog, QComboBox, QDoubleSpinBox, QFormLayout, QGridLayout, QGroupBox, QPushButton,
    QSpinBox, QVBoxLayout, QWidget
)

from polycube import config
from polycube.model.state import LayoutMode, NodeColorMode, SetLayout, SizeEncoding, StyleSettings, TimeMode, ViewState

VIEW_LABELS = {
    ViewState.POLY_CUBE: "All cubes",
    ViewState.GEO_CUBE: "Geographic cube",
    ViewState.SET_CUBE: "Set cube",
    ViewState.NET_CUBE: "Network cube",
}

LAYOUT_LABELS = {
    LayoutMode.STC: "Stacked (STC)",
    LayoutMode.JP: "Juxtaposed (JP)",
    LayoutMode.SI: "Superimposed (SI)",
    LayoutMode.ANI: "Animated (ANI)",
}


class ControlPanel(QWidget):
    # Style event with control-panel keys, e.g. {"numSlices": 6}
    style_changed = Signal(dict)
    layout_requested = Signal(str)
    time_mode_changed = Signal(str)
    view_state_changed = Signal(str)

    def __init__(self, style: StyleSettings) -> None:
        super().__init__()
        self._background = style.background_color

        layout = QVBoxLayout(self)

        # --- View Group ---
        grp_view = QGroupBox("View")
        form_view = QFormLayout(grp_view)
        self.cmb_view = QComboBox()
        for state, text in VIEW_LABELS.items():
            self.cmb_view.addItem(text, state.value)
        self.cmb_view.currentIndexChanged.connect(
            lambda _: self.view_state_changed.emit(self.cmb_view.currentData())
        )
        form_view.addRow("Show:", self.cmb_view)

        self.cmb_time = QComboBox()
        self.cmb_time.addItem("Aggregated", TimeMode.AGGREGATED.value)
        self.cmb_time.addItem("Absolute", TimeMode.ABSOLUTE.value)
        self.cmb_time.currentIndexChanged.connect(
            lambda _: self.time_mode_changed.emit(self.cmb_time.currentData())
        )
        form_view.addRow("Time:", self.cmb_time)
        layout.addWidget(grp_view)

        # --- Temporal Layout Group ---
        grp_layout = QGroupBox("Temporal layout")
        grid = QGridLayout(grp_layout)
        for i, (mode, text) in enumerate(LAYOUT_LABELS.items()):
            btn = QPushButton(text)
            btn.clicked.connect(lambda _=False, m=mode: self.layout_requested.emit(m.value))
            grid.addWidget(btn, i // 2, i % 2)
        layout.addWidget(grp_layout)

        # --- Style Group ---
        grp_style = QGroupBox("Style")
        form = QFormLayout(grp_style)

        self.spin_slices = QSpinBox()
        self.spin_slices.setRange(config.MIN_NUM_SLICES, config.MAX_NUM_SLICES)
        self.spin_slices.setValue(style.num_slices)
        self.spin_slices.valueChanged.connect(lambda v: self.style_changed.emit({"numSlices": v}))
        form.addRow("Time slices:", self.spin_slices)

        self.spin_node_size = QSpinBox()
        self.spin_node_size.setRange(1, 10)
        self.spin_node_size.setValue(style.node_size)
        self.spin_node_size.valueChanged.connect(lambda v: self.style_changed.emit({"nodeSize": v}))
        form.addRow("Node size:", self.spin_node_size)

        self.cmb_node_color = self._enum_combo(NodeColorMode, style.node_color)
        self.cmb_node_color.currentIndexChanged.connect(
            lambda _: self.style_changed.emit({"nodeColor": self.cmb_node_color.currentData()})
        )
        form.addRow("Node color:", self.cmb_node_color)

        self.spin_jitter = QSpinBox()
        self.spin_jitter.setRange(0, 30)
        self.spin_jitter.setValue(style.jitter)
        self.spin_jitter.valueChanged.connect(lambda v: self.style_changed.emit({"jitter": v}))
        form.addRow("Jitter (geo):", self.spin_jitter)

        self.cmb_set_layout = self._enum_combo(SetLayout, style.set_layout)
        self.cmb_set_layout.currentIndexChanged.connect(
            lambda _: self.style_changed.emit({"sLayout": self.cmb_set_layout.currentData()})
        )
        form.addRow("Set layout:", self.cmb_set_layout)

        self.chk_hull = QCheckBox("")
        self.chk_hull.setChecked(style.hull)
        self.chk_hull.toggled.connect(lambda v: self.style_changed.emit({"hull": v}))
        form.addRow("Category hulls (set):", self.chk_hull)

        self.spin_charge = QDoubleSpinBox()
        self.spin_charge.setRange(0.1, 3.0)
        self.spin_charge.setSingleStep(0.1)
        self.spin_charge.setValue(style.charge_factor)
        self.spin_charge.valueChanged.connect(lambda v: self.style_changed.emit({"chargeFactor": v}))
        form.addRow("Layout spread (net):", self.spin_charge)

        self.cmb_size_encoding = self._enum_combo(SizeEncoding, style.size_encoding)
        self.cmb_size_encoding.currentIndexChanged.connect(
            lambda _: self.style_changed.emit({"sizeEncoding": self.cmb_size_encoding.currentData()})
        )
        form.addRow("Node size by (net):", self.cmb_size_encoding)

        self.btn_background = QPushButton(self._background)
        self.btn_background.clicked.connect(self.on_background_clicked)
        form.addRow("Background:", self.btn_background)

        layout.addWidget(grp_style)
        layout.addStretch()

    @staticmethod
    def _enum_combo(enum_cls, current) -> QComboBox:
        combo = QComboBox()
        for member in enum_cls:
            combo.addItem(member.value.replace("_", " ").capitalize(), member.value)
        combo.setCurrentIndex(combo.findData(current.value))
        return combo

    # --- SLOTS ---

    def on_background_clicked(self) -> None:
        color = QColorDialog.getColor(QColor(self._background), self, "Background color")
        if not color.isValid():
            return
        self._background = color.name()
        self.btn_background.setText(self._background)
        self.style_changed.emit({"backgroundColor": self._background})

