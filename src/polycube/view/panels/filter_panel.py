"""
Filter Panel
Category selection and a time-range selector drawn over the record histogram.
"""
from datetime import datetime
import logging
from typing import Optional, Tuple

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Signal
from PySide6.QtWidgets import QComboBox, QFormLayout, QGroupBox, QLabel, QPushButton, QVBoxLayout, QWidget

from polycube.model.datastore import DataStore
from polycube.model.scales import from_seconds, to_seconds

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All categories"
HISTOGRAM_BINS = 40


class FilterPanel(QWidget):
    # (category, start, end); "" means every category, None bounds mean the data extent
    filter_changed = Signal(str, object, object)

    def __init__(self, dm: DataStore) -> None:
        super().__init__()
        self.dm = dm
        self._domain: Optional[Tuple[float, float]] = None

        layout = QVBoxLayout(self)

        grp = QGroupBox("Filter")
        form = QFormLayout(grp)
        self.cmb_category = QComboBox()
        self.cmb_category.currentIndexChanged.connect(lambda _: self._emit_filter())
        form.addRow("Category:", self.cmb_category)
        layout.addWidget(grp)

        # PyQtGraph histogram with a draggable time range
        self.plot_widget = pg.PlotWidget(axisItems={"bottom": pg.DateAxisItem(orientation="bottom")})
        self.plot_widget.setBackground("w")
        self.plot_widget.setMouseEnabled(x=False, y=False)
        self.plot_widget.hideAxis("left")
        self.plot_widget.getAxis("bottom").setPen("k")
        self.plot_widget.getAxis("bottom").setTextPen("k")
        self.plot_widget.setMinimumHeight(160)

        self.region = pg.LinearRegionItem(brush=pg.mkBrush(0, 120, 215, 40))
        self.region.setZValue(10)
        self.region.sigRegionChangeFinished.connect(lambda _: self._emit_filter())
        layout.addWidget(self.plot_widget)

        self.lbl_range = QLabel("")
        layout.addWidget(self.lbl_range)

        self.btn_reset = QPushButton("Reset filter")
        self.btn_reset.clicked.connect(self.reset)
        layout.addWidget(self.btn_reset)
        layout.addStretch()

    # --- PUBLIC ---

    def load_from_datastore(self) -> None:
        """Rebuild the category list and the histogram after a dataset load."""
        self.cmb_category.blockSignals(True)
        self.cmb_category.clear()
        self.cmb_category.addItem(ALL_CATEGORIES, "")
        for category in self.dm.categories:
            self.cmb_category.addItem(category, category)
        self.cmb_category.blockSignals(False)

        self.plot_widget.clear()
        domain = self.dm.time_domain
        if domain is None:
            self._domain = None
            self.lbl_range.setText("No data")
            return

        self._domain = (to_seconds(domain[0]), to_seconds(domain[1]))
        seconds = np.array([to_seconds(r.date_time) for r in self.dm.records])
        counts, edges = np.histogram(seconds, bins=HISTOGRAM_BINS)
        self.plot_widget.plot(edges, counts, stepMode="center", fillLevel=0,
                              brush=pg.mkBrush(150, 150, 150, 120), pen=pg.mkPen("k", width=1))
        self.region.blockSignals(True)
        self.region.setRegion(self._domain)
        self.region.blockSignals(False)
        self.plot_widget.addItem(self.region)
        self._update_range_label(domain[0], domain[1])

    def reset(self) -> None:
        self.cmb_category.blockSignals(True)
        self.cmb_category.setCurrentIndex(0)
        self.cmb_category.blockSignals(False)
        if self._domain is not None:
            self.region.blockSignals(True)
            self.region.setRegion(self._domain)
            self.region.blockSignals(False)
        self._emit_filter()

    def current_bounds(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        if self._domain is None:
            return None, None
        lo, hi = self.region.getRegion()
        d0, d1 = self._domain
        # A handle left on the data edge means "no bound"
        start = None if abs(lo - d0) < 1.0 else from_seconds(lo)
        end = None if abs(hi - d1) < 1.0 else from_seconds(hi)
        return start, end

    # --- INTERNAL ---

    def _emit_filter(self) -> None:
        start, end = self.current_bounds()
        category = self.cmb_category.currentData() or ""
        domain = self.dm.time_domain
        if domain is not None:
            self._update_range_label(start or domain[0], end or domain[1])
        logger.debug(f"Filter requested: category={category!r}, {start} - {end}")
        self.filter_changed.emit(category, start, end)

    def _update_range_label(self, start: datetime, end: datetime) -> None:
        self.lbl_range.setText(f"{start:%Y-%m-%d} to {end:%Y-%m-%d}")
