"""
Details Panel
Shows the attributes of the selected record.
"""
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFormLayout, QGroupBox, QLabel, QVBoxLayout, QWidget

from polycube.model.records import Record


class DetailsPanel(QWidget):
    def __init__(self) -> None:
        super().__init__()
        layout = QVBoxLayout(self)

        self.lbl_title = QLabel("Nothing selected")
        self.lbl_title.setWordWrap(True)
        self.lbl_title.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.lbl_title)

        grp = QGroupBox("Record")
        self.form = QFormLayout(grp)
        layout.addWidget(grp)

        self.lbl_hint = QLabel("Click a point in any cube to select it.")
        self.lbl_hint.setAlignment(Qt.AlignCenter)
        self.lbl_hint.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_hint)
        layout.addStretch()

    def show_record(self, record: Optional[Record]) -> None:
        while self.form.rowCount():
            self.form.removeRow(0)

        if record is None:
            self.lbl_title.setText("Nothing selected")
            self.lbl_hint.show()
            return

        self.lbl_hint.hide()
        self.lbl_title.setText(record.title)
        rows = [
            ("Id", record.id),
            ("Date", f"{record.date_time:%Y-%m-%d}"),
            ("Category", record.category_1),
            ("Location", f"{record.latitude:.4f}, {record.longitude:.4f}"),
            ("Degree in / out", f"{record.network_degree_in} / {record.network_degree_out}"),
            ("Targets", ", ".join(record.target_nodes) or "-"),
            ("Labels", ", ".join(record.label) or "-"),
        ]
        rows.extend((str(k).capitalize(), str(v)) for k, v in record.extra.items() if v not in ("", None))
        for name, value in rows:
            lbl = QLabel(value)
            lbl.setWordWrap(True)
            lbl.setTextInteractionFlags(Qt.TextSelectableByMouse)
            self.form.addRow(f"{name}:", lbl)
