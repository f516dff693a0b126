from __future__ import annotations

import logging
import sys
from typing import Optional

from PySide6 import QtCore, QtWidgets

from .config import Settings
from .models import HealthClass, Snapshot
from .report import UNAVAILABLE, build_report, row_to_dict, write_csv, write_json

logger = logging.getLogger(__name__)

TREE_COLUMNS = [
    "Drive",
    "Label",
    "Model",
    "Media",
    "Size (GB)",
    "Free %",
    "Temp (C)",
    "Wear %",
    "Read Lat (ms)",
    "Write Lat (ms)",
    "Errors",
    "Health",
    "Performance",
    "Notes",
]

_ROW_KEYS = [
    "Drive",
    "Label",
    "Model",
    "MediaType",
    "SizeGB",
    "FreePercent",
    "TemperatureC",
    "WearPercent",
    "ReadLatencyMs",
    "WriteLatencyMs",
    "ErrorCount",
    "Health",
    "Performance",
    "Notes",
]


class ScanThread(QtCore.QThread):
    """Runs one report build off the GUI thread; the sampling window blocks for seconds."""

    scan_finished = QtCore.Signal(object)

    def __init__(self, settings: Settings):
        super().__init__()
        self.settings = settings

    def run(self):
        logger.debug("ScanThread: building report")
        self.scan_finished.emit(build_report(self.settings))


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.settings = settings or Settings()
        self.setWindowTitle("Storage Health")
        self.resize(1100, 480)

        self.status_label = QtWidgets.QLabel("")
        self.scan_button = QtWidgets.QPushButton("Scan")
        self.scan_button.clicked.connect(self.scan)
        self.export_json_button = QtWidgets.QPushButton("Export JSON")
        self.export_json_button.clicked.connect(self.export_json)
        self.export_csv_button = QtWidgets.QPushButton("Export CSV")
        self.export_csv_button.clicked.connect(self.export_csv)
        self._last_snapshot: Optional[Snapshot] = None
        self._scan_thread: Optional[ScanThread] = None

        header = QtWidgets.QHBoxLayout()
        header.addWidget(self.scan_button)
        header.addWidget(self.export_json_button)
        header.addWidget(self.export_csv_button)
        header.addStretch(1)
        header.addWidget(self.status_label)

        self.tree = QtWidgets.QTreeWidget()
        self.tree.setColumnCount(len(TREE_COLUMNS))
        self.tree.setHeaderLabels(TREE_COLUMNS)
        self.tree.setAlternatingRowColors(True)
        self.tree.setRootIsDecorated(False)

        root = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(root)
        layout.addLayout(header)
        layout.addWidget(self.tree)
        self.setCentralWidget(root)

        self._set_status("Ready")

    def _set_status(self, text: str) -> None:
        self.status_label.setText(text)

    def scan(self) -> None:
        if self._scan_thread is not None and self._scan_thread.isRunning():
            return
        self.tree.clear()
        self._set_status(
            f"Sampling for ~{self.settings.sample_count * self.settings.sample_interval_sec}s..."
        )
        self.scan_button.setEnabled(False)
        self._scan_thread = ScanThread(self.settings)
        self._scan_thread.scan_finished.connect(self._show_snapshot)
        self._scan_thread.finished.connect(lambda: self.scan_button.setEnabled(True))
        self._scan_thread.start()

    def _show_snapshot(self, snapshot: Snapshot) -> None:
        for row in snapshot.rows:
            values = row_to_dict(row)
            item = QtWidgets.QTreeWidgetItem([_cell(values[k]) for k in _ROW_KEYS])
            _apply_health_color(item, row.health)
            self.tree.addTopLevelItem(item)

        for i in range(len(TREE_COLUMNS) - 1):
            self.tree.resizeColumnToContents(i)
        self._last_snapshot = snapshot
        if snapshot.unavailable_sources:
            self._set_status("Done (unavailable: " + ", ".join(snapshot.unavailable_sources) + ")")
        else:
            self._set_status("Done")

    def export_json(self) -> None:
        if not self._last_snapshot:
            self._set_status("Nothing to export. Run Scan first.")
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export JSON", "storage_health_report.json", "JSON Files (*.json)"
        )
        if not path:
            return
        try:
            write_json(self._last_snapshot, path)
            self._set_status(f"Exported: {path}")
        except OSError as exc:
            self._set_status(f"Export failed: {exc}")

    def export_csv(self) -> None:
        if not self._last_snapshot:
            self._set_status("Nothing to export. Run Scan first.")
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export CSV", "storage_health_report.csv", "CSV Files (*.csv)"
        )
        if not path:
            return
        try:
            write_csv(self._last_snapshot, path)
            self._set_status(f"Exported: {path}")
        except OSError as exc:
            self._set_status(f"Export failed: {exc}")


def _cell(value) -> str:
    if value == UNAVAILABLE:
        return "n/a"
    return f"{value}"


def _apply_health_color(item: QtWidgets.QTreeWidgetItem, health: HealthClass) -> None:
    if health.is_failed:
        color = QtCore.Qt.GlobalColor.red
    elif health is HealthClass.WARNING:
        color = QtCore.Qt.GlobalColor.darkYellow
    elif health is HealthClass.HEALTHY:
        color = QtCore.Qt.GlobalColor.darkGreen
    else:
        color = QtCore.Qt.GlobalColor.gray

    for i in range(item.columnCount()):
        item.setForeground(i, color)


def main(settings: Optional[Settings] = None) -> int:
    app = QtWidgets.QApplication(sys.argv)
    win = MainWindow(settings)
    win.show()
    return app.exec()
