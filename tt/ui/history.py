"""History dialog: finished entries, today/week totals and CSV export."""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)
from tt.common.logger import log
from tt.core.durations import format_duration_for_dashboard
from tt.core.export import export_csv, history_rows


# Read-only view over the tracker's finished entries. Opens from the History button in the main window.
class HistoryDialog(QDialog):

    def __init__(self, parent, tracker, now=None):
        super().__init__(parent)
        self.setWindowTitle("History")
        self.setModal(True)
        self._tracker = tracker

        outer = QVBoxLayout(self)

        # Totals
        totals = QHBoxLayout()
        self._today_lbl = QLabel(f"Today: {format_duration_for_dashboard(tracker.today_seconds(now))}")
        self._week_lbl = QLabel(f"This week: {format_duration_for_dashboard(tracker.week_seconds(now))}")
        totals.addWidget(self._today_lbl)
        totals.addWidget(self._week_lbl)
        outer.addLayout(totals)

        # One line per finished entry
        self._list = QListWidget()
        for row in history_rows(tracker):
            self._list.addItem(f"{row['date']}  {row['start']}-{row['end']}  {row['task']}  {row['duration']}")
        if self._list.count() == 0:
            self._list.addItem("No finished sessions yet")
            self._list.item(0).setFlags(Qt.NoItemFlags)
        outer.addWidget(self._list, 1)

        btn_row = QHBoxLayout()
        btn_row.addStretch(1)
        self._export_btn = QPushButton("Export CSV")
        self._export_btn.setEnabled(bool(tracker.history()))
        self._export_btn.clicked.connect(self._on_export)
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        btn_row.addWidget(self._export_btn)
        btn_row.addWidget(close_btn)
        outer.addLayout(btn_row)

    def _on_export(self):
        path, _ = QFileDialog.getSaveFileName(self, "Export history", "history.csv", "CSV files (*.csv)")
        if path:
            self.export_to(path)

    # Returns the written path, or None if the export failed (the user is told why).
    def export_to(self, path):
        try:
            return export_csv(self._tracker, path)
        except (OSError, ValueError) as e:
            log.warning(f"History export to '{path}' failed: {e}")
            QMessageBox.warning(self, "Export Error", f"Failed to export history:\n{e}")
            return None
