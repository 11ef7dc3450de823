import sys
from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from tt.common.logger import log
from tt.core import config
from tt.core.errors import ShortSessionError, TimerError
from tt.core.tracker import Tracker
from tt.ui.history import HistoryDialog
from tt.ui.timer_display import TimerDisplay


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# Main window of the timetracker application. One row per open task, each with its live timer and lifecycle buttons.
class MainWindow(QMainWindow):

    def __init__(self):
        super().__init__()
        self.setWindowTitle("TimeTracker")

        # -- Load state --
        state = config.load_state()
        s = state["settings"]
        self.show_hours = s["show_hours"]
        self.always_on_top = s["always_on_top"]
        self.autosave_ticks = max(1, s["autosave_ticks"])
        self.tracker = Tracker.from_state(state, min_session_seconds=s["min_session_seconds"])

        if self.always_on_top:
            self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)

        self._widgets = {}  # task id -> widget dict

        # -- Build UI skeleton --
        central = QWidget()
        self.setCentralWidget(central)
        self._main_lay = QVBoxLayout(central)

        self._rows_widget = QWidget()
        self._rows = QVBoxLayout(self._rows_widget)
        self._rows.setContentsMargins(0, 0, 0, 0)
        self._main_lay.addWidget(self._rows_widget)

        footer = QHBoxLayout()
        self._add_input = QLineEdit()
        self._add_input.setPlaceholderText("New task")
        self._add_input.returnPressed.connect(self._on_add)
        add_btn = QPushButton("Add")
        add_btn.clicked.connect(self._on_add)
        history_btn = QPushButton("History")
        history_btn.clicked.connect(self._on_history)
        footer.addWidget(self._add_input)
        footer.addWidget(add_btn)
        footer.addWidget(history_btn)
        self._main_lay.addLayout(footer)

        self._rebuild_rows()
        QTimer.singleShot(0, self.adjustSize)

        # -- Autosave tick (1 s). Timer labels refresh themselves. --
        self._tick_n = 0
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._tick)
        self._timer.start(1000)

    # ------------------------------------------------------------------ #
    #  Rows                                                                #
    # ------------------------------------------------------------------ #

    def _clear_rows(self):
        for w in self._widgets.values():
            if w["display"] is not None:
                w["display"].teardown()
            w["container"].deleteLater()
        self._widgets = {}

    def _rebuild_rows(self):
        self._clear_rows()
        active_by_task = {e.task_id: e for e in self.tracker.active_entries()}

        for task in self.tracker.tasks.values():
            if task.completed:
                continue
            entry = active_by_task.get(task.id)
            rc = QWidget()
            lay = QHBoxLayout(rc)
            lay.setContentsMargins(0, 0, 0, 0)

            name_lbl = QLabel(task.name)
            lay.addWidget(name_lbl, 1)

            display = None
            if entry is None:
                lay.addWidget(self._button("Start", lambda _=False, tid=task.id: self._on_start(tid)))
            else:
                display = TimerDisplay(entry.start_time, entry.end_time, entry.duration,
                                       entry.is_running, show_hours=self.show_hours)
                lay.addWidget(display)
                if entry.is_running:
                    lay.addWidget(self._button("Pause", lambda _=False, eid=entry.id: self._run_action("pause", eid)))
                else:
                    lay.addWidget(self._button("Resume", lambda _=False, eid=entry.id: self._run_action("resume", eid)))
                lay.addWidget(self._button("Stop", lambda _=False, eid=entry.id: self._run_action("stop", eid)))
                lay.addWidget(self._button("Finish", lambda _=False, eid=entry.id: self._run_action("finish", eid)))
                lay.addWidget(self._button("Done", lambda _=False, eid=entry.id: self._run_action("complete", eid)))

            self._rows.addWidget(rc)
            self._widgets[task.id] = {"container": rc, "name": name_lbl, "display": display}

    @staticmethod
    def _button(text, slot):
        btn = QPushButton(text)
        btn.clicked.connect(slot)
        return btn

    # ------------------------------------------------------------------ #
    #  Actions                                                             #
    # ------------------------------------------------------------------ #

    _ACTION_MESSAGES = {
        "pause": "Timer paused",
        "resume": "Timer resumed",
        "stop": "Timer stopped and saved to history",
        "finish": "Activity finished",
        "complete": "Activity finished and marked complete",
    }

    def _notify(self, message):
        self.statusBar().showMessage(message, 5000)

    def _on_add(self):
        name = self._add_input.text()
        try:
            self.tracker.add_task(name)
        except ValueError as e:
            self._notify(str(e))
            return
        self._add_input.clear()
        self._after_change()

    def _on_start(self, task_id):
        try:
            self.tracker.start_timer(task_id)
        except TimerError as e:
            log.warning(f"Could not start timer for task {task_id}: {e}")
            self._notify(str(e))
            return
        self._notify("Timer started")
        self._after_change()

    def _run_action(self, action, entry_id):
        handler = {
            "pause": self.tracker.pause_timer,
            "resume": self.tracker.resume_timer,
            "stop": self.tracker.stop_timer,
            "finish": self.tracker.finish_timer,
            "complete": self.tracker.finish_and_complete,
        }[action]
        try:
            handler(entry_id)
            self._notify(self._ACTION_MESSAGES[action])
        except ShortSessionError as e:
            self._notify(f"Session under {e.minimum}s, it was removed")
        except TimerError as e:
            log.warning(f"Action '{action}' failed for entry {entry_id}: {e}")
            self._notify(str(e))
        self._after_change()

    def _on_history(self):
        HistoryDialog(self, self.tracker).exec()

    def _after_change(self):
        self._save_state()
        self._rebuild_rows()
        QTimer.singleShot(0, self.adjustSize)

    # ------------------------------------------------------------------ #
    #  Tick / autosave                                                     #
    # ------------------------------------------------------------------ #

    def _tick(self):
        if not self.tracker.running_entries():
            return
        self._tick_n += 1
        if self._tick_n % self.autosave_ticks == 0:
            self._save_state()

    def _build_state_dict(self):
        state = {
            "meta": {"schema_version": 1},
            "settings": {
                "show_hours": self.show_hours,
                "always_on_top": self.always_on_top,
                "min_session_seconds": self.tracker.min_session_seconds,
                "autosave_ticks": self.autosave_ticks,
            },
        }
        state.update(self.tracker.to_state())
        return state

    def _save_state(self):
        state = self._build_state_dict()
        config.save_state(state)
        return state

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self._timer.stop()
        self._clear_rows()
        try:
            self._save_state()
        except OSError as e:
            log.exception("Failed to save state on exit")
            QMessageBox.warning(self, "Save Error",
                                f"Failed to save state:\n{e}")
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())
