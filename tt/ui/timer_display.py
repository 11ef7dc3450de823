"""Live elapsed-time label.

``TimerDisplay`` shows the formatted elapsed time of one ``TimerState`` and
keeps it current with a 1 s ``QTimer``.  The timer is armed only while the
state is running, restarted whenever the inputs change, and stopped by
``teardown()`` (also called from ``closeEvent``).  Nothing fires after a stop.
"""

from dataclasses import replace

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFontDatabase
from PySide6.QtWidgets import QLabel

from tt.common.logger import log
from tt.core.elapsed import TimerState, compute_elapsed, format_elapsed, now_ms

TICK_MS = 1000


class TimerDisplay(QLabel):

    def __init__(self, start_time, end_time=None, accumulated_duration=None,
                 is_running=True, show_hours=True, clock=None, parent=None):
        super().__init__(parent)
        # clock returns epoch milliseconds, swapped out in tests
        self._clock = clock or now_ms
        self._state = None
        self._show_hours = show_hours
        self._elapsed = 0

        self.setFont(QFontDatabase.systemFont(QFontDatabase.FixedFont))
        self.setAlignment(Qt.AlignCenter)

        self._tick = QTimer(self)
        self._tick.setTimerType(Qt.PreciseTimer)
        self._tick.setInterval(TICK_MS)
        self._tick.timeout.connect(self._evaluate)

        self.set_timer_state(TimerState(start_time, end_time, accumulated_duration, is_running))

    # ------------------------------------------------------------------ #
    #  Inputs                                                              #
    # ------------------------------------------------------------------ #

    def set_timer_state(self, state, show_hours=None):
        """Swap in new inputs: cancel the pending tick, evaluate now, re-arm if running."""
        self._tick.stop()
        self._state = state
        if show_hours is not None:
            self._show_hours = show_hours
        self._evaluate()
        if state.is_running:
            self._tick.start()
        log.debug(f"TimerDisplay inputs changed, running={state.is_running}, elapsed={self._elapsed}s")

    def update_state(self, **changes):
        """Change individual TimerState fields, e.g. ``update_state(is_running=False, accumulated_duration=90)``."""
        show_hours = changes.pop("show_hours", None)
        self.set_timer_state(replace(self._state, **changes), show_hours=show_hours)

    @property
    def timer_state(self):
        return self._state

    @property
    def elapsed(self):
        return self._elapsed

    @property
    def show_hours(self):
        return self._show_hours

    @property
    def is_ticking(self):
        return self._tick.isActive()

    # ------------------------------------------------------------------ #
    #  Evaluation / teardown                                               #
    # ------------------------------------------------------------------ #

    def _evaluate(self):
        self._elapsed = compute_elapsed(self._state, self._clock())
        self.setText(format_elapsed(self._elapsed, self._show_hours))

    def teardown(self):
        if self._tick.isActive():
            self._tick.stop()
            log.debug("TimerDisplay tick cancelled on teardown")

    def closeEvent(self, event):
        self.teardown()
        super().closeEvent(event)
