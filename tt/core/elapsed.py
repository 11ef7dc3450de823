"""Elapsed-time computation behind every timer display. Pure logic, no UI.

A timer is described by a ``TimerState``: when the current running interval
began, whether it is still running, and how many whole seconds earlier
intervals already accounted for.  ``compute_elapsed`` turns that into whole
elapsed seconds for a given instant and ``format_elapsed`` renders the
``H:MM:SS`` / ``M:SS`` string that ends up on screen.

All instants are handled as epoch milliseconds so the arithmetic matches the
values stored on time entries.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime

from tt.core.errors import InvalidTimestampError


def now_ms():
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def parse_timestamp(value):
    """Return ``value`` as epoch milliseconds.

    Accepts a ``datetime`` (naive values are local time), an ISO 8601 string
    (a trailing ``Z`` means UTC) or a number of epoch milliseconds.  Anything
    else raises ``InvalidTimestampError`` rather than being read as zero.
    """
    if isinstance(value, datetime):
        return value.timestamp() * 1000.0
    # bool is an int subclass, but True is not a point in time
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise InvalidTimestampError(value)
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).timestamp() * 1000.0
        except ValueError:
            raise InvalidTimestampError(value) from None
    raise InvalidTimestampError(value)


@dataclass
class TimerState:
    """Inputs of one timer display, rebuilt by the caller on every change.

    ``accumulated_duration`` is the total of all previous running intervals,
    excluding the current one.  ``None`` counts as 0.  ``end_time`` is
    validated but never used in the computation: once stopped, only the
    accumulated total is shown.
    """

    start_time: object
    end_time: object = None
    accumulated_duration: int | None = 0
    is_running: bool = True

    start_ms: float = field(init=False, repr=False)
    end_ms: float | None = field(init=False, repr=False, default=None)

    def __post_init__(self):
        self.start_ms = parse_timestamp(self.start_time)
        if self.end_time is not None:
            self.end_ms = parse_timestamp(self.end_time)
        if self.accumulated_duration is None:
            self.accumulated_duration = 0
        self.accumulated_duration = int(self.accumulated_duration)
        if self.accumulated_duration < 0:
            raise ValueError(f"accumulated_duration must be >= 0, got {self.accumulated_duration}")
        self.is_running = bool(self.is_running)


def compute_elapsed(state, now=None):
    """Whole seconds elapsed for ``state`` at ``now`` (epoch ms, defaults to the wall clock)."""
    if not state.is_running:
        return state.accumulated_duration

    if now is None:
        now = now_ms()
    current_session_seconds = math.floor((now - state.start_ms) / 1000)
    # A start in the future would otherwise count down below zero
    return max(0, state.accumulated_duration + current_session_seconds)


def format_elapsed(seconds, show_hours=True):
    """Render seconds as ``H:MM:SS``, or ``M:SS`` when hours are hidden and zero."""
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if show_hours or h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"
