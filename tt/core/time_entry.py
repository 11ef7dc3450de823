"""Time entries: one tracked session of work against a task, pure logic, no UI."""

from dataclasses import dataclass
from datetime import datetime
from tt.common.logger import log
from tt.core.durations import calculate_duration
from tt.core.elapsed import TimerState, parse_timestamp


def _now():
    return datetime.now().astimezone()


def _as_datetime(value):
    """Normalise a stored timestamp (ISO string, datetime, epoch ms) to an aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    return datetime.fromtimestamp(parse_timestamp(value) / 1000.0).astimezone()


@dataclass
class TimeEntry:
    """A session that can be paused and resumed any number of times.

    ``start_time`` always marks the beginning of the *current* interval;
    ``duration`` holds the whole seconds of every interval closed so far.
    A paused entry has ``end_time`` set and ``is_running`` False, a finished
    one additionally has ``finished`` True and drops out of the active list.
    """

    id: int
    task_id: int
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = None
    is_running: bool = True
    finished: bool = False

    def __post_init__(self):
        self.start_time = _as_datetime(self.start_time)
        self.end_time = _as_datetime(self.end_time)

    @property
    def active(self):
        return not self.finished

    def session_seconds(self, now=None):
        """Accumulated seconds plus the open interval, if there is one."""
        total = self.duration or 0
        if self.is_running:
            total += calculate_duration(self.start_time, now or _now())
        return max(0, total)

    # Returns whether anything changed, pausing a paused entry is a no-op.
    def pause(self, now=None):
        if not self.is_running:
            return False
        now = now or _now()
        self.duration = self.session_seconds(now)
        self.end_time = now
        self.is_running = False
        log.debug(f"Paused entry {self.id} with {self.duration}s accumulated")
        return True

    def resume(self, now=None):
        if self.is_running or self.finished:
            return False
        # New interval starts now, accumulated duration is kept as-is
        self.start_time = now or _now()
        self.end_time = None
        self.is_running = True
        log.debug(f"Resumed entry {self.id} from {self.duration or 0}s")
        return True

    def close(self, duration, now=None):
        self.end_time = now or _now()
        self.duration = int(duration)
        self.is_running = False
        self.finished = True
        log.debug(f"Closed entry {self.id} at {self.duration}s")

    def timer_state(self):
        """The inputs a timer display needs to show this entry."""
        return TimerState(
            start_time=self.start_time,
            end_time=self.end_time,
            accumulated_duration=self.duration,
            is_running=self.is_running,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "task_id": self.task_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "is_running": self.is_running,
            "finished": self.finished,
        }

    # Raises KeyError, TypeError or ValueError (InvalidTimestampError included) on a malformed record.
    @staticmethod
    def from_dict(d):
        duration = d.get("duration")
        if duration is not None:
            duration = int(duration)
            if duration < 0:
                raise ValueError(f"duration must be >= 0, got {duration}")
        return TimeEntry(
            id=int(d["id"]),
            task_id=int(d["task_id"]),
            start_time=d["start_time"],
            end_time=d.get("end_time"),
            duration=duration,
            is_running=bool(d.get("is_running", False)),
            finished=bool(d.get("finished", False)),
        )
