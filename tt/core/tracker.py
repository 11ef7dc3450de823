"""Tasks and their time entries: the lifecycle behind the start/pause/resume/stop buttons.

Holds everything in memory; ``to_state`` / ``from_state`` convert to and from
the ``tasks`` and ``entries`` sections of state.json.  Finished entries stay
in ``entries`` as history and feed the today/week totals.
"""

from dataclasses import dataclass
from datetime import datetime
from tt.common.logger import log
from tt.core.durations import start_of_day, start_of_week
from tt.core.errors import EntryFinishedError, ShortSessionError, TimerAlreadyRunningError, UnknownEntryError
from tt.core.time_entry import TimeEntry

# Sessions shorter than this are discarded on stop.
MIN_SESSION_SECONDS = 60

# What a malformed state.json record can raise while being rebuilt. InvalidTimestampError is a ValueError.
_BAD_RECORD = (KeyError, TypeError, ValueError, AttributeError)


def _now():
    return datetime.now().astimezone()


@dataclass
class Task:
    id: int
    name: str
    completed: bool = False

    def to_dict(self):
        return {"id": self.id, "name": self.name, "completed": self.completed}


class Tracker:

    def __init__(self, tasks=None, entries=None, min_session_seconds=MIN_SESSION_SECONDS):
        self.tasks = {t.id: t for t in (tasks or [])}
        self.entries = {e.id: e for e in (entries or [])}
        self.min_session_seconds = min_session_seconds
        self._next_task_id = max(self.tasks, default=0) + 1
        self._next_entry_id = max(self.entries, default=0) + 1

    #region === Lookups ===

    def task(self, task_id):
        try:
            return self.tasks[task_id]
        except KeyError:
            raise UnknownEntryError("task", task_id) from None

    def entry(self, entry_id):
        try:
            return self.entries[entry_id]
        except KeyError:
            raise UnknownEntryError("time entry", entry_id) from None

    # Same as entry(), but history entries can't be changed anymore.
    def _open_entry(self, entry_id):
        entry = self.entry(entry_id)
        if entry.finished:
            raise EntryFinishedError(entry_id)
        return entry

    # Entries still on screen: running or paused, not yet finished. Oldest first.
    def active_entries(self):
        return sorted((e for e in self.entries.values() if e.active), key=lambda e: e.id)

    def running_entries(self):
        return [e for e in self.active_entries() if e.is_running]

    # Finished entries, most recently ended first.
    def history(self):
        return sorted((e for e in self.entries.values() if e.finished), key=lambda e: e.end_time, reverse=True)

    #endregion === Lookups ===

    #region === Totals ===

    # Seconds tracked by every entry whose last activity is at or after `since`. Running entries count up to `now`,
    # paused and finished ones count their stored duration and are placed at their end_time.
    def tracked_seconds(self, since: datetime, now: datetime | None = None):
        now = now or _now()
        total = 0
        for e in self.entries.values():
            last_activity = now if e.is_running else e.end_time
            if last_activity is not None and last_activity >= since:
                total += e.session_seconds(now)
        return total

    def today_seconds(self, now=None):
        now = now or _now()
        return self.tracked_seconds(start_of_day(now), now)

    def week_seconds(self, now=None):
        now = now or _now()
        return self.tracked_seconds(start_of_week(now), now)

    #endregion === Totals ===

    #region === Lifecycle ===

    def add_task(self, name):
        name = name.strip()
        if not name:
            raise ValueError("Task name cannot be empty")
        task = Task(id=self._next_task_id, name=name)
        self.tasks[task.id] = task
        self._next_task_id += 1
        log.info(f"Added task {task.id} '{name}'")
        return task

    def start_timer(self, task_id, now: datetime | None = None):
        self.task(task_id)
        if any(e.task_id == task_id for e in self.active_entries()):
            raise TimerAlreadyRunningError(task_id)
        entry = TimeEntry(id=self._next_entry_id, task_id=task_id, start_time=now or _now())
        self.entries[entry.id] = entry
        self._next_entry_id += 1
        log.info(f"Started entry {entry.id} for task {task_id}")
        return entry

    def pause_timer(self, entry_id, now=None):
        entry = self._open_entry(entry_id)
        if entry.pause(now):
            log.info(f"Paused entry {entry_id} at {entry.duration}s")
        return entry

    def resume_timer(self, entry_id, now=None):
        entry = self._open_entry(entry_id)
        if entry.resume(now):
            log.info(f"Resumed entry {entry_id}")
        return entry

    # Final stop. Too-short sessions are deleted and reported via ShortSessionError so the caller can tell the user.
    def stop_timer(self, entry_id, now=None):
        entry = self._open_entry(entry_id)
        total = entry.session_seconds(now)
        if total < self.min_session_seconds:
            del self.entries[entry_id]
            log.info(f"Removed entry {entry_id}, {total}s is under the {self.min_session_seconds}s minimum")
            raise ShortSessionError(entry_id, total, self.min_session_seconds)
        entry.close(total, now)
        log.info(f"Stopped entry {entry_id} at {total}s")
        return entry

    # Closes the entry whatever its length, taking it off the active list.
    def finish_timer(self, entry_id, now=None):
        entry = self._open_entry(entry_id)
        entry.close(entry.session_seconds(now), now)
        log.info(f"Finished entry {entry_id} at {entry.duration}s")
        return entry

    # Finishes the entry, never below the minimum, and marks its task completed.
    def finish_and_complete(self, entry_id, now=None):
        entry = self._open_entry(entry_id)
        task = self.task(entry.task_id)
        entry.close(max(entry.session_seconds(now), self.min_session_seconds), now)
        task.completed = True
        log.info(f"Finished entry {entry_id} at {entry.duration}s and completed task {task.id}")
        return entry

    #endregion === Lifecycle ===

    #region === Persistence ===

    def to_state(self):
        return {
            "tasks": [t.to_dict() for t in self.tasks.values()],
            "entries": [e.to_dict() for e in self.entries.values()],
        }

    # Rebuilds a tracker from state.json sections. Malformed records, and entries pointing at a task that didn't load,
    # are skipped and listed in the log instead of stopping the app from starting.
    @staticmethod
    def from_state(state, min_session_seconds=MIN_SESSION_SECONDS):
        skipped = []

        tasks = []
        for i, t in enumerate(state.get("tasks", [])):
            try:
                tasks.append(Task(id=int(t["id"]), name=str(t["name"]), completed=bool(t.get("completed", False))))
            except _BAD_RECORD:
                skipped.append(f"tasks[{i}]")
        task_ids = {t.id for t in tasks}

        entries = []
        for i, e in enumerate(state.get("entries", [])):
            try:
                entry = TimeEntry.from_dict(e)
            except _BAD_RECORD:
                skipped.append(f"entries[{i}]")
                continue
            if entry.task_id not in task_ids:
                skipped.append(f"entries[{i}] (unknown task {entry.task_id})")
                continue
            entries.append(entry)

        if skipped:
            log.warning(f"Loaded tracker state, but skipped unreadable records: {', '.join(skipped)}")
        return Tracker(tasks, entries, min_session_seconds=min_session_seconds)

    #endregion === Persistence ===
