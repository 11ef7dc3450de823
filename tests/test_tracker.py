"""Tests for time entries, the tracker lifecycle and state.json handling.

Covers: tt.core.time_entry, tt.core.tracker, tt.core.config
"""

import json
import os
import shutil
import tempfile
import time
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ.setdefault("TIMETRACKER_HOME", tempfile.mkdtemp(prefix="tt_test_"))

from tt.core.elapsed import compute_elapsed, format_elapsed
from tt.core.errors import (
    EntryFinishedError,
    ShortSessionError,
    TimerAlreadyRunningError,
    TimerError,
    UnknownEntryError,
)
from tt.core.time_entry import TimeEntry
from tt.core.tracker import Task, Tracker

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def at(seconds):
    return T0 + timedelta(seconds=seconds)


# ──────────────────────────────────────────────────────────────────────────
# time_entry.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestTimeEntry(unittest.TestCase):

    def test_running_session_seconds(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0)
        self.assertEqual(e.session_seconds(at(75)), 75)

    def test_pause_accumulates(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0)
        e.pause(at(90))
        self.assertFalse(e.is_running)
        self.assertEqual(e.duration, 90)
        self.assertEqual(e.end_time, at(90))
        # Paused time doesn't count
        self.assertEqual(e.session_seconds(at(5000)), 90)

    def test_resume_preserves_duration(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0)
        e.pause(at(90))
        e.resume(at(200))
        self.assertTrue(e.is_running)
        self.assertIsNone(e.end_time)
        self.assertEqual(e.start_time, at(200))
        self.assertEqual(e.duration, 90)
        e.pause(at(230))
        self.assertEqual(e.duration, 120)

    def test_pause_twice_is_noop(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0)
        e.pause(at(10))
        e.pause(at(500))
        self.assertEqual(e.duration, 10)
        self.assertEqual(e.end_time, at(10))

    def test_timer_state_of_paused_entry(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0)
        e.pause(at(90))
        st = e.timer_state()
        self.assertFalse(st.is_running)
        self.assertEqual(st.accumulated_duration, 90)
        self.assertEqual(format_elapsed(compute_elapsed(st, at(9999).timestamp() * 1000)), "0:01:30")

    def test_timer_state_of_running_entry(self):
        e = TimeEntry(id=1, task_id=1, start_time=T0, duration=60)
        st = e.timer_state()
        self.assertEqual(compute_elapsed(st, at(5).timestamp() * 1000), 65)

    def test_dict_roundtrip(self):
        e = TimeEntry(id=3, task_id=2, start_time=T0)
        e.pause(at(42))
        back = TimeEntry.from_dict(json.loads(json.dumps(e.to_dict())))
        self.assertEqual(back, e)

    def test_from_dict_accepts_z_suffix(self):
        e = TimeEntry.from_dict({"id": 1, "task_id": 1, "start_time": "2026-10-19T09:00:00Z",
                                 "is_running": True})
        self.assertEqual(e.start_time, T0)


# ──────────────────────────────────────────────────────────────────────────
# tracker.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestTracker(unittest.TestCase):

    def setUp(self):
        self.tracker = Tracker()
        self.task = self.tracker.add_task("  Reports ")

    def test_add_task_strips_name(self):
        self.assertEqual(self.task.name, "Reports")
        self.assertEqual(self.task.id, 1)
        self.assertEqual(self.tracker.add_task("Calls").id, 2)

    def test_add_empty_task_rejected(self):
        with self.assertRaises(ValueError):
            self.tracker.add_task("   ")

    def test_start_creates_running_entry(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.assertTrue(e.is_running)
        self.assertIsNone(e.end_time)
        self.assertIsNone(e.duration)
        self.assertEqual(self.tracker.running_entries(), [e])

    def test_start_unknown_task(self):
        with self.assertRaises(UnknownEntryError):
            self.tracker.start_timer(99, now=T0)

    def test_second_start_rejected_while_active(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        with self.assertRaises(TimerAlreadyRunningError):
            self.tracker.start_timer(self.task.id, now=at(5))
        self.tracker.pause_timer(e.id, now=at(10))
        with self.assertRaises(TimerAlreadyRunningError):
            self.tracker.start_timer(self.task.id, now=at(15))

    def test_start_allowed_after_stop(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.tracker.stop_timer(e.id, now=at(120))
        again = self.tracker.start_timer(self.task.id, now=at(200))
        self.assertNotEqual(again.id, e.id)

    def test_stop_saves_total(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.tracker.pause_timer(e.id, now=at(50))
        self.tracker.resume_timer(e.id, now=at(100))
        stopped = self.tracker.stop_timer(e.id, now=at(130))
        self.assertEqual(stopped.duration, 80)
        self.assertFalse(stopped.is_running)
        self.assertTrue(stopped.finished)
        self.assertEqual(stopped.end_time, at(130))
        self.assertEqual(self.tracker.active_entries(), [])

    def test_stop_short_session_removes_entry(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        with self.assertRaises(ShortSessionError) as ctx:
            self.tracker.stop_timer(e.id, now=at(30))
        self.assertEqual(ctx.exception.seconds, 30)
        self.assertEqual(ctx.exception.minimum, 60)
        self.assertNotIn(e.id, self.tracker.entries)

    def test_stop_paused_entry_ignores_paused_time(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.tracker.pause_timer(e.id, now=at(70))
        stopped = self.tracker.stop_timer(e.id, now=at(4000))
        self.assertEqual(stopped.duration, 70)

    def test_custom_minimum(self):
        tracker = Tracker(min_session_seconds=10)
        task = tracker.add_task("Quick")
        e = tracker.start_timer(task.id, now=T0)
        self.assertEqual(tracker.stop_timer(e.id, now=at(15)).duration, 15)

    def test_finish_has_no_minimum(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        finished = self.tracker.finish_timer(e.id, now=at(10))
        self.assertEqual(finished.duration, 10)
        self.assertTrue(finished.finished)
        self.assertIn(e.id, self.tracker.entries)

    def test_finish_and_complete(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        done = self.tracker.finish_and_complete(e.id, now=at(10))
        self.assertEqual(done.duration, 60)
        self.assertTrue(self.task.completed)

    def test_finish_and_complete_keeps_longer_duration(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.assertEqual(self.tracker.finish_and_complete(e.id, now=at(600)).duration, 600)

    def test_unknown_entry(self):
        with self.assertRaises(UnknownEntryError) as ctx:
            self.tracker.pause_timer(12)
        self.assertIsInstance(ctx.exception, KeyError)
        self.assertIn("12", str(ctx.exception))

    def test_pause_and_resume_report_changes(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.assertTrue(e.pause(at(10)))
        self.assertFalse(e.pause(at(20)))
        self.assertTrue(e.resume(at(30)))
        self.assertFalse(e.resume(at(40)))

    def test_repeated_pause_is_not_logged(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        with self.assertLogs("timetracker", level="INFO") as cm:
            self.tracker.pause_timer(e.id, now=at(10))
        self.assertTrue(any("Paused entry" in line for line in cm.output))
        with self.assertNoLogs("timetracker", level="INFO"):
            self.tracker.pause_timer(e.id, now=at(20))

    def test_repeated_resume_is_not_logged(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        with self.assertNoLogs("timetracker", level="INFO"):
            self.tracker.resume_timer(e.id, now=at(5))

    def _finished_entry(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.tracker.finish_timer(e.id, now=at(10))
        return e

    def test_stop_after_finish_keeps_history(self):
        e = self._finished_entry()
        with self.assertRaises(EntryFinishedError):
            self.tracker.stop_timer(e.id, now=at(999))
        self.assertIn(e.id, self.tracker.entries)
        self.assertEqual(self.tracker.entry(e.id).duration, 10)

    def test_finish_twice_rejected(self):
        e = self._finished_entry()
        with self.assertRaises(EntryFinishedError):
            self.tracker.finish_timer(e.id, now=at(500))
        self.assertEqual(e.end_time, at(10))

    def test_finish_and_complete_after_finish_rejected(self):
        e = self._finished_entry()
        with self.assertRaises(EntryFinishedError):
            self.tracker.finish_and_complete(e.id, now=at(20))
        self.assertEqual(e.duration, 10)
        self.assertFalse(self.task.completed)

    def test_pause_after_finish_rejected(self):
        e = self._finished_entry()
        with self.assertRaises(EntryFinishedError):
            self.tracker.pause_timer(e.id, now=at(20))

    def test_resume_after_finish_rejected(self):
        e = self._finished_entry()
        with self.assertRaises(EntryFinishedError):
            self.tracker.resume_timer(e.id, now=at(20))
        self.assertFalse(e.is_running)

    def test_entry_finished_error_is_timer_error(self):
        e = self._finished_entry()
        with self.assertRaises(TimerError):
            self.tracker.stop_timer(e.id)

    def test_state_roundtrip(self):
        e = self.tracker.start_timer(self.task.id, now=T0)
        self.tracker.pause_timer(e.id, now=at(33))
        state = json.loads(json.dumps(self.tracker.to_state()))
        restored = Tracker.from_state(state)
        self.assertEqual(restored.tasks, {1: Task(id=1, name="Reports")})
        self.assertEqual(restored.entry(e.id), self.tracker.entry(e.id))
        # Id counters continue where they left off
        self.assertEqual(restored.add_task("Next").id, 2)
        self.assertEqual(restored.start_timer(2, now=T0).id, e.id + 1)


# ──────────────────────────────────────────────────────────────────────────
# config.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestConfig(unittest.TestCase):
    """Tests for state.json loading and saving in config.py."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)

        # Monkey-patch config path to use temp dir
        from tt.core import config
        self._orig_state_path = config.STATE_PATH
        config.STATE_PATH = self._tmppath / "state.json"

    def tearDown(self):
        from tt.core import config
        config.STATE_PATH = self._orig_state_path
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, payload):
        from tt.core import config
        with open(config.STATE_PATH, "w", encoding="utf-8") as f:
            f.write(payload if isinstance(payload, str) else json.dumps(payload))

    def test_fresh_start_returns_default_state(self):
        from tt.core.config import load_state
        state = load_state()
        self.assertEqual(state["meta"]["schema_version"], 1)
        self.assertTrue(state["settings"]["show_hours"])
        self.assertEqual(state["settings"]["min_session_seconds"], 60)
        self.assertEqual(state["tasks"], [])
        self.assertEqual(state["entries"], [])

    def test_save_and_load_roundtrip(self):
        from tt.core import config
        tracker = Tracker()
        task = tracker.add_task("ACME")
        tracker.start_timer(task.id, now=T0)

        state = config.load_state()
        state["settings"]["show_hours"] = False
        state.update(tracker.to_state())
        config.save_state(state)

        loaded = config.load_state()
        self.assertFalse(loaded["settings"]["show_hours"])
        restored = Tracker.from_state(loaded)
        self.assertEqual(restored.task(1).name, "ACME")
        self.assertTrue(restored.entry(1).is_running)
        self.assertEqual(restored.entry(1).start_time, T0)

    def test_save_updates_saved_at(self):
        from tt.core.config import load_state, save_state
        state = load_state()
        old_ts = state["meta"]["saved_at"]
        time.sleep(0.05)
        save_state(state)
        self.assertNotEqual(old_ts, state["meta"]["saved_at"])

    def test_load_fills_missing_settings_defaults(self):
        from tt.core import config
        self._write({"meta": {"schema_version": 1}, "settings": {"show_hours": False},
                     "tasks": [], "entries": []})
        loaded = config.load_state()
        self.assertFalse(loaded["settings"]["show_hours"])
        self.assertEqual(loaded["settings"]["min_session_seconds"], 60)
        self.assertEqual(loaded["settings"]["autosave_ticks"], 20)

    def test_load_replaces_wrongly_typed_settings(self):
        from tt.core import config
        self._write({"settings": {"show_hours": "yes", "min_session_seconds": True}})
        loaded = config.load_state()
        self.assertTrue(loaded["settings"]["show_hours"])
        self.assertEqual(loaded["settings"]["min_session_seconds"], 60)

    def test_load_fills_missing_sections(self):
        from tt.core import config
        self._write({"settings": {}})
        loaded = config.load_state()
        self.assertEqual(loaded["meta"]["schema_version"], 1)
        self.assertEqual(loaded["tasks"], [])
        self.assertEqual(loaded["entries"], [])

    def test_corrupted_state_json_falls_back_to_fresh(self):
        from tt.core import config
        self._write("{invalid json!!")
        state = config.load_state()
        self.assertEqual(state["meta"]["schema_version"], 1)
        self.assertEqual(state["tasks"], [])

    def test_non_object_state_json_falls_back_to_fresh(self):
        from tt.core import config
        self._write([1, 2, 3])
        state = config.load_state()
        self.assertEqual(state["entries"], [])


    # Bad records in an otherwise valid state.json

    def _load_tracker(self, tasks, entries):
        from tt.core import config
        self._write({"tasks": tasks, "entries": entries})
        with self.assertLogs("timetracker", level="WARNING") as cm:
            tracker = Tracker.from_state(config.load_state())
        return tracker, "\n".join(cm.output)

    def _good_entry(self, **overrides):
        e = {"id": 1, "task_id": 1, "start_time": "2026-10-19T09:00:00+00:00", "end_time": None,
             "duration": None, "is_running": True, "finished": False}
        e.update(overrides)
        return e

    def test_garbage_start_time_skipped(self):
        tracker, logged = self._load_tracker(
            [{"id": 1, "name": "ACME"}],
            [self._good_entry(id=1, start_time="garbage"), self._good_entry(id=2)])
        self.assertEqual(list(tracker.entries), [2])
        self.assertIn("entries[0]", logged)
        for e in tracker.active_entries():
            e.timer_state()

    def test_missing_task_id_skipped(self):
        bad = self._good_entry()
        del bad["task_id"]
        tracker, logged = self._load_tracker([{"id": 1, "name": "ACME"}], [bad])
        self.assertEqual(tracker.entries, {})
        self.assertIn("entries[0]", logged)

    def test_negative_duration_skipped(self):
        tracker, logged = self._load_tracker(
            [{"id": 1, "name": "ACME"}],
            [self._good_entry(duration=-5, is_running=False, end_time="2026-10-19T09:05:00+00:00")])
        self.assertEqual(tracker.entries, {})
        self.assertIn("entries[0]", logged)

    def test_entry_for_unknown_task_skipped(self):
        tracker, logged = self._load_tracker([{"id": 1, "name": "ACME"}], [self._good_entry(task_id=7)])
        self.assertEqual(tracker.entries, {})
        self.assertIn("unknown task 7", logged)

    def test_malformed_task_and_non_dict_records_skipped(self):
        tracker, logged = self._load_tracker(
            [{"id": "x", "name": "Broken"}, {"id": 2, "name": "Fine"}, "nonsense"],
            [42, self._good_entry(id=3, task_id=2)])
        self.assertEqual(list(tracker.tasks), [2])
        self.assertEqual(list(tracker.entries), [3])
        for key in ("tasks[0]", "tasks[2]", "entries[0]"):
            self.assertIn(key, logged)
        # Id counters still continue after the records that did load
        self.assertEqual(tracker.add_task("Next").id, 3)


if __name__ == "__main__":
    unittest.main()
