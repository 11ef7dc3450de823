import csv
from pathlib import Path
from tt.common.logger import log
from tt.core.durations import format_clock, format_date, format_duration

EXPORT_COLUMNS = ["task", "date", "start", "end", "duration", "seconds"]

# One display-ready row per finished entry, newest first. Times are shown in local time.
def history_rows(tracker):
    rows = []
    for e in tracker.history():
        task = tracker.tasks.get(e.task_id)
        start = e.start_time.astimezone()
        end = e.end_time.astimezone()
        rows.append({
            "task": task.name if task else f"#{e.task_id}",
            "date": format_date(end),
            "start": format_clock(start),
            "end": format_clock(end),
            "duration": format_duration(e.duration or 0),
            "seconds": e.duration or 0,
        })
    return rows

# Writes the history as CSV to `path`. Nothing to write is an error so the user isn't handed an empty file.
def export_csv(tracker, path):
    rows = history_rows(tracker)
    if not rows:
        raise ValueError("No data to export")
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    log.info(f"Exported {len(rows)} history rows to '{path}'")
    return path
