import math
from datetime import datetime, timedelta
from tt.core.elapsed import now_ms, parse_timestamp

#region === Duration formatting ===

# Verbose duration text for lists and reports: "1h 02m 03s", "2m 05s", "7s". With include_seconds off this returns the
# zero-padded clock form "01:02:03" instead.
def format_duration(seconds, include_seconds=True):
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)

    if not include_seconds:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes > 0:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"

# Coarse duration for summary cards, seconds dropped: "3h 5m", "12m", "0m".
def format_duration_for_dashboard(seconds):
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes = rem // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"

#endregion === Duration formatting ===

#region === Duration arithmetic ===

# Whole seconds between two timestamps. Negative when end is before start.
def calculate_duration(start_time, end_time):
    return math.floor((parse_timestamp(end_time) - parse_timestamp(start_time)) / 1000)

# Whole seconds between start_time and now (epoch ms, defaults to the wall clock).
def get_current_elapsed(start_time, now=None):
    if now is None:
        now = now_ms()
    return math.floor((now - parse_timestamp(start_time)) / 1000)

#endregion === Duration arithmetic ===

#region === Calendar helpers ===

# "14:05"
def format_clock(dt: datetime):
    return dt.strftime("%H:%M")

# "19/10/2026"
def format_date(dt: datetime):
    return dt.strftime("%d/%m/%Y")

def start_of_day(dt: datetime):
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)

# Last representable millisecond of the day, matching what date filters compare against.
def end_of_day(dt: datetime):
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)

# Weeks start on Monday.
def start_of_week(dt: datetime):
    return start_of_day(dt - timedelta(days=dt.weekday()))

def week_dates(start: datetime):
    return [start + timedelta(days=i) for i in range(7)]

# Whole calendar days since the deadline's date, 0 if it hasn't passed. Times of day are ignored.
def days_overdue(deadline: datetime, now: datetime | None = None):
    now = now or datetime.now(deadline.tzinfo)
    diff = (now.date() - deadline.date()).days
    return diff if diff > 0 else 0

#endregion === Calendar helpers ===
