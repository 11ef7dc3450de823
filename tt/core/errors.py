# Base of everything the timer core raises on purpose. The UI catches this around user actions.
class TimerError(Exception):
    pass

# A start/end timestamp that can't be read as a point in time.
class InvalidTimestampError(TimerError, ValueError):

    def __init__(self, value):
        self.value = value
        super().__init__(f"Cannot interpret {value!r} as a timestamp")

# The task already has a running or paused entry.
class TimerAlreadyRunningError(TimerError):

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id} already has an active timer, stop or pause it before starting another")

# A stopped session fell under the minimum and was discarded instead of saved.
class ShortSessionError(TimerError):

    def __init__(self, entry_id, seconds, minimum):
        self.entry_id = entry_id
        self.seconds = seconds
        self.minimum = minimum
        super().__init__(f"Session {entry_id} lasted {seconds}s, under the {minimum}s minimum, so it was removed")

class UnknownEntryError(TimerError, KeyError):

    def __init__(self, kind, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"No {kind} with id {ident}")

    def __str__(self):
        return str(self.args[0])

# The entry was already stopped or finished and only lives on as history.
class EntryFinishedError(TimerError):

    def __init__(self, entry_id):
        self.entry_id = entry_id
        super().__init__(f"Time entry {entry_id} is already finished")
