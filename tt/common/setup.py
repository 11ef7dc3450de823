import os
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create missing directories if missing.
def ensure_directory(path: Path):
    path.mkdir(parents=True,exist_ok=True)
    return path

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    root: Path
    data: Path

    logs: Path
    current: Path

    @staticmethod
    def build():
        # Explicit override first, then the Windows roaming folder, then a dotfolder in home.
        override = os.getenv("TIMETRACKER_HOME")
        appdata = os.getenv("APPDATA")
        if override:
            data = Path(override)
        elif appdata:
            data = Path(appdata) / "TimeTracker"
        else:
            data = Path.home() / ".timetracker"
        data = ensure_directory(data)

        # Source checkout root, two levels above this file
        root = Path(__file__).resolve().parents[2]

        logs = ensure_directory(data / "logs")
        current = ensure_directory(data / "current")

        return ProjectPaths(
            root = root,
            data = data,
            logs = logs,
            current = current,
        )
PATHS = ProjectPaths.build()
