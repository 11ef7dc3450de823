import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from tt.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Only attaches the handler built by `factory` if the logger doesn't already carry one with this name, so repeated
# get_logger() calls (tests, re-imports) never double up output.
def _attach_once(logger: logging.Logger, handler_name, level, fmt, factory):
    if any(h.get_name() == handler_name for h in logger.handlers):
        return None
    handler = factory()
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)
    return handler

# Removes all but the newest `keep` per-run debug logs.
def _prune_run_logs(run_dir: Path, name, keep):
    runs = sorted(run_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
    for run in runs[keep:]:
        try: run.unlink()
        except OSError: pass

def get_logger(
        name = "timetracker",
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 5 * 1024 * 1024,
        backup_count = 5,
        persistent = True,
        console = False,
        run_logs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(min(level, logging.DEBUG) if run_logs > 0 else level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    # Rotating log that survives across runs
    if persistent:
        _attach_once(logger, f"{name}:persistent", level, fmt, lambda: RotatingFileHandler(
            filename=log_dir / f"{name}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ))

    # latest.log only ever holds the current run
    _attach_once(logger, f"{name}:latest", level, fmt, lambda: logging.FileHandler(
        filename=log_dir / "latest.log",
        mode="w",
        encoding="utf-8",
    ))

    # One DEBUG-level file per run under logs/runs, oldest pruned
    if run_logs > 0:
        run_dir = log_dir / "runs"
        run_dir.mkdir(parents=True,exist_ok=True)
        attached = _attach_once(logger, f"{name}:run", logging.DEBUG, fmt, lambda: logging.FileHandler(
            filename=run_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log",
            encoding="utf-8",
        ))
        if attached is not None:
            _prune_run_logs(run_dir, name, run_logs)

    if console:
        _attach_once(logger, f"{name}:console", level, fmt, logging.StreamHandler)

    return logger

# TIMETRACKER_LOG_LEVEL accepts any stdlib level name, TIMETRACKER_LOG_CONSOLE=1 mirrors to stderr.
_level_name = os.getenv("TIMETRACKER_LOG_LEVEL", "INFO").upper()
log = get_logger(
    level=logging.getLevelName(_level_name) if isinstance(logging.getLevelName(_level_name), int) else logging.INFO,
    console=os.getenv("TIMETRACKER_LOG_CONSOLE") == "1",
    run_logs=10,
)
log.info("=== TIMETRACKER SESSION START ===")
