# spot_deals/config/logging_config.py

"""Logging for scheduled refresh runs.

Every run writes ``logs/run_<YYYYMMDD_HHMMSS>.log`` at DEBUG, including
the full traceback of each region that failed to fetch. The console
handler writes to stderr at ``Settings.LOG_LEVEL`` (WARNING unless
``SPOT_DEALS_LOG_LEVEL`` says otherwise), so a cron job only mails
output when a run degraded.

Only the newest ``Settings.LOG_RETENTION`` run logs are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from spot_deals.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(threadName)s | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_RUN_LOG_GLOB = "run_*.log"


def resolve_level(name: str | int) -> int:
    """Map a level name such as ``"info"`` to its numeric value."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def prune_run_logs(logs_dir: Path, keep: int) -> list[Path]:
    """Delete all but the newest *keep* run logs and return the removed paths.

    Run log names sort chronologically, so name order is age order.
    ``keep <= 0`` disables pruning.
    """
    if keep <= 0:
        return []
    run_logs = sorted(logs_dir.glob(_RUN_LOG_GLOB))
    stale = run_logs[:-keep]
    for path in stale:
        path.unlink(missing_ok=True)
    return stale


def setup_logging(console_level: str | int | None = None) -> Path:
    """Attach the run-log and console handlers to the ``spot_deals`` logger.

    Args:
        console_level: Overrides ``Settings.LOG_LEVEL`` for stderr.

    Returns:
        Path of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger("spot_deals")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls keep the first run's handlers
    if root_logger.handlers:
        return log_file

    level = resolve_level(
        console_level if console_level is not None else Settings.LOG_LEVEL
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    removed = prune_run_logs(logs_dir, Settings.LOG_RETENTION)
    root_logger.info(
        "Logging to %s (console level %s, pruned %d old run logs)",
        log_file,
        logging.getLevelName(level),
        len(removed),
    )
    return log_file
