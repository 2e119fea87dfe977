# src/taskboard/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Own loggers that are too chatty for the console: name prefix -> minimum level.
_QUIET_OWN_LOGGERS: dict[str, int] = {
    # start/cancel churn on every snapshot; expiries reach the console as notifications
    "taskboard.board.timer": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable:
    - taskboard logs pass, except the prefixes in _QUIET_OWN_LOGGERS
    - everything else (nio, aiohttp, py.warnings) only at ERROR+

    The file handler is unfiltered.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name != "taskboard" and not name.startswith("taskboard."):
            return record.levelno >= logging.ERROR

        for prefix, min_level in _QUIET_OWN_LOGGERS.items():
            if name == prefix or name.startswith(prefix + "."):
                return record.levelno >= min_level
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskboard",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info). Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskboard.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)

    logging.getLogger("nio").setLevel(logging.INFO)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    return log_file
