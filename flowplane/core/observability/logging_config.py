"""
Process logging for flowplane runs.

``setup_logging`` is called once by the CLI; modules only ever do
``logger = logging.getLogger(__name__)``. Parallel bindings of a flow log
from pool threads, so every format past WARNING names the thread
(``flow-<name>_<n>``) the line came from.

The CLI resolves the console level from its flags, then
FLOWPLANE_LOG_LEVEL, then WARNING. FLOWPLANE_LOG_FILE adds a file
handler whose level may differ (FLOWPLANE_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import sys

_DETAIL = "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d — %(message)s"

# level threshold → (format, datefmt), checked in order
_CONSOLE_FORMATS = (
    (logging.DEBUG, _DETAIL, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(threadName)s] %(message)s", "%H:%M:%S"),
)
_PLAIN = "%(message)s"

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler, and a file handler when asked.

    Args:
        level: Console level name; unknown names mean WARNING.
        log_file: Path of a log file to append to.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level or level)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_DETAIL, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    # The root must let through whatever the most verbose handler wants.
    root.setLevel(root_level)
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    fmt, datefmt = _PLAIN, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name → numeric level (WARNING when empty or unknown)."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
