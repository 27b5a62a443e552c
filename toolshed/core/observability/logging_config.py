"""
Logging configuration — set up once by the CLI root group.

Every module logs through ``logging.getLogger(__name__)``; this is the
only place handlers are attached.  User-facing progress goes through
``click.echo`` instead, so the default console level stays at WARNING.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  TOOLSHED_LOG_LEVEL  >  WARNING

A log file is added when TOOLSHED_LOG_FILE is set (level from
TOOLSHED_LOG_FILE_LEVEL, defaulting to the console level).
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "TOOLSHED_LOG_LEVEL"
LOG_FILE_ENV = "TOOLSHED_LOG_FILE"
LOG_FILE_LEVEL_ENV = "TOOLSHED_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

# (highest level the format applies to, format, datefmt); first match wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(levelname)s: %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# HTTP and GCS client internals, plus gnupg's subprocess chatter
_NOISY_LOGGERS = ("urllib3", "google", "gnupg")


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LOG_LEVEL_ENV, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers for this process.

    Args:
        level: Console level name.  Unknown names mean WARNING.
        log_file: Also append records to this file.
        log_file_level: Level for the file; the console level if unset.
        quiet_third_party: Pin ``_NOISY_LOGGERS`` at WARNING unless the
            console is at DEBUG.
    """
    console_level = _to_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _to_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must pass whatever the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    for ceiling, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
            break
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _to_level(name: str | None) -> int:
    if not name:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)
