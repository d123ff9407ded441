"""
Logging configuration — one setup path for the service and the generator.

``configure_from_env`` is what the two click groups call; it folds the
``--verbose``/``--debug`` flags and the environment into a single
``setup_logging`` call. Every module then just does
``logger = logging.getLogger(__name__)``.

Level precedence:
    --debug  >  --verbose  >  SERVICE_LOG_LEVEL  >  caller default

File output is opt-in via SERVICE_LOG_FILE (and SERVICE_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Mapping

LEVEL_VAR = "SERVICE_LOG_LEVEL"
FILE_VAR = "SERVICE_LOG_FILE"
FILE_LEVEL_VAR = "SERVICE_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "%(asctime)s %(service)s [%(name)s] %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(service)s %(name)s:%(lineno)d  %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(service)s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_CONSOLE = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# HTTP client and dev-server request logs
DEFAULT_QUIET_LOGGERS = ("urllib3", "werkzeug")


class ServiceNameFilter(logging.Filter):
    """Stamp every record with the emitting service's name."""

    def __init__(self, service: str) -> None:
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        return True


def parse_level(level: str | None) -> int:
    """Level name to numeric constant; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING


def resolve_level(
    verbose: bool,
    debug: bool,
    default: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    env = os.environ if environ is None else environ
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return env.get(LEVEL_VAR) or default


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
    service: str = "-",
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional path; adds a file handler with full detail.
        log_file_level: File handler level (defaults to ``level``).
        quiet_third_party: Pin ``quiet_loggers`` to WARNING unless at DEBUG.
        service: Name put on every record as ``%(service)s``.
        quiet_loggers: Logger names considered noisy.
    """
    numeric_level = parse_level(level)
    name_filter = ServiceNameFilter(service)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_CONSOLE
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_CONSOLE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    console.addFilter(name_filter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    # Root must pass records down to the most verbose handler
    effective_level = numeric_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        fh.addFilter(name_filter)
        root.addHandler(fh)

    root.setLevel(effective_level)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in quiet_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def configure_from_env(
    *,
    verbose: bool,
    debug: bool,
    default_level: str,
    service: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Set up logging from CLI flags plus ``SERVICE_LOG_*``; return the level used."""
    env = os.environ if environ is None else environ
    level = resolve_level(verbose, debug, default_level, env)
    setup_logging(
        level=level,
        log_file=env.get(FILE_VAR) or None,
        log_file_level=env.get(FILE_LEVEL_VAR) or None,
        quiet_third_party=not debug,
        service=service,
    )
    return level
