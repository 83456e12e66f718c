"""JSON-lines logging for quiz-tracker commands.

Every command logs through the ``quiz_tracker`` logger into one rotating
file under the workspace ``logs`` directory. Structured context travels in
``extra=`` and lands under the ``extra`` key of each line.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path, PurePath
from typing import Any

__all__ = [
    "LOGGER_NAME",
    "LOG_FILENAME",
    "JsonLogFormatter",
    "configure_logger",
]

LOGGER_NAME = "quiz_tracker"
LOG_FILENAME = "quiz-tracker.log"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if context:
            entry["extra"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=_fallback_json)


class _TrackerFileHandler(RotatingFileHandler):
    pass


class _StderrHandler(logging.StreamHandler):
    pass


def configure_logger(
    log_dir: Path,
    *,
    level: str = "INFO",
    verbose: bool = False,
    name: str = LOGGER_NAME,
    filename: str = LOG_FILENAME,
) -> tuple[logging.Logger, Path]:
    """Point ``name`` at ``log_dir/filename`` and return it with the path.

    Safe to call once per command: an existing file handler is reused when
    the path is unchanged and replaced otherwise. ``verbose`` logs DEBUG to
    the file and echoes records to stderr. When the log file cannot be
    opened, a directory under the system temp dir is used instead.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handler = _file_handler(logger, log_dir / filename)
    handler.setLevel(logging.DEBUG if verbose else _level_number(level))
    _toggle_stderr(logger, enabled=verbose)
    return logger, Path(handler.baseFilename)


def _file_handler(logger: logging.Logger, path: Path) -> RotatingFileHandler:
    wanted = str(path.absolute())
    for handler in list(logger.handlers):
        if not isinstance(handler, _TrackerFileHandler):
            continue
        if handler.baseFilename == wanted:
            return handler
        logger.removeHandler(handler)
        handler.close()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = _open_file_handler(path)
    except OSError:
        fallback = _fallback_log_dir()
        fallback.mkdir(parents=True, exist_ok=True)
        handler = _open_file_handler(fallback / path.name)
    handler.setFormatter(JsonLogFormatter())
    logger.addHandler(handler)
    return handler


def _open_file_handler(path: Path) -> _TrackerFileHandler:
    return _TrackerFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )


def _toggle_stderr(logger: logging.Logger, *, enabled: bool) -> None:
    existing = [
        handler
        for handler in logger.handlers
        if isinstance(handler, _StderrHandler)
    ]
    if enabled and not existing:
        echo = _StderrHandler(stream=sys.stderr)
        echo.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(echo)
    elif not enabled:
        for handler in existing:
            logger.removeHandler(handler)
            handler.close()


def _level_number(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _fallback_json(value: Any) -> Any:
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "quiz-tracker-logs"
