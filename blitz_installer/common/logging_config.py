# blitz_installer/common/logging_config.py
# -*- coding: utf-8 -*-
"""
Logging configuration for the Blitz installer.

Console output is split by severity: records below ERROR go to stdout and
ERROR or worse go to stderr, so failures stay visible when stdout is
redirected. Console lines are colored by level when the stream is a
terminal. An optional file handler writes one JSON object per record.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO, Union

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOGGER_NAME = "blitz_installer"

_COLORS = {
    logging.DEBUG: "\033[0;37m",
    logging.INFO: "\033[1;94m",
    SUCCESS: "\033[0;32m",
    logging.WARNING: "\033[0;33m",
    logging.ERROR: "\033[0;31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON with a consistent structure: timestamp,
    level, logger, message and source location, plus any exception text.
    """

    def __init__(self, service_name: str = LOGGER_NAME):
        super().__init__()
        self.service_name = service_name
        self.hostname = os.uname().nodename

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "hostname": self.hostname,
        }
        stage = getattr(record, "stage", None)
        if stage:
            log_entry["stage"] = stage
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Plain message formatter that colors the line by level on a TTY."""

    def __init__(self, use_color: bool = False, verbose: bool = False):
        fmt = (
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            if verbose
            else "%(message)s"
        )
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.use_color:
            return text
        color = _COLORS.get(record.levelno, "")
        return f"{color}{text}{_RESET}" if color else text


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(
    verbose: bool = False,
    log_file_path: Optional[Union[str, Path]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Set up logging for the installer.

    Args:
        verbose: Log at DEBUG level with timestamps instead of INFO.
        log_file_path: When given, also write JSON records to this file.
        stdout: Stream for records below ERROR. Defaults to sys.stdout.
        stderr: Stream for ERROR and CRITICAL records. Defaults to sys.stderr.

    Returns:
        The installer's root logger.
    """
    out_stream = stdout if stdout is not None else sys.stdout
    err_stream = stderr if stderr is not None else sys.stderr
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    out_handler = logging.StreamHandler(out_stream)
    out_handler.setLevel(level)
    out_handler.addFilter(_MaxLevelFilter(logging.ERROR))
    out_handler.setFormatter(
        ConsoleFormatter(use_color=_is_tty(out_stream), verbose=verbose)
    )
    logger.addHandler(out_handler)

    err_handler = logging.StreamHandler(err_stream)
    err_handler.setLevel(logging.ERROR)
    err_handler.setFormatter(
        ConsoleFormatter(use_color=_is_tty(err_stream), verbose=verbose)
    )
    logger.addHandler(err_handler)

    if log_file_path:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    logger.debug(
        "Logging initialized (level=%s, file=%s)",
        logging.getLevelName(level),
        log_file_path,
    )
    return logger
