# resumekit/logging_config.py
"""
Logging setup for the resumekit CLI.

Command output goes to stdout, so log records are written to stderr only.
Two record formats are available: one JSON object per line (default, for
piping into log tooling) and a short human-readable line.
"""

import json
import logging
import sys
from datetime import datetime, timezone

VERBOSITY_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}

# Loggers that are too chatty below WARNING
NOISY_LOGGERS = ("aiosqlite",)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg and exc when set."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def build_formatter(log_format: str = "json") -> logging.Formatter:
    """
    Formatter for the given output format.

    Args:
        log_format: "json" or "text"

    Raises:
        ValueError: Unknown format
    """
    if log_format == "json":
        return JsonFormatter()
    if log_format == "text":
        return logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")
    raise ValueError(f"Unknown log format: {log_format!r}")


def configure_logging(verbosity: str = "normal", log_format: str = "json") -> logging.Handler:
    """
    Route all logging to a single stderr handler.

    Any handlers already on the root logger are removed first.

    Args:
        verbosity: quiet, normal or verbose
        log_format: json or text

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(log_format))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(VERBOSITY_LEVELS.get(verbosity, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
