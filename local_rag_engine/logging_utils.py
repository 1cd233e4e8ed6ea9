from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, Optional, TextIO

_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}

# LogRecord attributes that are not user-supplied `extra=` fields.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class _PlainFormatter(logging.Formatter):
    """Single-line stderr format; verbose variant adds time and call site."""

    default_fmt = "%(levelname)s %(name)s - %(message)s"
    verbose_fmt = "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d - %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    def __init__(self, verbose: bool = False) -> None:
        super().__init__(fmt=self.verbose_fmt if verbose else self.default_fmt, datefmt=self.datefmt)


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, including any `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in vars(record).items():
            if k not in _RESERVED and not k.startswith("_"):
                payload[k] = v
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def coerce_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        upper = level.strip().upper()
        if upper in _LEVELS:
            return getattr(logging, upper)
        if upper.isdigit():
            return int(upper)
    return logging.INFO


def setup_logging(
    level: str | int | None = None,
    json_logs: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger once for the process.

    Args:
        level: "DEBUG", "INFO", ... ; falls back to $LOG_LEVEL, then INFO.
        json_logs: emit JSON lines instead of plain text.
        stream: target stream (stderr by default).
    """
    final_level = coerce_level(level or os.getenv("LOG_LEVEL") or logging.INFO)

    root = logging.getLogger()
    root.setLevel(final_level)
    # Replace earlier handlers so repeated calls (REPL/tests) don't duplicate lines.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    if json_logs:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(_PlainFormatter(verbose=final_level <= logging.DEBUG))
    root.addHandler(handler)
