"""Logging helpers for the wizard.

Log records go to stderr so they never interleave with prompts and the
generated document on stdout. JSON output is available for unattended
provisioning runs whose logs are shipped elsewhere.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

__all__ = [
    "JSONFormatter",
    "setup_logging",
]

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as JSON."""
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname:
            payload["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra_attrs = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS
        }
        if extra_attrs:
            payload["extra"] = extra_attrs

        return json.dumps(payload, default=str)


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> None:
    """Configure the root logger with optional JSON formatting.

    Args:
        verbose: Enable debug-level logging (wins over ``level``)
        json_format: Use JSON output format
        log_file: Optional file path to write logs to
        level: Level name used when not verbose (default WARNING)
    """
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "WARNING").upper())
        if not isinstance(log_level, int):
            log_level = logging.WARNING

    formatter = JSONFormatter() if json_format else logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
