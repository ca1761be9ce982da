"""
Structured logging configuration.

Provides JSON-formatted log lines for retrieval events so fetch failures and
filtering counts can be searched by field.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Each entry includes:
    - timestamp: ISO format datetime (UTC)
    - level: Log level name
    - logger: Logger name
    - message: Rendered log message
    - extra: Fields passed through ``logger.info(..., extra={...})``
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if extra:
            log_entry["extra"] = extra

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Optional[str] = None,
    logger_name: str = "trip_rag",
    fmt: str = "json",
) -> logging.Logger:
    """
    Configure logging for the package logger.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to a log file in addition to stderr.
        logger_name: Name of the logger to configure.
        fmt: ``"json"`` for structured lines, anything else for plain text.

    Returns:
        The configured logger, suitable for injecting into components.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.handlers = []

    if fmt == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
