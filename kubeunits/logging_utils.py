"""
Logging setup for kubeunits.

Library modules only call ``logging.getLogger(__name__)``; the CLI (or the
hosting process) calls ``setup_logging`` once.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

LOGGER_NAME = "kubeunits"


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "pretty",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for the kubeunits package.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "structured" (JSON lines) or "pretty" (rich console)
        log_file: Also write log records to this file

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.handlers = []

    if log_format == "structured":
        console_handler: logging.Handler = logging.StreamHandler()
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler = RichHandler(rich_tracebacks=True, show_time=False)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Extra fields passed via logger.info(..., extra={...})
        if hasattr(record, "unit"):
            log_data["unit"] = record.unit
        if hasattr(record, "workload"):
            log_data["workload"] = record.workload

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)
