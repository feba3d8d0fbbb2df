"""
Logging configuration for roundtrip-verify.

All log output goes to stderr so stdout stays reserved for the run summary
and guidance lines. An optional log file receives the same records.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

from .formatters import ConsoleFormatter, JSONFormatter

APP_NAME = "roundtrip-verify"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = APP_NAME,
) -> None:
    """
    Configure root logging for a verification run

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to an additional log file (None disables file logging)
        console_output: Whether to log to stderr
        json_format: Emit one JSON object per record instead of text
        app_name: Application name included in JSON records
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        if json_format:
            console_handler.setFormatter(JSONFormatter(app_name=app_name))
        else:
            console_handler.setFormatter(ConsoleFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        if json_format:
            file_handler.setFormatter(JSONFormatter(app_name=app_name))
        else:
            file_handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # gRPC export errors from the OTLP exporter are noisy at INFO
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging initialized: level={level}, file={log_file or 'none'}, json={json_format}"
    )


def shutdown_logging() -> None:
    """Flush and close every root handler."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)


def env_log_settings(default_level: str = "WARNING") -> dict[str, Any]:
    """
    Read logging settings from environment variables

    Environment variables:
        ROUNDTRIP_LOG_LEVEL: Log level (default: default_level)
        ROUNDTRIP_LOG_FILE: Log file path (default: none)
        ROUNDTRIP_LOG_JSON: Use JSON format (default: false)

    Returns:
        Keyword arguments for setup_logging
    """
    return {
        "level": os.getenv("ROUNDTRIP_LOG_LEVEL", default_level).upper(),
        "log_file": os.getenv("ROUNDTRIP_LOG_FILE") or None,
        "json_format": os.getenv("ROUNDTRIP_LOG_JSON", "false").lower() in ("true", "1", "yes"),
    }
