"""
Structured logging for roundtrip-verify

Provides human-readable console logging by default and JSON-formatted logging
for machine consumption, plus a context-carrying logger wrapper.

Usage:
    from src.utils.logging import setup_logging, ContextLogger

    setup_logging(level="INFO", json_format=False)

    logger = ContextLogger(__name__, table_name="notes")
    logger.info("Table differs", missing=2)
"""

from .config import env_log_settings, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter, extra_fields
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "env_log_settings",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
    "extra_fields",
]
