"""
Logging configuration for dbunit

Provides console or JSON formatted logging with contextual fields, used by
the CLI and available to test suites that want structured output.

Usage:
    import logging
    from dbunit.utils.logging import setup_logging

    setup_logging(level="DEBUG", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Loaded dataset", extra={"table_name": "emp", "rows": 2})
"""

from .config import configure_from_env, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "configure_from_env",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
