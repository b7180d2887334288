"""
Logging setup for dbunit.

Configures the root logger with a console handler and an optional
rotating log file, in plain or JSON format.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = ("psycopg2", "pyodbc", "opentelemetry", "urllib3")


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "dbunit",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
) -> None:
    """
    Configure logging for the process

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, file logging is disabled)
        console_output: Whether to log to stderr
        json_format: Use JSON records for every handler
        app_name: Application name stamped on JSON records
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    def build_formatter(plain: logging.Formatter) -> logging.Formatter:
        if json_format:
            return JSONFormatter(app_name=app_name)
        return plain

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(build_formatter(ConsoleFormatter(use_colors=True)))
        root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            build_formatter(
                logging.Formatter(
                    fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        )
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )


def shutdown_logging() -> None:
    """Close and detach every root handler, releasing log file handles."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def configure_from_env() -> None:
    """
    Configure logging from environment variables

    Environment variables:
        DBUNIT_LOG_LEVEL: Log level (default: INFO)
        DBUNIT_LOG_FILE: Log file path (default: none)
        DBUNIT_LOG_JSON: Use JSON format (default: false)
        DBUNIT_LOG_CONSOLE: Enable console output (default: true)
    """
    setup_logging(
        level=os.getenv("DBUNIT_LOG_LEVEL", "INFO"),
        log_file=os.getenv("DBUNIT_LOG_FILE"),
        console_output=_env_flag("DBUNIT_LOG_CONSOLE", "true"),
        json_format=_env_flag("DBUNIT_LOG_JSON", "false"),
    )
