"""
Logger wrapper that attaches fixed context to every message.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual fields to all log messages

    Usage:
        logger = ContextLogger(__name__, connection_name="test")
        logger.info("Dataset loaded", rows=3)
        # record carries both connection_name and rows
    """

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def update_context(self, **context: Any) -> None:
        """Add or replace context fields."""
        self.context.update(context)

    def get_context(self) -> dict[str, Any]:
        """Return a copy of the current context."""
        return self.context.copy()
