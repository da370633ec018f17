"""
Logger wrappers that carry structured context.

ContextLogger attaches a fixed set of fields to every record it emits, so a
worker can bind its dispatch sequence number once and have it appear on every
phase timing line.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that merges bound context into `extra`

    Usage:
        logger = ContextLogger("sqlload.engine.worker", worker=42)
        logger.debug("tx.Create SECS: 0.001200", phase="create")
    """

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.context = context

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a new ContextLogger with additional bound fields."""
        child = ContextLogger(self.logger.name, **self.context)
        child.context.update(context)
        return child

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def get_context(self) -> dict[str, Any]:
        """Return a copy of the bound context."""
        return self.context.copy()
