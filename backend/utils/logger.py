"""
Component logger

A thin wrapper over the standard logging module so every service logs the
same way: `[LEVEL] timestamp [Component] - message {context}`.
"""

import json
import logging
from typing import Any, Optional

LOG_FORMAT = "[%(levelname)s] %(asctime)s [%(name)s] - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at process start."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _format_context(context: dict) -> str:
    if not context:
        return ""
    return " " + json.dumps(context, default=str, ensure_ascii=False)


class ComponentLogger:
    """Logger bound to one component name. Keyword arguments become structured context."""

    def __init__(self, component: str, logger: Optional[logging.Logger] = None):
        self.component = component
        self._logger = logger or logging.getLogger(component)

    def info(self, message: str, **context: Any) -> None:
        self._logger.info(f"{message}{_format_context(context)}")

    def debug(self, message: str, **context: Any) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(f"{message}{_format_context(context)}")

    def warning(self, message: str, **context: Any) -> None:
        self._logger.warning(f"{message}{_format_context(context)}")

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        if error is not None:
            context = {"error": str(error), **context}
        self._logger.error(f"{message}{_format_context(context)}", exc_info=error)


def get_logger(component: str) -> ComponentLogger:
    return ComponentLogger(component)
