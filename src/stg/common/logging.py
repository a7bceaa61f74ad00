"""Logging hooks used while a template is built."""

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Severity of a template builder message."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @property
    def std_level(self) -> int:
        """Matching level of the standard ``logging`` module."""
        return (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR)[self]


class ILoggable(ABC):
    """Sink for messages emitted by the template parser.

    Components receive an optional ``ILoggable`` and skip logging entirely
    when none is given.
    """

    @abstractmethod
    def log(self, level: LogLevel, message: str, *args: Any) -> None:
        """Record ``message % args`` at ``level``."""
        ...


class StandardLogger(ILoggable):
    """ILoggable forwarding to a logger of the standard ``logging`` module."""

    def __init__(self, name: str = "stg") -> None:
        self._logger = logging.getLogger(name)

    def log(self, level: LogLevel, message: str, *args: Any) -> None:
        self._logger.log(level.std_level, message, *args)
