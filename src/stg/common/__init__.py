"""Exceptions and logging shared by the template parser and validators."""

from stg.common.exceptions import (
    StgException,
    TemplateException,
    TemplateParseError,
    ValidationError,
)
from stg.common.logging import ILoggable, LogLevel, StandardLogger

__all__ = [
    "StgException",
    "TemplateException",
    "TemplateParseError",
    "ValidationError",
    "ILoggable",
    "LogLevel",
    "StandardLogger",
]
