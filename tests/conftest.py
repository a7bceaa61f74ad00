"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from textwrap import dedent
from typing import Any

import pytest

from stg import parse_template
from stg.common.logging import ILoggable, LogLevel
from stg.template.template import Template

TEMPLATE_YAML = dedent(
    """\
    labels:
      Human:
        properties:
          name:
            type: string
            restrictions:
              regexps: ["^[A-Z][a-z]+$"]
        connections:
          Human:
            - edge: friend
              ratio: {min: 0, max: -1}
    nodes:
      Person:
        labels: [Human]
        properties:
          birth:
            type: datetime
          merried:
            type: bool
            restrictions:
              values: ["true"]
          age:
            type: float
            restrictions:
              regexps: ["^\\\\d+\\\\.\\\\d+$"]
          money:
            type: int
            restrictions:
              values: ["34", "35"]
          things:
            type: array-string
            restrictions:
              values: [thing, other thing]
          adresses:
            type: map-string-string
            restrictions:
              regexps: ["^house"]
              key_regexps: ["^street \\\\d+$"]
        connections:
          Pet:
            - edge: owns
              ratio: {min: 0, max: 2}
      Pet:
        properties:
          nickname:
            type: string
    edges:
      friend:
        properties:
          since:
            type: datetime
      owns:
        properties: {}
    """
)

TEST_TIME = datetime(1111, 11, 11, 11, 11, 11, tzinfo=timezone.utc)


class RecordingLogger(ILoggable):
    """Logger keeping every message it receives."""

    def __init__(self) -> None:
        self.records: list[tuple[LogLevel, str]] = []

    def log(self, level: LogLevel, message: str, *args: Any) -> None:
        self.records.append((level, message % args if args else message))

    def messages(self, level: LogLevel) -> list[str]:
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def template_yaml() -> str:
    """Text of the Person/Pet template."""
    return TEMPLATE_YAML


@pytest.fixture
def template(template_yaml: str) -> Template:
    """Person/Pet template with a Human label and friend/owns edges."""
    return parse_template(template_yaml)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def person_props() -> Callable[..., dict[str, Any]]:
    """Factory of valid Person properties; keyword arguments override them."""

    def make(**overrides: Any) -> dict[str, Any]:
        props: dict[str, Any] = {
            "name": "Jora",
            "birth": TEST_TIME,
            "merried": True,
            "age": 22.7,
            "money": 34,
            "things": ["thing", "other thing"],
            "adresses": {"street 1": "house  "},
        }
        props.update(overrides)
        return props

    return make
