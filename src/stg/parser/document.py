"""Strict loading of template documents into buffer dataclasses.

Buffers mirror the YAML layout one-to-one and hold raw text only; turning
them into template types is the job of the template parser. Scalars are
never resolved by YAML, so ``true``, ``22.7`` or ``1111-11-11T11:11:11Z``
reach restriction building exactly as written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError
from yaml.constructor import ConstructorError


class DocumentError(ValueError):
    """The document doesn't have the shape of a template."""


class _StrictLoader(yaml.BaseLoader):
    """Loader keeping every scalar as text and rejecting duplicate keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, str):
                continue
            if key in seen:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key \"{key}\"",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


@dataclass
class RestrictionsBuffer:
    values: list[str] = field(default_factory=list)
    regexps: list[str] = field(default_factory=list)
    key_values: list[str] = field(default_factory=list)
    key_regexps: list[str] = field(default_factory=list)


@dataclass
class PropertyBuffer:
    type: str = ""
    restrictions: RestrictionsBuffer = field(default_factory=RestrictionsBuffer)


@dataclass
class ConnectionBuffer:
    """One connection entry; a missing ratio reads as ``min: 0, max: 0``."""

    edge: str = ""
    min: int = 0
    max: int = 0


@dataclass
class EdgeBuffer:
    properties: dict[str, PropertyBuffer] = field(default_factory=dict)


@dataclass
class LabelBuffer:
    properties: dict[str, PropertyBuffer] = field(default_factory=dict)
    connections: dict[str, list[ConnectionBuffer]] = field(default_factory=dict)


@dataclass
class NodeBuffer:
    labels: list[str] = field(default_factory=list)
    properties: dict[str, PropertyBuffer] = field(default_factory=dict)
    connections: dict[str, list[ConnectionBuffer]] = field(default_factory=dict)


@dataclass
class TemplateDocument:
    """Whole template document: ``labels``, ``nodes`` and ``edges``."""

    labels: dict[str, LabelBuffer] = field(default_factory=dict)
    nodes: dict[str, NodeBuffer] = field(default_factory=dict)
    edges: dict[str, EdgeBuffer] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# JSON Schema of the document
# ---------------------------------------------------------------------------


def _or_empty(schema: dict[str, Any]) -> dict[str, Any]:
    """Allow a key with no value, which BaseLoader reads as ``""``."""
    return {"anyOf": [schema, {"const": ""}]}


def _closed(**properties: dict[str, Any]) -> dict[str, Any]:
    return _or_empty(
        {"type": "object", "properties": properties, "additionalProperties": False}
    )


def _map_of(schema: dict[str, Any]) -> dict[str, Any]:
    return _or_empty({"type": "object", "additionalProperties": schema})


_TEXT = {"type": "string"}
_TEXTS = _or_empty({"type": "array", "items": _TEXT})
_INTEGER = {"type": "string", "pattern": r"^[-+]?\d+$"}

_PROPERTIES = _map_of(
    _closed(
        type=_TEXT,
        restrictions=_closed(
            values=_TEXTS, regexps=_TEXTS, key_values=_TEXTS, key_regexps=_TEXTS
        ),
    )
)
_CONNECTIONS = _map_of(
    _or_empty(
        {
            "type": "array",
            "items": _closed(edge=_TEXT, ratio=_closed(min=_INTEGER, max=_INTEGER)),
        }
    )
)

TEMPLATE_SCHEMA: dict[str, Any] = _closed(
    labels=_map_of(_closed(properties=_PROPERTIES, connections=_CONNECTIONS)),
    nodes=_map_of(
        _closed(labels=_TEXTS, properties=_PROPERTIES, connections=_CONNECTIONS)
    ),
    edges=_map_of(_closed(properties=_PROPERTIES)),
)


def check_shape(data: Any) -> None:
    """
    Validate loaded YAML data against ``TEMPLATE_SCHEMA``.

    Raises:
        DocumentError: Naming the path of the first offending value.
    """
    try:
        jsonschema.validate(instance=data, schema=TEMPLATE_SCHEMA)
    except ValidationError as e:
        path = "/" + "/".join(str(p) for p in e.absolute_path)
        raise DocumentError(f"{path}: {e.message}") from e


# ---------------------------------------------------------------------------
# Conversion into buffers
# ---------------------------------------------------------------------------


def _mapping(value: Any) -> dict[str, Any]:
    return value or {}


def _property(raw: Any) -> PropertyBuffer:
    raw = _mapping(raw)
    restrictions = {k: v or [] for k, v in _mapping(raw.get("restrictions")).items()}
    return PropertyBuffer(raw.get("type", ""), RestrictionsBuffer(**restrictions))


def _properties(raw: Any) -> dict[str, PropertyBuffer]:
    return {k: _property(v) for k, v in _mapping(raw).items()}


def _connection(raw: Any) -> ConnectionBuffer:
    raw = _mapping(raw)
    ratio = _mapping(raw.get("ratio"))
    return ConnectionBuffer(
        raw.get("edge", ""), int(ratio.get("min", "0")), int(ratio.get("max", "0"))
    )


def _connections(raw: Any) -> dict[str, list[ConnectionBuffer]]:
    return {
        subject: [_connection(c) for c in entries or []]
        for subject, entries in _mapping(raw).items()
    }


def to_document(data: Any) -> TemplateDocument:
    """
    Convert loaded YAML data into buffers, checking its shape first.

    Raises:
        DocumentError: On unknown fields, wrong shapes or non-integer ratios.
    """
    if data is None:
        data = {}
    check_shape(data)
    data = _mapping(data)

    doc = TemplateDocument()
    for name, raw in _mapping(data.get("edges")).items():
        doc.edges[name] = EdgeBuffer(_properties(_mapping(raw).get("properties")))
    for name, raw in _mapping(data.get("labels")).items():
        raw = _mapping(raw)
        doc.labels[name] = LabelBuffer(
            _properties(raw.get("properties")), _connections(raw.get("connections"))
        )
    for name, raw in _mapping(data.get("nodes")).items():
        raw = _mapping(raw)
        doc.nodes[name] = NodeBuffer(
            list(raw.get("labels") or []),
            _properties(raw.get("properties")),
            _connections(raw.get("connections")),
        )
    return doc


def load_document(stream: IO[str] | IO[bytes] | str | bytes) -> TemplateDocument:
    """
    Load a template document from text, bytes or an opened file.

    Raises:
        yaml.YAMLError: If the document is not well-formed YAML or repeats
            a mapping key.
        DocumentError: If the document doesn't have the shape of a template.
    """
    return to_document(yaml.load(stream, Loader=_StrictLoader))
