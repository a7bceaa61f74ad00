"""Structural validation of values that are not graph entities.

Mappings and records (dataclasses, named tuples, plain objects) are matched
to a node or edge type by name, then validated field by field. The type name
is taken from the value's class, or failing that from one of its fields; in
the latter case that field is not treated as a property.
"""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Mapping
from enum import Enum
from typing import Any

from stg.common.exceptions import (
    NoMatchingTypeError,
    StructuralValidationError,
    UnsupportedValueError,
    ValidationError,
)
from stg.template.evaluation import evaluate_entity
from stg.template.types import TemplateEdge, TemplateEntity, TemplateNode


class StructuralMatch(Enum):
    """What an unknown value was successfully validated as."""

    NODE = "node"
    EDGE = "edge"
    BOTH = "both"

    def describe(self) -> str:
        if self is StructuralMatch.BOTH:
            return (
                "unknown value: value had been both successfully validated: "
                "and as node, and as edge"
            )
        return f"unknown value: value had been successfully validated as {self.value}"


def record_fields(value: Any) -> Mapping[Any, Any] | None:
    """Return the fields of a mapping or record, or None for other shapes."""
    if isinstance(value, Mapping):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return value._asdict()
    if (
        hasattr(value, "__dict__")
        and not callable(value)
        and not isinstance(value, types.ModuleType)
    ):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}
    return None


# modules of generic containers whose class names say nothing about the value
_ANONYMOUS_MODULES = frozenset({"builtins", "types", "collections"})


def _type_name(value: Any) -> str:
    """Class name of a record, or "" for generic containers like ``dict``."""
    cls = type(value)
    if cls.__module__ in _ANONYMOUS_MODULES:
        return ""
    return cls.__name__


def _find_candidate(
    definitions: Mapping[str, TemplateEntity],
    type_name: str,
    fields: Mapping[Any, Any],
) -> tuple[TemplateEntity | None, Any]:
    """Return the definition named by the type name, else by a field value,
    along with the key of that field (None when matched by type name)."""
    if type_name and type_name in definitions:
        return definitions[type_name], None
    for key, field_value in fields.items():
        if isinstance(field_value, str) and field_value in definitions:
            return definitions[field_value], key
    return None, None


def _validate_as(
    definition: TemplateEntity, kind: str, fields: Mapping[Any, Any], omit: Any
) -> None:
    values = {k: v for k, v in fields.items() if omit is None or k != omit}
    try:
        evaluate_entity(definition, values)
    except ValidationError as e:
        raise e.with_context(f"\"{definition.name}\"-{kind}")


def validate_unknown(
    nodes: Mapping[str, TemplateNode],
    edges: Mapping[str, TemplateEdge],
    value: Any,
) -> StructuralMatch:
    """
    Validate a mapping or record as a node and/or an edge.

    Raises:
        UnsupportedValueError: If the value is not a mapping or a record.
        NoMatchingTypeError: If no node or edge type name was found.
        StructuralValidationError: If validation failed both as node and edge.
    """
    fields = record_fields(value)
    if fields is None:
        raise UnsupportedValueError(value)

    type_name = _type_name(value)
    as_node, node_field = _find_candidate(nodes, type_name, fields)
    as_edge, edge_field = _find_candidate(edges, type_name, fields)
    if as_node is None and as_edge is None:
        raise NoMatchingTypeError()

    node_err = "there is no such node type in template"
    edge_err = "there is no such edge type in template"
    ok_node = ok_edge = False
    if as_node is not None:
        try:
            _validate_as(as_node, "node", fields, node_field)
            ok_node = True
        except ValidationError as e:
            node_err = str(e)
    if as_edge is not None:
        try:
            _validate_as(as_edge, "edge", fields, edge_field)
            ok_edge = True
        except ValidationError as e:
            edge_err = str(e)

    if ok_node and ok_edge:
        return StructuralMatch.BOTH
    if ok_node:
        return StructuralMatch.NODE
    if ok_edge:
        return StructuralMatch.EDGE
    raise StructuralValidationError(node_err, edge_err)
