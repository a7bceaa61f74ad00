"""Single entry point validating any supported value against a validator."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from stg.common.exceptions import ValidationError
from stg.graph.interfaces import IDuplet, IEdge, IGraph, INode, ITriplet, IValidator
from stg.template.structural import StructuralMatch


@dataclass
class ValidationResult:
    """
    Outcome of ``validate``.

    Unpacks as ``ok, error = validate(template, value)``. ``matched`` tells
    what an unknown (structurally validated) value passed as.
    """

    ok: bool
    error: ValidationError | None = None
    matched: StructuralMatch | None = None

    def __iter__(self) -> Iterator[Any]:
        yield self.ok
        yield self.error

    def __bool__(self) -> bool:
        return self.ok

    @property
    def message(self) -> str:
        if self.error is not None:
            return str(self.error)
        if self.matched is not None:
            return self.matched.describe()
        return "value is valid"


def validate(validator: IValidator, value: Any) -> ValidationResult:
    """
    Validate ``value`` with the check matching its kind.

    Graphs, triplets, duplets, nodes and edges are told apart by the
    interface they implement; any other value is validated by its shape.
    Validation stops at the first failure, which is returned rather than
    raised.
    """
    try:
        if isinstance(value, IGraph):
            validator.validate_graph(value)
        elif isinstance(value, ITriplet):
            validator.validate_triplet(value)
        elif isinstance(value, IDuplet):
            validator.validate_duplet(value)
        elif isinstance(value, INode):
            validator.validate_node(value)
        elif isinstance(value, IEdge):
            validator.validate_edge(value)
        else:
            return ValidationResult(True, matched=validator.validate_unknown(value))
    except ValidationError as e:
        return ValidationResult(False, e)
    return ValidationResult(True)
