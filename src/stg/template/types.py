"""Template data types, restrictions and resolved entity definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Upper connection bound meaning "no limit"
INF = -1


class DataType(Enum):
    """Data type of a template property."""

    NULL = "null"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    DATETIME = "datetime"
    ARRAY = "array"
    MAP = "map"

    def __str__(self) -> str:
        return self.value

    @property
    def is_scalar(self) -> bool:
        """True for data types that may be array values or map keys/values."""
        return self in SCALAR_TYPES


SCALAR_TYPES = frozenset(
    {
        DataType.INT,
        DataType.FLOAT,
        DataType.STRING,
        DataType.BOOL,
        DataType.DATETIME,
    }
)


class RestrictionType(Enum):
    """How a restriction restricts values of a property."""

    VALUE = "value"
    REGEXP = "regexp"
    KEY_VALUE = "key value"
    KEY_REGEXP = "key regexp"

    def __str__(self) -> str:
        return self.value

    @property
    def is_key(self) -> bool:
        """True for restrictions that apply to map keys."""
        return self in (RestrictionType.KEY_VALUE, RestrictionType.KEY_REGEXP)

    @property
    def is_regexp(self) -> bool:
        return self in (RestrictionType.REGEXP, RestrictionType.KEY_REGEXP)


@dataclass(frozen=True)
class TypeDescriptor:
    """Full representation of a property data type.

    Scalar types carry themselves as value type; arrays carry the type of
    their elements and maps carry both key and value types.
    """

    type: DataType = DataType.NULL
    value_type: DataType = DataType.NULL
    key_type: DataType = DataType.NULL

    def __str__(self) -> str:
        if self.type is DataType.ARRAY:
            return f"array-{self.value_type}"
        if self.type is DataType.MAP:
            return f"map-{self.key_type}-{self.value_type}"
        return str(self.type)


@dataclass
class Restriction:
    """A single restriction of a property.

    ``restriction`` is a compiled ``re.Pattern`` for regexp kinds and a value
    of the restricted data type otherwise; ``raw`` keeps the template text.
    """

    data_type: DataType
    kind: RestrictionType
    restriction: Any
    raw: str

    def __str__(self) -> str:
        return self.raw


@dataclass
class TemplateProperty:
    """A property of a node, edge or label type."""

    key: str
    type: DataType = DataType.NULL
    value_type: DataType = DataType.NULL
    key_type: DataType = DataType.NULL
    value_restrictions: list[Restriction] = field(default_factory=list)
    key_restrictions: list[Restriction] = field(default_factory=list)

    @property
    def descriptor(self) -> TypeDescriptor:
        return TypeDescriptor(self.type, self.value_type, self.key_type)


@dataclass
class TemplateEntity:
    """Base class for node and edge type definitions."""

    name: str
    properties: dict[str, TemplateProperty] = field(default_factory=dict)


@dataclass
class TemplateNode(TemplateEntity):
    """Node type definition."""


@dataclass
class TemplateEdge(TemplateEntity):
    """Edge type definition."""


@dataclass
class TemplateConnection:
    """Bound on edges directed from one main node to its subject nodes.

    Limits how many ``edge`` edges ONE main node may have to ANY number of
    ``subject`` nodes. ``label`` names the label the connection was
    expanded from, or is None for connections declared on the node itself.
    """

    main: TemplateNode
    edge: TemplateEdge
    subject: TemplateNode
    min: int = 0
    max: int = INF
    label: str | None = None

    def allows(self, count: int) -> bool:
        """Return True when ``count`` connections satisfy the bounds."""
        return self.min <= count and (self.max == INF or count <= self.max)
