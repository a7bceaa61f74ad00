"""Common exceptions for graph templates and their validation."""

from collections.abc import Iterable
from typing import Any


class StgException(Exception):
    """Base exception for all template and validation errors."""

    def __init__(self, message: str, *args: Any) -> None:
        self.message = message
        super().__init__(message, *args)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Template errors
# ---------------------------------------------------------------------------


class TemplateParseError(StgException):
    """A single template error together with the location it occurred at.

    The location is the nesting path inside the template document, e.g.
    ``template | nodes | Person | properties | age | type``.
    """

    def __init__(self, loc: str, msg: str) -> None:
        self.loc = loc
        self.msg = msg
        super().__init__(f"{loc} >> {msg}")


class TemplateException(StgException):
    """Every error found while building a template, reported at once."""

    def __init__(self, errors: Iterable[TemplateParseError]) -> None:
        self.errors = sorted(errors, key=str)
        super().__init__("\n".join(str(e) for e in self.errors))


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class ValidationError(StgException):
    """Base exception for data that doesn't satisfy a template.

    Context prefixes (e.g. ``"Person"-node``) are prepended while the error
    travels up from the property that failed to the entity that owns it.
    """

    def with_context(self, context: str) -> "ValidationError":
        """Prefix the message with context and return the same error."""
        self.message = f"{context}: {self.message}"
        self.args = (self.message,)
        return self


class UnknownTypeError(ValidationError):
    """The entity type is not declared in the template."""

    def __init__(self, kind: str, type_name: str) -> None:
        self.kind = kind
        self.type_name = type_name
        super().__init__(
            f"\"{type_name}\"-{kind}: there is no such {kind} type in template"
        )


class PropertyKeysError(ValidationError):
    """Base exception for property key sets that don't match the template."""

    def __init__(
        self, message: str, extra: list[str], missing: list[str]
    ) -> None:
        self.extra = extra
        self.missing = missing
        super().__init__(message)


def _quoted(keys: list[str]) -> str:
    return ", ".join(f'"{k}"' for k in keys)


class ExtraPropertyError(PropertyKeysError):
    """The entity has properties the template doesn't declare."""

    def __init__(self, extra: list[str]) -> None:
        super().__init__(
            f"validated entity has extra {_quoted(extra)} properties",
            extra,
            [],
        )


class MissingPropertyError(PropertyKeysError):
    """The entity lacks properties the template declares."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"validated entity doesn't have {_quoted(missing)} properties",
            [],
            missing,
        )


class PropertyKeysMismatchError(ExtraPropertyError, MissingPropertyError):
    """The entity has extra properties and lacks declared ones."""

    def __init__(self, extra: list[str], missing: list[str]) -> None:
        PropertyKeysError.__init__(
            self,
            f"validated entity has extra {_quoted(extra)} properties "
            f"and doesn't have {_quoted(missing)} properties",
            extra,
            missing,
        )


class TypeMismatchError(ValidationError):
    """A property value has the wrong data type."""

    def __init__(self, key: str, value: Any, expected: str) -> None:
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(
            f"\"{key}\"-property: \"{value}\" value doesn't match "
            f"\"{expected}\" data type"
        )


class RestrictionMismatchError(ValidationError):
    """A property value (or map key) satisfies none of its restrictions."""

    def __init__(
        self, key: str, value: Any, restrictions: list[str], what: str = "value"
    ) -> None:
        self.key = key
        self.value = value
        self.restrictions = restrictions
        super().__init__(
            f"\"{key}\"-property: \"{value}\" {what} doesn't match any of "
            f"{_quoted(restrictions)} restrictions"
        )


class UndeclaredConnectionError(ValidationError):
    """No connection rule exists for a (main, subject, edge) triple."""

    def __init__(self, main: str, subject: str, edge: str) -> None:
        self.main = main
        self.subject = subject
        self.edge = edge
        super().__init__(
            f"there is no connection in template with \"{main}\" main node, "
            f"\"{edge}\" edge and \"{subject}\" subject node"
        )


class CardinalityError(ValidationError):
    """Base exception for connection counts outside of the rule bounds."""

    def __init__(
        self, message: str, main: str, subject: str, edge: str, count: int, bound: int
    ) -> None:
        self.main = main
        self.subject = subject
        self.edge = edge
        self.count = count
        self.bound = bound
        super().__init__(message)


class BelowMinimumError(CardinalityError):
    """A main node has fewer connections than the rule minimum."""

    def __init__(
        self, main: str, subject: str, edge: str, count: int, bound: int
    ) -> None:
        super().__init__(
            f"\"{main}\"-node has {count} \"{edge}\"-connections to \"{subject}\" "
            f"nodes which is less than minimum of {bound}",
            main, subject, edge, count, bound,
        )


class AboveMaximumError(CardinalityError):
    """A main node has more connections than the rule maximum."""

    def __init__(
        self, main: str, subject: str, edge: str, count: int, bound: int
    ) -> None:
        super().__init__(
            f"\"{main}\"-node has {count} \"{edge}\"-connections to \"{subject}\" "
            f"nodes which is more than maximum of {bound}",
            main, subject, edge, count, bound,
        )


# ---------------------------------------------------------------------------
# Structural ("unknown" value) errors
# ---------------------------------------------------------------------------


class UnsupportedValueError(ValidationError):
    """The value is neither a mapping nor a record and can't be inspected."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"unknown value: value of type \"{type(value).__name__}\" can't be "
            "evaluated - it's not a mapping or a record"
        )


class NoMatchingTypeError(ValidationError):
    """Neither the value type name nor its fields name a template type."""

    def __init__(self) -> None:
        super().__init__(
            "unknown value: values type name doesn't match any of the "
            "templates nodes or edges"
        )


class StructuralValidationError(ValidationError):
    """The value matched a type name but failed validation as node and edge."""

    def __init__(self, as_node: str, as_edge: str) -> None:
        self.as_node = as_node
        self.as_edge = as_edge
        super().__init__(
            "unknown value: value had failed both validations: "
            f"as node - {as_node}; as edge - {as_edge}"
        )
