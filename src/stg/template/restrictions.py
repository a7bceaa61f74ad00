"""Parsing of type descriptors and restrictions from their template text."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from stg.template.types import (
    DataType,
    Restriction,
    RestrictionType,
    TypeDescriptor,
)

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_INT_RE = re.compile(r"^\d+$")
_FLOAT_RE = re.compile(r"^\d+\.\d+$")
_DATETIME_RE = re.compile(r"^\d\d\d\d-\d\d-\d\dT\d\d:\d\d:\d\dZ$")


class RestrictionValueError(ValueError):
    """Raised when a type descriptor or restriction text is invalid."""


def _parse_datetime(raw: str) -> datetime:
    try:
        return datetime.strptime(raw, RFC3339_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise RestrictionValueError(
            '"datetime" restriction doesn\'t match RFC3339 '
            f"(YYYY-MM-DDTHH:MM:SSZ) format: {e}"
        ) from e


@dataclass(frozen=True)
class _Conversion:
    """Check and conversion of restriction text for one scalar data type."""

    check: Callable[[str], bool]
    convert: Callable[[str], Any]


_CONVERSIONS: dict[DataType, _Conversion] = {
    DataType.INT: _Conversion(lambda v: bool(_INT_RE.match(v)), int),
    DataType.FLOAT: _Conversion(lambda v: bool(_FLOAT_RE.match(v)), float),
    DataType.STRING: _Conversion(lambda v: True, str),
    DataType.BOOL: _Conversion(lambda v: v in ("true", "false"), lambda v: v == "true"),
    DataType.DATETIME: _Conversion(lambda v: bool(_DATETIME_RE.match(v)), _parse_datetime),
}


def _scalar_type(name: str) -> DataType:
    """Return the scalar DataType called ``name``, or NULL if there is none."""
    try:
        typ = DataType(name)
    except ValueError:
        return DataType.NULL
    return typ if typ.is_scalar else DataType.NULL


def parse_data_type(descriptor: str) -> TypeDescriptor:
    """
    Parse a textual type descriptor like ``int``, ``array-string`` or
    ``map-string-datetime``.

    Raises:
        RestrictionValueError: If the descriptor is malformed.
    """
    typs = descriptor.split("-")
    base, subtypes = typs[0], typs[1:]

    scalar = _scalar_type(base)
    if scalar is not DataType.NULL:
        if subtypes:
            raise RestrictionValueError(f"data type \"{base}\" can't have subtypes")
        return TypeDescriptor(scalar, scalar)

    if base == "array":
        if len(subtypes) != 1:
            raise RestrictionValueError(
                'data type "array" must have exactly 1 subtype'
            )
        value_type = _scalar_type(subtypes[0])
        if value_type is DataType.NULL:
            raise RestrictionValueError(
                f'data type "array" has wrong value data subtype "{subtypes[0]}"'
            )
        return TypeDescriptor(DataType.ARRAY, value_type)

    if base == "map":
        if len(subtypes) != 2:
            raise RestrictionValueError(
                'data type "map" must have exactly 2 subtypes - '
                "1 for keys and 1 for values"
            )
        key_type, value_type = _scalar_type(subtypes[0]), _scalar_type(subtypes[1])
        problems = []
        if key_type is DataType.NULL:
            problems.append(
                f'data type "map" has wrong key data subtype "{subtypes[0]}"'
            )
        if value_type is DataType.NULL:
            problems.append(
                f'data type "map" has wrong value data subtype "{subtypes[1]}"'
            )
        if problems:
            raise RestrictionValueError("; ".join(problems))
        return TypeDescriptor(DataType.MAP, value_type, key_type)

    raise RestrictionValueError(f"undefined data type \"{descriptor}\"")


def build_restriction(
    descriptor: TypeDescriptor, kind: RestrictionType, raw: str
) -> Restriction:
    """
    Build a restriction of ``kind`` from its template text.

    Args:
        descriptor: Type of the restricted property.
        kind: Restriction kind.
        raw: Restriction text as written in the template.

    Returns:
        The restriction with a compiled pattern or a typed value.

    Raises:
        RestrictionValueError: If the restriction conflicts with the property
            type or can't be converted to it.
    """
    if descriptor.type is DataType.NULL:
        raise RestrictionValueError(
            f"restriction \"{raw}\" can't be inferred because of undefined or "
            "wrong data type of restricted property"
        )

    data_type = descriptor.value_type
    if kind.is_key:
        if descriptor.type is not DataType.MAP:
            raise RestrictionValueError(
                f"data type \"{descriptor}\" can't have key restrictions"
            )
        data_type = descriptor.key_type

    if kind.is_regexp:
        try:
            pattern = re.compile(raw)
        except re.error as e:
            raise RestrictionValueError(
                f"restriction \"{raw}\" has wrong regexp schema"
            ) from e
        return Restriction(data_type, kind, pattern, raw)

    conversion = _CONVERSIONS[data_type]
    if not conversion.check(raw):
        raise RestrictionValueError(
            f"restriction \"{raw}\" doesn't match \"{data_type}\" data type"
        )
    return Restriction(data_type, kind, conversion.convert(raw), raw)


def as_utc(value: datetime) -> datetime:
    """Read naive datetimes as UTC so every datetime compares as an instant."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def canonical_text(value: Any, data_type: DataType) -> str:
    """Text form of a scalar value that regexp restrictions are matched against."""
    if data_type is DataType.BOOL:
        return "true" if value else "false"
    if data_type is DataType.INT:
        return str(int(value))
    if data_type is DataType.FLOAT:
        text = repr(float(value))
        if "e" in text or "E" in text:
            # shortest round-trip digits, without exponent
            text = format(Decimal(text), "f")
        return text
    if data_type is DataType.DATETIME and isinstance(value, datetime):
        return as_utc(value).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    return str(value)


def find_contradiction(
    regexp: Restriction, restrictions: list[Restriction]
) -> Restriction | None:
    """Return the first value restriction that the regexp restriction rejects."""
    if not isinstance(regexp.restriction, re.Pattern):
        return None
    for restr in restrictions:
        if restr.kind.is_regexp:
            continue
        text = canonical_text(restr.restriction, restr.data_type)
        if not regexp.restriction.search(text):
            return restr
    return None
