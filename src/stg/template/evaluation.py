"""Evaluation of entity property keys and property values."""

from __future__ import annotations

import numbers
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from stg.common.exceptions import (
    ExtraPropertyError,
    MissingPropertyError,
    PropertyKeysMismatchError,
    RestrictionMismatchError,
    TypeMismatchError,
    ValidationError,
)
from stg.template.restrictions import as_utc, canonical_text
from stg.template.types import DataType, Restriction, TemplateEntity, TemplateProperty


def evaluate_property_keys(
    template_keys: Iterable[str], value_keys: Iterable[Any]
) -> dict[Any, str]:
    """
    Match value property keys with template property keys case-insensitively.

    Returns:
        Value keys mapped to the template keys they stand for.

    Raises:
        ExtraPropertyError: If the value has keys the template lacks.
        MissingPropertyError: If the template has keys the value lacks.
        PropertyKeysMismatchError: If both of the above happen at once.
    """
    remaining = {k.lower(): k for k in template_keys}
    valid: dict[Any, str] = {}
    extra: list[str] = []
    for key in value_keys:
        template_key = remaining.pop(str(key).lower(), None)
        if template_key is None:
            extra.append(str(key))
        else:
            valid[key] = template_key

    missing = sorted(remaining.values())
    if extra and missing:
        raise PropertyKeysMismatchError(extra, missing)
    if extra:
        raise ExtraPropertyError(extra)
    if missing:
        raise MissingPropertyError(missing)
    return valid


def evaluate_entity(
    definition: TemplateEntity, values: Mapping[Any, Any]
) -> None:
    """Check property keys of an entity, then every property value."""
    keys = evaluate_property_keys(definition.properties, values.keys())
    for value_key, template_key in keys.items():
        evaluate_property(definition.properties[template_key], values[value_key])


# ---------------------------------------------------------------------------
# Property values
# ---------------------------------------------------------------------------


def coerce_scalar(value: Any, data_type: DataType) -> tuple[Any, bool]:
    """
    Check that ``value`` has the scalar ``data_type``.

    Returns:
        The value (non-integral reals widened to float) and True on success.
    """
    if data_type is DataType.INT:
        if isinstance(value, numbers.Integral) and not isinstance(value, bool):
            return int(value), True
    elif data_type is DataType.FLOAT:
        if isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral):
            return float(value), True
    elif data_type is DataType.STRING:
        if isinstance(value, str):
            return value, True
    elif data_type is DataType.BOOL:
        if isinstance(value, bool):
            return value, True
    elif data_type is DataType.DATETIME:
        if isinstance(value, datetime):
            return value, True
    return value, False


def _matches(restr: Restriction, value: Any) -> bool:
    value, ok = coerce_scalar(value, restr.data_type)
    if not ok:
        return False
    if restr.kind.is_regexp:
        return restr.restriction.search(canonical_text(value, restr.data_type)) is not None
    if restr.data_type is DataType.DATETIME:
        return as_utc(value) == restr.restriction
    return value == restr.restriction


def _display(value: Any, data_type: DataType) -> str:
    if coerce_scalar(value, data_type)[1]:
        return canonical_text(value, data_type)
    return str(value)


def _check_restrictions(
    key: str,
    value: Any,
    data_type: DataType,
    restrictions: list[Restriction],
    what: str = "value",
) -> None:
    """Pass when there are no restrictions or at least one of them matches."""
    if not restrictions or any(_matches(r, value) for r in restrictions):
        return
    raise RestrictionMismatchError(
        key, _display(value, data_type), [r.raw for r in restrictions], what
    )


def evaluate_property(prop: TemplateProperty, value: Any) -> None:
    """
    Validate a property value against its template definition.

    Raises:
        TypeMismatchError: If the value has the wrong data type.
        RestrictionMismatchError: If a value, element or key satisfies none
            of its restrictions.
    """
    if prop.type.is_scalar:
        _evaluate_scalar(prop, value)
    elif prop.type is DataType.ARRAY:
        _evaluate_array(prop, value)
    elif prop.type is DataType.MAP:
        _evaluate_map(prop, value)
    else:
        raise ValidationError(
            f"\"{prop.key}\"-property: value doesn't match any possible data type"
        )


def _evaluate_scalar(prop: TemplateProperty, value: Any) -> None:
    coerced, ok = coerce_scalar(value, prop.type)
    if not ok:
        raise TypeMismatchError(prop.key, value, str(prop.type))
    _check_restrictions(prop.key, coerced, prop.type, prop.value_restrictions)


def _evaluate_array(prop: TemplateProperty, value: Any) -> None:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeMismatchError(prop.key, value, str(prop.descriptor))
    if value and not coerce_scalar(value[0], prop.value_type)[1]:
        raise TypeMismatchError(prop.key, value, str(prop.descriptor))

    for item in value:
        _check_restrictions(
            prop.key, item, prop.value_type, prop.value_restrictions, "array-value"
        )


def _evaluate_map(prop: TemplateProperty, value: Any) -> None:
    if not isinstance(value, Mapping):
        raise TypeMismatchError(prop.key, value, str(prop.descriptor))
    if value:
        first_key, first_value = next(iter(value.items()))
        if not (
            coerce_scalar(first_key, prop.key_type)[1]
            and coerce_scalar(first_value, prop.value_type)[1]
        ):
            raise TypeMismatchError(prop.key, value, str(prop.descriptor))

    for k, v in value.items():
        _check_restrictions(
            prop.key,
            v,
            prop.value_type,
            prop.value_restrictions,
            f"map-value under \"{k}\" key",
        )
        _check_restrictions(
            prop.key, k, prop.key_type, prop.key_restrictions, "map-key"
        )
