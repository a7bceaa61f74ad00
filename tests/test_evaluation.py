"""Tests for property key matching and property value evaluation."""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from fractions import Fraction

import pytest

from stg.common.exceptions import (
    ExtraPropertyError,
    MissingPropertyError,
    PropertyKeysMismatchError,
    RestrictionMismatchError,
    TypeMismatchError,
)
from stg.template.evaluation import (
    coerce_scalar,
    evaluate_property,
    evaluate_property_keys,
)
from stg.template.restrictions import build_restriction, parse_data_type
from stg.template.types import DataType, RestrictionType, TemplateProperty


def make_property(key: str, descriptor: str, **restrictions: list[str]) -> TemplateProperty:
    """Build a property the way the template parser does."""
    kinds = {
        "values": RestrictionType.VALUE,
        "regexps": RestrictionType.REGEXP,
        "key_values": RestrictionType.KEY_VALUE,
        "key_regexps": RestrictionType.KEY_REGEXP,
    }
    typ = parse_data_type(descriptor)
    prop = TemplateProperty(key, typ.type, typ.value_type, typ.key_type)
    for name, raws in restrictions.items():
        for raw in raws:
            restr = build_restriction(typ, kinds[name], raw)
            if restr.kind.is_key:
                prop.key_restrictions.append(restr)
            else:
                prop.value_restrictions.append(restr)
    return prop


class TestEvaluatePropertyKeys:
    """Tests for case-insensitive key matching."""

    def test_keys_match_case_insensitively(self) -> None:
        keys = evaluate_property_keys(["name", "Age"], ["NAME", "age"])
        assert keys == {"NAME": "name", "age": "Age"}

    def test_extra_key(self) -> None:
        with pytest.raises(ExtraPropertyError) as exc_info:
            evaluate_property_keys(["name"], ["name", "nick"])
        assert exc_info.value.extra == ["nick"]
        assert not isinstance(exc_info.value, MissingPropertyError)

    def test_missing_keys(self) -> None:
        with pytest.raises(MissingPropertyError) as exc_info:
            evaluate_property_keys(["name", "age", "birth"], ["name"])
        assert exc_info.value.missing == ["age", "birth"]
        assert '"age", "birth"' in str(exc_info.value)

    def test_renamed_key_names_both(self) -> None:
        """Test that a renamed key is reported as both extra and missing."""
        with pytest.raises(PropertyKeysMismatchError) as exc_info:
            evaluate_property_keys(["name", "age"], ["name", "years"])

        error = exc_info.value
        assert isinstance(error, ExtraPropertyError)
        assert isinstance(error, MissingPropertyError)
        assert (error.extra, error.missing) == (["years"], ["age"])
        assert '"years"' in str(error) and '"age"' in str(error)


class TestCoerceScalar:
    """Tests for concrete scalar type checks."""

    @pytest.mark.parametrize(
        "value,data_type,ok",
        [
            (1, DataType.INT, True),
            (True, DataType.INT, False),
            (1.0, DataType.INT, False),
            (1.5, DataType.FLOAT, True),
            (1, DataType.FLOAT, False),
            (Fraction(1, 2), DataType.FLOAT, True),
            ("1", DataType.INT, False),
            ("text", DataType.STRING, True),
            (False, DataType.BOOL, True),
            (0, DataType.BOOL, False),
            (datetime(2020, 1, 1), DataType.DATETIME, True),
            ("2020-01-01T00:00:00Z", DataType.DATETIME, False),
        ],
    )
    def test_types(self, value, data_type: DataType, ok: bool) -> None:
        assert coerce_scalar(value, data_type)[1] is ok

    def test_real_widened_to_float(self) -> None:
        value, ok = coerce_scalar(Fraction(5, 2), DataType.FLOAT)
        assert ok
        assert type(value) is float and value == 2.5


class TestScalarProperties:
    """Tests for scalar property evaluation."""

    def test_no_restrictions_pass(self) -> None:
        evaluate_property(make_property("age", "int"), 35)

    def test_wrong_type(self) -> None:
        with pytest.raises(TypeMismatchError) as exc_info:
            evaluate_property(make_property("age", "int"), "35")
        assert str(exc_info.value) == '"age"-property: "35" value doesn\'t match "int" data type'

    def test_value_restriction(self) -> None:
        """Test that age 34 passes a values: [34] restriction and 35 fails naming 34."""
        prop = make_property("age", "int", values=["34"])
        evaluate_property(prop, 34)

        with pytest.raises(RestrictionMismatchError) as exc_info:
            evaluate_property(prop, 35)
        assert '"34"' in str(exc_info.value)
        assert exc_info.value.restrictions == ["34"]

    def test_restrictions_are_disjunctive(self) -> None:
        """Test that matching one restriction of several is enough."""
        prop = make_property("name", "string", values=["Jora"], regexps=["^V"])
        evaluate_property(prop, "Jora")
        evaluate_property(prop, "Vasya")
        with pytest.raises(RestrictionMismatchError):
            evaluate_property(prop, "Petya")

    def test_regexp_on_canonical_text(self) -> None:
        prop = make_property("ok", "bool", regexps=["^true$"])
        evaluate_property(prop, True)
        with pytest.raises(RestrictionMismatchError, match='"false" value'):
            evaluate_property(prop, False)

    def test_float_value_restriction(self) -> None:
        prop = make_property("age", "float", values=["22.7"])
        evaluate_property(prop, 22.7)
        with pytest.raises(RestrictionMismatchError):
            evaluate_property(prop, 22.8)

    def test_datetime_compared_as_instants(self) -> None:
        """Test that naive datetimes are read as UTC."""
        prop = make_property("birth", "datetime", values=["1111-11-11T11:11:11Z"])
        evaluate_property(prop, datetime(1111, 11, 11, 11, 11, 11))
        evaluate_property(prop, datetime(1111, 11, 11, 11, 11, 11, tzinfo=timezone.utc))
        with pytest.raises(RestrictionMismatchError):
            evaluate_property(prop, datetime(1111, 11, 11, 11, 11, 12))


class TestArrayProperties:
    """Tests for array property evaluation."""

    def test_empty_array(self) -> None:
        evaluate_property(make_property("things", "array-string", values=["thing"]), [])

    def test_string_is_not_an_array(self) -> None:
        with pytest.raises(TypeMismatchError, match='"array-string" data type'):
            evaluate_property(make_property("things", "array-string"), "thing")

    def test_first_element_type_checked(self) -> None:
        with pytest.raises(TypeMismatchError):
            evaluate_property(make_property("things", "array-int"), ["1", 2])

    def test_every_element_restricted(self) -> None:
        """Test that each element must satisfy some restriction."""
        prop = make_property("things", "array-string", values=["thing", "other thing"])
        evaluate_property(prop, ["thing", "other thing", "thing"])
        evaluate_property(prop, ("thing",))

        with pytest.raises(RestrictionMismatchError) as exc_info:
            evaluate_property(prop, ["thing", "stuff", "junk"])
        assert '"stuff" array-value' in str(exc_info.value)


class TestMapProperties:
    """Tests for map property evaluation."""

    def test_not_a_mapping(self) -> None:
        with pytest.raises(TypeMismatchError, match='"map-string-int" data type'):
            evaluate_property(make_property("m", "map-string-int"), [("a", 1)])

    def test_first_pair_type_checked(self) -> None:
        with pytest.raises(TypeMismatchError):
            evaluate_property(make_property("m", "map-string-int"), {1: 1})

    def test_values_and_keys_restricted(self) -> None:
        prop = make_property(
            "adresses",
            "map-string-string",
            regexps=["^house"],
            key_regexps=["^street \\d+$"],
        )
        evaluate_property(prop, OrderedDict([("street 1", "house 12"), ("street 2", "house")]))

        with pytest.raises(RestrictionMismatchError) as exc_info:
            evaluate_property(prop, {"street 1": "house", "street 2": "flat"})
        assert 'map-value under "street 2" key' in str(exc_info.value)

        with pytest.raises(RestrictionMismatchError) as exc_info:
            evaluate_property(prop, {"street 1": "house", "avenue": "house"})
        assert '"avenue" map-key' in str(exc_info.value)
