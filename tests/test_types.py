"""
MetaDB Field Type Tests
=======================
Type inference, coercion to an established field type, index keys,
and the FieldSchema mapping.
"""

import math

import pytest

from storage.types import (
    FieldType, TypeMismatchError, coerce, format_number, index_key,
    infer_type, is_number, type_from_string,
)
from storage.schema import FieldSchema


class TestInference:

    @pytest.mark.parametrize("value", [0, 42, -3, 2.5, 1e9])
    def test_numbers(self, value):
        assert infer_type(value) == FieldType.NUMBER

    @pytest.mark.parametrize("value", ["", "abc", "42"])
    def test_text(self, value):
        """Numeric-looking text is still text when seen first."""
        assert infer_type(value) == FieldType.TEXT

    @pytest.mark.parametrize("value", [None, True, False, [1], {"a": 1}])
    def test_unsupported(self, value):
        with pytest.raises(TypeMismatchError):
            infer_type(value)

    def test_nan_rejected(self):
        with pytest.raises(TypeMismatchError, match="NaN"):
            infer_type(float("nan"))

    def test_bool_is_not_number(self):
        assert is_number(1)
        assert not is_number(True)


class TestCoercion:

    def test_number_passthrough(self):
        assert coerce(7, FieldType.NUMBER) == 7
        assert isinstance(coerce(7, FieldType.NUMBER), int)
        assert coerce(2.5, FieldType.NUMBER) == 2.5

    def test_numeric_text_to_number(self):
        assert coerce("12", FieldType.NUMBER) == 12.0
        assert coerce(" -3.5 ", FieldType.NUMBER) == -3.5

    def test_int_too_large_for_index_key(self):
        with pytest.raises(TypeMismatchError, match="too large"):
            coerce(10 ** 400, FieldType.NUMBER)
        assert coerce(2 ** 60, FieldType.NUMBER) == 2 ** 60

    def test_non_numeric_text_to_number(self):
        with pytest.raises(TypeMismatchError, match="number field"):
            coerce("twelve", FieldType.NUMBER)

    def test_nan_text_to_number(self):
        with pytest.raises(TypeMismatchError):
            coerce("nan", FieldType.NUMBER)

    def test_text_passthrough(self):
        assert coerce("abc", FieldType.TEXT) == "abc"

    def test_number_to_text(self):
        assert coerce(5, FieldType.TEXT) == "5"
        assert coerce(10.0, FieldType.TEXT) == "10"
        assert coerce(2.5, FieldType.TEXT) == "2.5"

    @pytest.mark.parametrize("field_type", list(FieldType))
    def test_unsupported_values(self, field_type):
        for value in (None, True, [1, 2]):
            with pytest.raises(TypeMismatchError):
                coerce(value, field_type)


class TestIndexKey:

    def test_number_key_is_float(self):
        assert index_key(5, FieldType.NUMBER) == 5.0
        assert isinstance(index_key(5, FieldType.NUMBER), float)

    def test_text_key(self):
        assert index_key("x", FieldType.TEXT) == "x"

    def test_format_number(self):
        assert format_number(3) == "3"
        assert format_number(3.0) == "3"
        assert format_number(0.1) == "0.1"
        assert format_number(math.inf) == "inf"

    def test_type_from_string(self):
        assert type_from_string("NUMBER") == FieldType.NUMBER
        assert type_from_string(" text ") == FieldType.TEXT
        with pytest.raises(ValueError, match="Unknown field type"):
            type_from_string("blob")


class TestFieldSchema:

    def test_declare_first_sighting_wins(self):
        schema = FieldSchema()
        assert schema.declare("age", FieldType.NUMBER) == FieldType.NUMBER
        assert schema.declare("age", FieldType.TEXT) == FieldType.NUMBER
        assert schema.get("age") == FieldType.NUMBER

    def test_unknown_field(self):
        schema = FieldSchema()
        assert schema.get("missing") is None
        assert "missing" not in schema

    def test_dict_roundtrip(self):
        schema = FieldSchema()
        schema.declare("name", FieldType.TEXT)
        schema.declare("age", FieldType.NUMBER)
        d = schema.to_dict()
        assert d == {"name": "text", "age": "number"}
        assert FieldSchema.from_dict(d) == schema

    def test_as_dict_is_a_copy(self):
        schema = FieldSchema()
        schema.declare("a", FieldType.TEXT)
        copy = schema.as_dict()
        copy["a"] = FieldType.NUMBER
        assert schema.get("a") == FieldType.TEXT
