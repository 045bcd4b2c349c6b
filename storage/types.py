"""
MetaDB Field Type System
========================
Defines the two field types a record value may take: NUMBER and TEXT.
Provides type inference from Python values, coercion to an already
established field type, and the key form used by the indexes.

A table has no declared schema. The first value ever stored under a field
name fixes that field's type for the whole table; later values of the
other kind are coerced to it or rejected.

Python mapping:
  NUMBER  <->  int / float   (bool is NOT a number)
  TEXT    <->  str
"""

import math
from enum import Enum
from typing import Any, Union


FieldValue = Union[int, float, str]


class TypeMismatchError(ValueError):
    """A value cannot be represented as the field's established type."""
    pass


class FieldType(Enum):
    """Supported field types in MetaDB."""
    NUMBER = "number"
    TEXT = "text"


# ─── Classification ─────────────────────────────────────────────────────────

def is_number(value: Any) -> bool:
    """Return True for int/float values (bool excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_type(value: Any) -> FieldType:
    """
    Infer the field type of a value seen for the first time.
    Raises TypeMismatchError for anything that is neither number nor text.
    """
    if is_number(value):
        _reject_nan(value)
        return FieldType.NUMBER
    if isinstance(value, str):
        return FieldType.TEXT
    raise TypeMismatchError(
        f"Unsupported value {value!r} ({type(value).__name__}): "
        f"field values must be numbers or text")


# ─── Coercion ───────────────────────────────────────────────────────────────

def coerce(value: Any, field_type: FieldType) -> FieldValue:
    """
    Convert a value to the representation of the given field type.

    NUMBER: numbers pass through (ints must fit a float index key),
            numeric text is parsed as float.
    TEXT:   text passes through, numbers are rendered as text.

    Raises TypeMismatchError when the conversion is impossible.
    """
    if not is_number(value) and not isinstance(value, str):
        raise TypeMismatchError(
            f"Unsupported value {value!r} ({type(value).__name__}): "
            f"field values must be numbers or text")

    if field_type == FieldType.NUMBER:
        if is_number(value):
            _reject_nan(value)
            try:
                float(value)
            except OverflowError:
                raise TypeMismatchError(
                    f"Number with {len(str(value))} digits is too large "
                    f"for a number field") from None
            return value
        try:
            number = float(value.strip())
        except ValueError:
            raise TypeMismatchError(
                f"Cannot store text {value!r} in a number field") from None
        _reject_nan(number)
        return number

    if field_type == FieldType.TEXT:
        if isinstance(value, str):
            return value
        return format_number(value)

    raise TypeMismatchError(f"Unknown field type: {field_type}")


def index_key(value: FieldValue, field_type: FieldType) -> Union[float, str]:
    """Key under which an already coerced value is indexed."""
    if field_type == FieldType.NUMBER:
        return float(value)
    return str(value)


def format_number(value: Union[int, float]) -> str:
    """Render a number as text; integral floats lose the trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def type_from_string(type_str: str) -> FieldType:
    """Convert a string like 'number' to a FieldType enum member."""
    normalized = type_str.strip().lower()
    try:
        return FieldType(normalized)
    except ValueError:
        raise ValueError(f"Unknown field type: {type_str!r}. "
                         f"Valid types: {[t.value for t in FieldType]}") from None


def _reject_nan(value: Union[int, float]) -> None:
    # NaN has no position in an ordered index
    if isinstance(value, float) and math.isnan(value):
        raise TypeMismatchError("NaN cannot be stored in a number field")
