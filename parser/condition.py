"""
MetaDB Condition Parser
=======================
Parses the single-comparison condition language used by pull/set/delete:

    <field> <op> <literal>

    op       : == | != | >= | <= | > | <
    literal  : "quoted text" | 'quoted text' | bare token (e.g. 42, 3.5, abc)

An empty condition matches every row and parses to None.

Operator detection is substring based: operators are tried in the fixed
order below and the first one that occurs anywhere in the text wins; the
text is split on its first occurrence. Field names and values that contain
an operator substring are not supported.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConditionParseError(ValueError):
    """Malformed condition, or a non-numeric literal for a number field."""

    def __init__(self, message: str, condition: str = ""):
        if condition:
            message = f"{message} in condition {condition!r}"
        super().__init__(message)
        self.condition = condition


class Operator(Enum):
    EQ = "=="
    NEQ = "!="
    GTE = ">="
    LTE = "<="
    GT = ">"
    LT = "<"

    @property
    def is_range(self) -> bool:
        return self in (Operator.GT, Operator.GTE, Operator.LT, Operator.LTE)


# Two-character operators come before their one-character prefixes/suffixes
OPERATOR_ORDER = (
    Operator.EQ, Operator.NEQ, Operator.GTE, Operator.LTE, Operator.GT, Operator.LT,
)

_QUOTES = ('"', "'")


@dataclass(frozen=True)
class Condition:
    """A parsed `field op literal` comparison."""
    field: str
    op: Operator
    literal: str
    quoted: bool = False

    def numeric_literal(self) -> float:
        """
        The literal as a number (quotes already removed).
        Raises ConditionParseError if it is not numeric.
        """
        try:
            value = float(self.literal)
        except ValueError:
            raise ConditionParseError(
                f"Field '{self.field}' is a number field but "
                f"{self.literal!r} is not a number", str(self)) from None
        if math.isnan(value):
            raise ConditionParseError(
                f"NaN is not a valid literal for field '{self.field}'", str(self))
        return value

    def __str__(self) -> str:
        literal = f'"{self.literal}"' if self.quoted else self.literal
        return f"{self.field} {self.op.value} {literal}"


def parse_condition(text: Optional[str]) -> Optional[Condition]:
    """
    Parse a condition string.

    Returns None for an empty condition (match all).
    Raises ConditionParseError for malformed input.
    """
    if text is None or not text.strip():
        return None

    for op in OPERATOR_ORDER:
        pos = text.find(op.value)
        if pos == -1:
            continue

        field = text[:pos].strip()
        raw = text[pos + len(op.value):].strip()

        if not field:
            raise ConditionParseError("Missing field name", text)
        if not raw:
            raise ConditionParseError("Missing literal", text)

        literal, quoted = _unquote(raw)
        return Condition(field=field, op=op, literal=literal, quoted=quoted)

    raise ConditionParseError(
        f"No comparison operator found (expected one of "
        f"{', '.join(o.value for o in OPERATOR_ORDER)})", text)


def _unquote(raw: str) -> tuple[str, bool]:
    """Strip one matching pair of surrounding quotes."""
    if len(raw) >= 2 and raw[0] in _QUOTES and raw[-1] == raw[0]:
        return raw[1:-1], True
    return raw, False
