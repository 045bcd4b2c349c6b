"""
MetaDB Condition Parser
=======================
Public API for the condition mini-language.

Usage:
    from parser import parse, ConditionParseError

    cond = parse('age >= 10')
    print(cond.field, cond.op, cond.literal)
"""

from typing import Optional

from parser.condition import (
    Condition, ConditionParseError, Operator, OPERATOR_ORDER, parse_condition,
)

__all__ = [
    "Condition", "ConditionParseError", "Operator", "OPERATOR_ORDER",
    "parse", "parse_condition",
]


def parse(text: Optional[str]) -> Optional[Condition]:
    """
    Parse a condition string into a Condition (None = match all).
    Raises ConditionParseError if the condition is malformed.
    """
    return parse_condition(text)
