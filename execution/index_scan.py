"""
MetaDB Index Scan
=================
Evaluates a parsed Condition against a table's indexes and returns the
matching row ids in ascending order. No row is ever scanned: every
supported comparison is answered by the field's index.

  NUMBER field:  ==  exact key lookup
                 >  >=  <  <=  range scan over ordered keys
                 !=  rows having the field minus the == rows
  TEXT field:    ==  exact key lookup
                 !=  rows having the field minus the == rows
                 anything else -> UnsupportedOperatorError

An unknown field matches nothing (no error), whatever the operator.
Rows that lack the field never match, not even with !=.
"""

from typing import TYPE_CHECKING, Iterable, List, Optional, Set

from parser.condition import Condition, Operator
from storage.types import FieldType

if TYPE_CHECKING:
    from storage.table import Table


class UnsupportedOperatorError(ValueError):
    """The operator cannot be applied to the field's type."""
    pass


def select_row_ids(table: "Table", condition: Optional[Condition]) -> List[int]:
    """Row ids matching the condition, ascending."""
    if condition is None:
        return table.row_ids()

    field_type = table.field_types.get(condition.field)
    if field_type is None:
        return []

    if field_type == FieldType.NUMBER:
        matched = _scan_numeric(table, condition)
    else:
        matched = _scan_text(table, condition)
    return sorted(matched)


def _scan_numeric(table: "Table", condition: Condition) -> Set[int]:
    key = condition.numeric_literal()
    idx = table.indexes.numeric(condition.field)
    if idx is None:
        return set()

    op = condition.op
    if op == Operator.EQ:
        return idx.search(key)
    if op == Operator.NEQ:
        return idx.row_ids() - idx.search(key)

    if op in (Operator.GT, Operator.GTE):
        postings = idx.range_scan(low=key, low_inclusive=(op == Operator.GTE))
    else:
        postings = idx.range_scan(high=key, high_inclusive=(op == Operator.LTE))
    return _union(rows for _, rows in postings)


def _scan_text(table: "Table", condition: Condition) -> Set[int]:
    op = condition.op
    if op.is_range:
        raise UnsupportedOperatorError(
            f"Operator '{op.value}' is not supported on text field "
            f"'{condition.field}' (use == or !=)")

    idx = table.indexes.text(condition.field)
    if idx is None:
        return set()

    if op == Operator.EQ:
        return idx.search(condition.literal)
    return idx.row_ids() - idx.search(condition.literal)


def _union(sets: Iterable[Set[int]]) -> Set[int]:
    result: Set[int] = set()
    for rows in sets:
        result |= rows
    return result
