"""
MetaDB Table (Record Store)
===========================
Owns the rows of one table, infers and tracks each field's type,
maintains the per-field indexes, and implements filtered
query / update / delete.

Row identity:
  Every inserted row gets a stable row id from a monotonic counter.
  Ids are never reused and never renumbered: deleting a row removes it
  from storage and from the indexes, and every other row keeps its id.
  Rows are stored in a dict keyed by row id, so ascending id order is
  insertion order.

Failure atomicity:
  insert/update validate and coerce every value, and update/delete
  evaluate their condition, before the first mutation. An operation that
  raises leaves rows and indexes untouched.

Concurrency:
  Mutations hold the table's RLock for their whole duration. A RowSet
  must not be iterated while another thread mutates the same table.
"""

import logging
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from execution.index_scan import select_row_ids
from indexing.index_manager import IndexSet
from parser.condition import Condition, parse_condition
from storage.schema import FieldSchema
from storage.types import FieldType, FieldValue, coerce, infer_type

logger = logging.getLogger(__name__)

Record = Dict[str, FieldValue]
ConditionLike = Union[str, Condition, None]


class RowSet:
    """
    Lazy, restartable result of a query.

    The condition is evaluated when the RowSet is built; iterating it
    fetches the matching rows (as copies) in ascending row id order.
    Rows deleted in the meantime are skipped.
    """

    def __init__(self, table: "Table", row_ids: List[int]):
        self._table = table
        self._row_ids = row_ids

    @property
    def row_ids(self) -> List[int]:
        return list(self._row_ids)

    def __iter__(self) -> Iterator[Record]:
        for row_id in self._row_ids:
            record = self._table.get(row_id)
            if record is not None:
                yield record

    def __len__(self) -> int:
        return len(self._row_ids)

    def __bool__(self) -> bool:
        return bool(self._row_ids)

    def __repr__(self) -> str:
        return f"RowSet(table='{self._table.name}', rows={len(self._row_ids)})"


class Table:
    """
    A named collection of sparse, dynamically typed records.

    Provides:
    - insert(): Append a record, returns its row id
    - query(): Rows matching a condition (lazy RowSet)
    - update(): Set one field on every matching row, returns count
    - delete(): Remove every matching row, returns count
    - get(): Fetch a row by id
    - verify_indexes(): Report index/row inconsistencies
    """

    def __init__(self, name: str):
        self._name = name
        self._rows: Dict[int, Record] = {}
        self._schema = FieldSchema()
        self._indexes = IndexSet()
        self._next_row_id = 0
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def field_types(self) -> FieldSchema:
        return self._schema

    @property
    def indexes(self) -> IndexSet:
        return self._indexes

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def next_row_id(self) -> int:
        return self._next_row_id

    def __len__(self) -> int:
        return len(self._rows)

    # ─── Row access ─────────────────────────────────────────────────

    def get(self, row_id: int) -> Optional[Record]:
        """Return a copy of the row, or None if it does not exist."""
        record = self._rows.get(row_id)
        return dict(record) if record is not None else None

    def row_ids(self) -> List[int]:
        """Live row ids, ascending."""
        return list(self._rows)

    # ─── Insert ─────────────────────────────────────────────────────

    def insert(self, record: Mapping[str, Any]) -> int:
        """
        Append a record and index all of its fields.
        Returns the new row id.
        Raises TypeMismatchError if a value cannot take its field's type.
        """
        with self._lock:
            row_id = self._next_row_id
            stored = self._append(record, row_id)
            self._indexes.add_row(row_id, stored, self._schema)
            return row_id

    def _append(self, record: Mapping[str, Any], row_id: int) -> Record:
        """
        Coerce, declare new fields and store under row_id, which must be
        at least next_row_id. Does not touch indexes.
        """
        if not isinstance(record, Mapping):
            raise TypeError(f"Record must be a mapping, got {type(record).__name__}")
        types: Dict[str, FieldType] = {}
        stored: Record = {}
        for field, value in record.items():
            field_type = self._schema.get(field) or infer_type(value)
            stored[field] = coerce(value, field_type)
            types[field] = field_type

        for field, field_type in types.items():
            self._schema.declare(field, field_type)
        self._rows[row_id] = stored
        self._next_row_id = row_id + 1
        return stored

    # ─── Query ──────────────────────────────────────────────────────

    def query(self, condition: ConditionLike = None) -> RowSet:
        """
        Rows matching the condition, in ascending row id order.

        The condition is a string ('age >= 10'), a parsed Condition, or
        empty/None to match every row.
        """
        return RowSet(self, self._match(condition))

    def _match(self, condition: ConditionLike) -> List[int]:
        if isinstance(condition, Condition):
            parsed = condition
        else:
            parsed = parse_condition(condition)
        return select_row_ids(self, parsed)

    # ─── Update ─────────────────────────────────────────────────────

    def update(self, condition: ConditionLike, field: str, value: Any) -> int:
        """
        Set `field` to `value` on every matching row.
        Returns the number of rows updated. Row ids do not change.
        """
        with self._lock:
            row_ids = self._match(condition)
            field_type = self._schema.get(field) or infer_type(value)
            new_value = coerce(value, field_type)
            if not row_ids:
                return 0

            self._schema.declare(field, field_type)
            for row_id in row_ids:
                record = self._rows[row_id]
                if field in record:
                    self._indexes.remove(field, field_type, record[field], row_id)
                record[field] = new_value
                self._indexes.add(field, field_type, new_value, row_id)
            return len(row_ids)

    # ─── Delete ─────────────────────────────────────────────────────

    def delete(self, condition: ConditionLike = None) -> int:
        """
        Remove every matching row and its index entries.
        Returns the number of rows removed.
        """
        with self._lock:
            row_ids = self._match(condition)
            for row_id in row_ids:
                record = self._rows.pop(row_id)
                self._indexes.remove_row(row_id, record, self._schema)
            if row_ids:
                logger.debug("deleted %d row(s) from '%s'", len(row_ids), self._name)
            return len(row_ids)

    # ─── Consistency ────────────────────────────────────────────────

    def verify_indexes(self) -> List[str]:
        """Check index soundness and completeness. Empty list = OK."""
        return self._indexes.verify(self._rows, self._schema)

    # ─── Persistence ────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Serialize rows (id order), their ids and field types. Indexes are derived."""
        return {
            "name": self._name,
            "rows": [dict(record) for record in self._rows.values()],
            "row_ids": list(self._rows),
            "next_row_id": self._next_row_id,
            "field_types": self._schema.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict, name: Optional[str] = None) -> "Table":
        """
        Rebuild a table from its serialized form.
        `name` overrides the stored name (the catalog key is authoritative).
        Rows keep their stored ids; without "row_ids" they get 0..n-1.
        Indexes are rebuilt.
        Raises ValueError/TypeMismatchError on inconsistent data.
        """
        table = cls(name if name is not None else d["name"])
        table._schema = FieldSchema.from_dict(d.get("field_types", {}))
        rows = d.get("rows", [])
        row_ids = d.get("row_ids")
        if row_ids is None:
            row_ids = list(range(len(rows)))
        _check_row_ids(row_ids, len(rows))

        for row_id, record in zip(row_ids, rows):
            if not isinstance(record, dict):
                raise ValueError(f"Row is not an object: {record!r}")
            table._append(record, row_id)

        next_row_id = d.get("next_row_id", table._next_row_id)
        if (not isinstance(next_row_id, int) or isinstance(next_row_id, bool)
                or next_row_id < table._next_row_id):
            raise ValueError(f"Invalid next_row_id: {next_row_id!r}")
        table._next_row_id = next_row_id
        table._indexes.rebuild(table._rows, table._schema)
        return table

    def __repr__(self) -> str:
        return (f"Table(name='{self._name}', rows={len(self._rows)}, "
                f"fields={len(self._schema)})")


def _check_row_ids(row_ids, row_count: int) -> None:
    """Stored ids must be strictly ascending non-negative ints, one per row."""
    if not isinstance(row_ids, list) or len(row_ids) != row_count:
        raise ValueError("row_ids must be a list with one id per row")
    previous = -1
    for row_id in row_ids:
        if not isinstance(row_id, int) or isinstance(row_id, bool) or row_id <= previous:
            raise ValueError(f"row_ids must be ascending integers, got {row_id!r}")
        previous = row_id
