"""
MetaDB Index Manager
====================
Index lifecycle for one table: every field gets an index the first time it
is seen, chosen by the field's type (NUMBER -> NumericIndex,
TEXT -> TextIndex).

Indexes are derived data. They are never persisted; rebuild() derives them
from the rows after a load, and verify() checks them against the rows.

Consistency rule (checked by verify):
  row id R is listed under key K in field F's index
      iff
  row R is live, has field F, and index_key(row[F]) == K
"""

import logging
from typing import Dict, List, Mapping, Optional, Union

from indexing.numeric_index import NumericIndex
from indexing.text_index import TextIndex
from storage.schema import FieldSchema
from storage.types import FieldType, index_key

logger = logging.getLogger(__name__)

Rows = Mapping[int, Mapping[str, object]]


class IndexSet:
    """Numeric and text indexes of a single table, keyed by field name."""

    def __init__(self):
        self._numeric: Dict[str, NumericIndex] = {}
        self._text: Dict[str, TextIndex] = {}

    def numeric(self, field: str) -> Optional[NumericIndex]:
        return self._numeric.get(field)

    def text(self, field: str) -> Optional[TextIndex]:
        return self._text.get(field)

    def get(self, field: str, field_type: FieldType) -> Union[NumericIndex, TextIndex]:
        """Return the field's index, creating it on first use."""
        if field_type == FieldType.NUMBER:
            idx = self._numeric.get(field)
            if idx is None:
                idx = self._numeric[field] = NumericIndex()
            return idx
        idx = self._text.get(field)
        if idx is None:
            idx = self._text[field] = TextIndex()
        return idx

    def add(self, field: str, field_type: FieldType, value, row_id: int) -> None:
        """Index an already coerced value."""
        self.get(field, field_type).insert(index_key(value, field_type), row_id)

    def remove(self, field: str, field_type: FieldType, value, row_id: int) -> None:
        """Retract an indexed value."""
        self.get(field, field_type).remove(index_key(value, field_type), row_id)

    def add_row(self, row_id: int, record: Mapping[str, object], schema: FieldSchema) -> None:
        for field, value in record.items():
            self.add(field, schema.get(field), value, row_id)

    def remove_row(self, row_id: int, record: Mapping[str, object], schema: FieldSchema) -> None:
        for field, value in record.items():
            self.remove(field, schema.get(field), value, row_id)

    def clear(self) -> None:
        self._numeric.clear()
        self._text.clear()

    def rebuild(self, rows: Rows, schema: FieldSchema) -> None:
        """Drop every index and derive them again from the rows."""
        self.clear()
        for row_id, record in rows.items():
            self.add_row(row_id, record, schema)
        logger.debug("rebuilt indexes: %d numeric, %d text over %d rows",
                     len(self._numeric), len(self._text), len(rows))

    def snapshot(self) -> dict:
        """Plain-data copy of every index, for comparisons."""
        return {
            "numeric": {f: {k: sorted(r) for k, r in idx.items()}
                        for f, idx in self._numeric.items() if len(idx)},
            "text": {f: {k: sorted(r) for k, r in idx.items()}
                     for f, idx in self._text.items() if len(idx)},
        }

    def verify(self, rows: Rows, schema: FieldSchema) -> List[str]:
        """
        Check every index against the rows.
        Returns a list of issues (empty list = consistent).
        """
        issues: List[str] = []

        # Soundness: every entry points at a live row holding that key
        families = [(FieldType.NUMBER, self._numeric), (FieldType.TEXT, self._text)]
        for field_type, indexes in families:
            for field, idx in indexes.items():
                if schema.get(field) != field_type:
                    issues.append(f"{field}: {field_type.value} index on a "
                                  f"field declared {schema.get(field)}")
                for key, row_ids in idx.items():
                    for row_id in row_ids:
                        record = rows.get(row_id)
                        if record is None:
                            issues.append(f"{field}[{key!r}]: dead row {row_id}")
                        elif field not in record:
                            issues.append(f"{field}[{key!r}]: row {row_id} lacks field")
                        elif index_key(record[field], field_type) != key:
                            issues.append(f"{field}[{key!r}]: row {row_id} holds "
                                          f"{record[field]!r}")

        # Completeness: every row field is indexed under its key
        for row_id, record in rows.items():
            for field, value in record.items():
                field_type = schema.get(field)
                if field_type is None:
                    issues.append(f"row {row_id}: undeclared field {field!r}")
                    continue
                indexes = self._numeric if field_type == FieldType.NUMBER else self._text
                idx = indexes.get(field)
                key = index_key(value, field_type)
                if idx is None or row_id not in idx.search(key):
                    issues.append(f"row {row_id}: {field}={value!r} not indexed")

        return issues

    def __repr__(self) -> str:
        return f"IndexSet(numeric={sorted(self._numeric)}, text={sorted(self._text)})"
