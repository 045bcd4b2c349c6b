"""
Database (Catalog)
==================
Owns the mapping table name -> Table and forwards the public operations
(push / pull / set / delete) to the right table after resolving its name.

Table names are stored case-sensitively but must also be unique ignoring
case, so that case-insensitive resolution is always deterministic.

There is no process-wide instance: callers create a Database (or load one
with catalog.persistence.open_database) and pass it around.
"""

import logging
import threading
from typing import Any, Dict, List, Mapping

from catalog.resolver import (
    DuplicateTableError, case_insensitive_matches, resolve_table_name,
)
from storage.table import ConditionLike, RowSet, Table

logger = logging.getLogger(__name__)


class Database:
    """
    In-memory catalog of tables.

    Usage:
        db = Database()
        db.create_table("users")
        db.push("users", {"name": "ann", "age": 31})
        for row in db.pull("users", "age >= 30"):
            print(row)
    """

    def __init__(self):
        self._tables: Dict[str, Table] = {}
        self._lock = threading.RLock()

    # ─── Table management ───────────────────────────────────────────

    def create_table(self, name: str) -> Table:
        """
        Create an empty table.
        Raises DuplicateTableError if the name exists, or exists with
        different case.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Table name cannot be empty.")

        with self._lock:
            if name in self._tables:
                raise DuplicateTableError(name, name)
            clashes = case_insensitive_matches(name, self._tables)
            if clashes:
                raise DuplicateTableError(name, clashes[0])

            table = Table(name)
            self._tables[name] = table
            logger.debug("created table '%s'", name)
            return table

    def drop_table(self, name: str) -> Table:
        """Remove a table. Returns the dropped Table."""
        with self._lock:
            resolved = self.resolve(name)
            table = self._tables.pop(resolved)
            logger.debug("dropped table '%s'", resolved)
            return table

    def resolve(self, name: str) -> str:
        """
        Resolve a table name (exact, then unique case-insensitive match).
        Raises TableNotFoundError / AmbiguousTableNameError.
        """
        return resolve_table_name(name, self._tables)

    def get_table(self, name: str) -> Table:
        return self._tables[self.resolve(name)]

    def list_tables(self) -> List[str]:
        """List all table names (sorted, deterministic)."""
        return sorted(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    # ─── Record operations ──────────────────────────────────────────

    def push(self, table: str, record: Mapping[str, Any]) -> int:
        """Insert a record. Returns its row id."""
        return self.get_table(table).insert(record)

    def pull(self, table: str, condition: ConditionLike = "") -> RowSet:
        """Rows matching the condition (empty = all)."""
        return self.get_table(table).query(condition)

    def set(self, table: str, condition: ConditionLike, field: str, value: Any) -> int:
        """Set a field on every matching row. Returns the count."""
        return self.get_table(table).update(condition, field, value)

    def delete(self, table: str, condition: ConditionLike) -> int:
        """Delete every matching row. Returns the count."""
        return self.get_table(table).delete(condition)

    # ─── Persistence ────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {name: table.to_dict() for name, table in self._tables.items()}

    @classmethod
    def from_dict(cls, d: Mapping[str, dict]) -> "Database":
        """
        Rebuild a catalog from {name: table dict}.
        Names are taken as stored; no collision check is applied.
        """
        db = cls()
        for name, payload in d.items():
            db._tables[name] = Table.from_dict(payload, name=name)
        return db

    def __repr__(self) -> str:
        return f"Database(tables={len(self._tables)})"
