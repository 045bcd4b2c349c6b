"""
MetaDB Session
==============
Per-connection state object: opens a database file, runs one command at
a time against it, and saves it back.

Command language (one command per line, keywords case-insensitive):

    create <table>
    drop   <table>
    push   <table> <json object>
    pull   <table> [where] [condition]
    set    <table> <field>=<value> [where <condition>]
    delete <table> [where] [condition]
    save

<value> is a JSON literal (42, 3.5, "text"); anything that is not valid
JSON is taken as bare text.

Autosave semantics:
  - Default: autosave=True (every mutating command rewrites the file)
  - autosave=False: changes stay in memory until `save`; close() reports
    unsaved changes and discards them.
"""

import json
import logging
import os
import re
import warnings
from typing import Any, Iterator, List, Optional, Tuple

from catalog.database import Database
from catalog.persistence import open_database, save_database
from catalog.resolver import TableNameWarning

logger = logging.getLogger(__name__)

_WHERE = re.compile(r"(?:^|\s+)where(?:\s+|$)", re.IGNORECASE)

MUTATING_COMMANDS = ("create", "drop", "push", "set", "delete")


class SessionError(Exception):
    """Session-level error (bad command syntax, closed session, etc.)."""
    pass


class Session:
    """
    Database session owning the Database loaded from one file.

    Usage:
        with Session("path/to/metadb.json") as session:
            rows, message, notes = session.execute("pull users age >= 18")
    """

    def __init__(self, db_file: str, *, autosave: bool = True):
        self.db_file = os.path.abspath(db_file)
        self.autosave = autosave
        self.database: Database = open_database(self.db_file)

        self._closed: bool = False
        self._unsaved: int = 0

        # ── Statistics ──
        self.stats = {
            "commands_executed": 0,
            "rows_returned": 0,
            "saves": 0,
        }

    # ─── Command Execution ──────────────────────────────────────────

    def execute(self, command: str) -> Tuple[Optional[Iterator[dict]], str, List[str]]:
        """
        Execute one command.

        Returns: (rows_or_None, message, notes)
          - pull:  (row iterator, "", notes)
          - other: (None, "Inserted row 3 into 'users'.", notes)
        notes carries advisory messages such as table-name suggestions.
        """
        self._check_closed()
        parts = command.strip().split(None, 1)
        if not parts:
            raise SessionError("Empty command")
        verb = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        handler = getattr(self, f"_cmd_{verb}", None)
        if handler is None:
            raise SessionError(f"Unknown command: {parts[0]}")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", TableNameWarning)
            rows, message = handler(rest)
        notes = [str(w.message) for w in caught
                 if issubclass(w.category, TableNameWarning)]

        self.stats["commands_executed"] += 1
        if verb in MUTATING_COMMANDS:
            self._unsaved += 1
            if self.autosave:
                self.save()
        if rows is not None:
            rows = self._count_rows(rows)
        return rows, message, notes

    def save(self) -> str:
        """Write the whole database to its file."""
        self._check_closed()
        save_database(self.database, self.db_file)
        self._unsaved = 0
        self.stats["saves"] += 1
        return f"Saved {len(self.database)} table(s) to {self.db_file}"

    @property
    def unsaved_changes(self) -> int:
        return self._unsaved

    # ─── Commands ───────────────────────────────────────────────────

    def _cmd_create(self, rest: str):
        name = self._single_name(rest, "create <table>")
        self.database.create_table(name)
        return None, f"Table '{name}' created."

    def _cmd_drop(self, rest: str):
        name = self._single_name(rest, "drop <table>")
        table = self.database.drop_table(name)
        return None, f"Table '{table.name}' dropped ({table.row_count} row(s))."

    def _cmd_push(self, rest: str):
        table, payload = self._split_table(rest, "push <table> <json object>")
        try:
            record = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SessionError(f"Invalid JSON record: {e}") from e
        if not isinstance(record, dict):
            raise SessionError("Record must be a JSON object")
        name = self.database.resolve(table)
        row_id = self.database.push(name, record)
        return None, f"Inserted row {row_id} into '{name}'."

    def _cmd_pull(self, rest: str):
        table, condition = self._split_table(rest, "pull <table> [where] [condition]",
                                             required=False)
        return self.database.pull(table, self._strip_where(condition)), ""

    def _cmd_set(self, rest: str):
        usage = "set <table> <field>=<value> [where <condition>]"
        table, tail = self._split_table(rest, usage)
        field, sep, value_part = tail.partition("=")
        field = field.strip()
        if not sep or not field:
            raise SessionError(f"Usage: {usage}")
        raw_value, condition = _split_value(value_part)
        if not raw_value.strip():
            raise SessionError(f"Usage: {usage}")
        count = self.database.set(table, condition, field, parse_value(raw_value))
        return None, f"Updated {count} row(s)."

    def _cmd_delete(self, rest: str):
        table, condition = self._split_table(rest, "delete <table> [where] [condition]",
                                             required=False)
        count = self.database.delete(table, self._strip_where(condition))
        return None, f"Deleted {count} row(s)."

    def _cmd_save(self, rest: str):
        return None, self.save()

    # ─── Helpers ────────────────────────────────────────────────────

    def _single_name(self, rest: str, usage: str) -> str:
        parts = rest.split()
        if len(parts) != 1:
            raise SessionError(f"Usage: {usage}")
        return parts[0]

    def _split_table(self, rest: str, usage: str, required: bool = True) -> Tuple[str, str]:
        parts = rest.split(None, 1)
        if not parts or (required and len(parts) < 2):
            raise SessionError(f"Usage: {usage}")
        return parts[0], parts[1].strip() if len(parts) > 1 else ""

    def _strip_where(self, condition: str) -> str:
        match = _WHERE.match(condition)
        if match:
            return condition[match.end():]
        return condition

    def _count_rows(self, rows) -> Iterator[dict]:
        for row in rows:
            self.stats["rows_returned"] += 1
            yield row

    def _check_closed(self):
        if self._closed:
            raise SessionError("Session is closed")

    # ─── Lifecycle ──────────────────────────────────────────────────

    def close(self) -> Optional[str]:
        """
        Close the session. Unsaved changes (autosave off) are discarded.
        Returns a warning message if changes were discarded.
        """
        if self._closed:
            return None

        warning = None
        if self._unsaved:
            warning = (f"WARNING: {self._unsaved} unsaved change(s) discarded "
                       f"(use 'save' before closing)")
            logger.debug("closing %s with %d unsaved change(s)",
                         self.db_file, self._unsaved)

        self._closed = True
        return warning

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _split_value(text: str) -> Tuple[str, str]:
    """
    Split '<value> [where <condition>]'. A quoted value may itself
    contain the word 'where'; the keyword is searched after its closing quote.
    """
    stripped = text.lstrip()
    search_from = 0
    if stripped[:1] in ('"', "'"):
        close = stripped.find(stripped[0], 1)
        if close != -1:
            search_from = len(text) - len(stripped) + close + 1
    match = _WHERE.search(text, search_from)
    if match:
        return text[:match.start()], text[match.end():]
    return text, ""


def parse_value(raw: str) -> Any:
    """Parse a command value: JSON literal, else bare text."""
    raw = raw.strip()
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw
