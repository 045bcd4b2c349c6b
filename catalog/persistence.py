"""
MetaDB Database File
====================
Loads and saves a whole Database as one JSON document.

Document layout:
  {
    "<table name>": {
      "name": "<table name>",
      "rows": [ {field: value, ...}, ... ],
      "row_ids": [ 0, 2, 3, ... ],
      "next_row_id": 4,
      "field_types": { field: "number" | "text", ... }
    },
    ...
  }

Indexes are derived data and are not stored; they are rebuilt from the
rows on load.

Safety guarantees:
  - Atomic writes: the document is written to a temp file in the same
    directory, fsynced, then renamed over the target (os.replace). A crash
    mid-save leaves the previous file intact.
  - Every save rewrites the whole database.
"""

import json
import logging
import os
import tempfile
from typing import Any

from catalog.database import Database

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """The database file exists but cannot be read as a database."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load database '{path}': {reason}")
        self.path = path
        self.reason = reason


def open_database(path: str) -> Database:
    """
    Load a database from `path`.

    A missing file yields an empty Database, which is saved immediately so
    the file exists afterwards. A malformed file raises LoadError.
    """
    if not path or not str(path).strip():
        raise ValueError("Filename cannot be empty.")

    if not os.path.exists(path):
        db = Database()
        save_database(db, path)
        logger.debug("initialized empty database at %s", path)
        return db

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LoadError(path, str(e)) from e

    _check_document(path, data)
    try:
        db = Database.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise LoadError(path, f"{type(e).__name__}: {e}") from e

    logger.debug("loaded %d table(s) from %s", len(db), path)
    return db


def save_database(db: Database, path: str) -> None:
    """
    Persist the whole database to `path` using an atomic write.
    Parent directories are created as needed.
    """
    if not path or not str(path).strip():
        raise ValueError("No database file specified.")

    target = os.path.abspath(path)
    directory = os.path.dirname(target)
    os.makedirs(directory, exist_ok=True)

    data = db.to_dict()
    tmp_fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=".metadb_", suffix=".tmp"
    )
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

    logger.debug("saved %d table(s) to %s", len(db), target)


def _check_document(path: str, data: Any) -> None:
    """Validate the document's shape before building tables from it."""
    if not isinstance(data, dict):
        raise LoadError(path, "top level must be an object of tables")

    for name, payload in data.items():
        if not isinstance(payload, dict):
            raise LoadError(path, f"table '{name}' must be an object")
        if not isinstance(payload.get("rows", []), list):
            raise LoadError(path, f"table '{name}': 'rows' must be a list")
        if not isinstance(payload.get("field_types", {}), dict):
            raise LoadError(path, f"table '{name}': 'field_types' must be an object")
