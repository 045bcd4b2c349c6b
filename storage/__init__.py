"""
MetaDB Storage Layer
====================
Public API for field types and the per-table field schema.

Usage:
    from storage import FieldType, FieldSchema, coerce, infer_type
    from storage.table import Table, RowSet

The Table module is not re-exported here: it depends on the indexing and
execution layers, which themselves import storage.types.
"""

from storage.types import (
    FieldType, FieldValue, TypeMismatchError,
    coerce, format_number, index_key, infer_type, is_number, type_from_string,
)
from storage.schema import FieldSchema

__all__ = [
    "FieldType", "FieldValue", "TypeMismatchError",
    "coerce", "format_number", "index_key", "infer_type", "is_number",
    "type_from_string",
    "FieldSchema",
]
