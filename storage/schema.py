"""
MetaDB Field Schema
===================
Tracks the type of every field name seen in a table.

There is no declared schema: a field is registered the first time a value
is stored under it, and its type never changes afterwards. The mapping is
persisted next to the rows so that a reloaded table keeps its types even
for fields whose rows have all been deleted.
"""

from typing import Dict, Iterator, Optional

from storage.types import FieldType, type_from_string


class FieldSchema:
    """Mapping of field name -> FieldType, append-only."""

    def __init__(self, types: Optional[Dict[str, FieldType]] = None):
        self._types: Dict[str, FieldType] = dict(types or {})

    def get(self, field: str) -> Optional[FieldType]:
        """Return the field's type, or None if the field is unknown."""
        return self._types.get(field)

    def declare(self, field: str, field_type: FieldType) -> FieldType:
        """
        Register a field on first sighting and return its type.
        An already known field keeps its original type.
        """
        return self._types.setdefault(field, field_type)

    def as_dict(self) -> Dict[str, FieldType]:
        """Copy of the mapping (callers cannot alter declared types)."""
        return dict(self._types)

    def __contains__(self, field: object) -> bool:
        return field in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldSchema):
            return NotImplemented
        return self._types == other._types

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}: {v.value}" for k, v in self._types.items())
        return f"FieldSchema({fields})"

    def to_dict(self) -> dict:
        """Serialize to {field: "number" | "text"}."""
        return {name: ftype.value for name, ftype in self._types.items()}

    @classmethod
    def from_dict(cls, d: dict) -> "FieldSchema":
        """Deserialize. Raises ValueError on unknown type names."""
        return cls({name: type_from_string(tname) for name, tname in d.items()})
