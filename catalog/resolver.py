"""
Name Resolution Engine
======================
Resolves a user-supplied table name to the name of an existing table.

Rules:
- Exact (case-sensitive) match wins.
- Otherwise a unique case-insensitive match is accepted, and the caller
  is told about the substitution through a TableNameWarning.
- Several case-insensitive matches are ambiguous and rejected.
- No match raises TableNotFoundError.

The case-insensitive fallback is a linear scan over the table names; it
only runs when the exact lookup misses.
"""

import warnings
from typing import Collection, List


class CatalogError(Exception):
    pass


class TableNotFoundError(CatalogError):
    def __init__(self, name: str):
        super().__init__(f"Table '{name}' not found.")
        self.name = name


class AmbiguousTableNameError(CatalogError):
    def __init__(self, name: str, candidates: List[str]):
        listed = ", ".join(f"'{c}'" for c in candidates)
        super().__init__(f"Table name '{name}' is ambiguous: matches {listed}.")
        self.name = name
        self.candidates = candidates


class DuplicateTableError(CatalogError):
    def __init__(self, name: str, existing: str):
        if name == existing:
            message = f"Table '{name}' already exists."
        else:
            message = f"Table '{name}' collides with existing table '{existing}'."
        super().__init__(message)
        self.name = name
        self.existing = existing


class TableNameWarning(UserWarning):
    """A table name was resolved through its case-insensitive match."""

    def __init__(self, requested: str, resolved: str):
        super().__init__(f"Did you mean '{resolved}'? If so, use: {resolved}")
        self.requested = requested
        self.resolved = resolved


def case_insensitive_matches(name: str, names: Collection[str]) -> List[str]:
    """All names equal to `name` ignoring case, in iteration order."""
    folded = name.casefold()
    return [n for n in names if n.casefold() == folded]


def resolve_table_name(name: str, names: Collection[str]) -> str:
    """
    Resolve `name` against the existing table names.
    Returns the stored name; may emit a TableNameWarning.
    """
    if name in names:
        return name

    matches = case_insensitive_matches(name, names)
    if not matches:
        raise TableNotFoundError(name)
    if len(matches) > 1:
        raise AmbiguousTableNameError(name, matches)

    resolved = matches[0]
    warnings.warn(TableNameWarning(name, resolved), stacklevel=3)
    return resolved
