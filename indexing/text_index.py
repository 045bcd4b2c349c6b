"""
MetaDB Text Index
=================
In-memory hash index for a TEXT field: exact string -> set of row ids.
Equality lookups only; there is no key ordering.
"""

from typing import Dict, Iterator, Set, Tuple


class TextIndex:
    """Unordered value -> row id index."""

    def __init__(self):
        self._postings: Dict[str, Set[int]] = {}

    def insert(self, key: str, row_id: int) -> None:
        self._postings.setdefault(key, set()).add(row_id)

    def remove(self, key: str, row_id: int) -> None:
        """Remove row_id from key. Empty keys are dropped."""
        rows = self._postings.get(key)
        if rows is None:
            return
        rows.discard(row_id)
        if not rows:
            del self._postings[key]

    def search(self, key: str) -> Set[int]:
        """Exact-match search. Returns a copy of the row id set."""
        return set(self._postings.get(key, ()))

    def row_ids(self) -> Set[int]:
        result: Set[int] = set()
        for rows in self._postings.values():
            result |= rows
        return result

    def items(self) -> Iterator[Tuple[str, Set[int]]]:
        for key, rows in self._postings.items():
            yield key, set(rows)

    @property
    def entry_count(self) -> int:
        return sum(len(rows) for rows in self._postings.values())

    def __len__(self) -> int:
        return len(self._postings)

    def __repr__(self) -> str:
        return f"TextIndex(keys={len(self._postings)}, entries={self.entry_count})"
