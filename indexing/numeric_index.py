"""
MetaDB Numeric Index
====================
In-memory ordered index for a NUMBER field: value -> set of row ids.

Keys are kept in a sorted list (maintained with bisect) alongside a dict
of postings, so exact lookups are O(1) and range scans start with a binary
search and walk the keys in ascending order.

Invariant: a key is present in the sorted list iff it has a non-empty
posting set.
"""

from bisect import bisect_left, bisect_right, insort
from typing import Dict, Iterator, List, Optional, Set, Tuple


class NumericIndex:
    """
    Ordered value -> row id index.

    Usage:
        idx = NumericIndex()
        idx.insert(25.0, 0)
        idx.search(25.0)                      # {0}
        list(idx.range_scan(low=10.0))        # [(25.0, {0})]
    """

    def __init__(self):
        self._keys: List[float] = []
        self._postings: Dict[float, Set[int]] = {}

    # ─── Mutation ───────────────────────────────────────────────────

    def insert(self, key: float, row_id: int) -> None:
        """Add row_id under key."""
        rows = self._postings.get(key)
        if rows is None:
            rows = self._postings[key] = set()
            insort(self._keys, key)
        rows.add(row_id)

    def remove(self, key: float, row_id: int) -> None:
        """Remove row_id from key. Empty keys are dropped."""
        rows = self._postings.get(key)
        if rows is None:
            return
        rows.discard(row_id)
        if not rows:
            del self._postings[key]
            pos = bisect_left(self._keys, key)
            del self._keys[pos]

    # ─── Search ─────────────────────────────────────────────────────

    def search(self, key: float) -> Set[int]:
        """Exact-match search. Returns a copy of the row id set."""
        return set(self._postings.get(key, ()))

    def range_scan(self, low: Optional[float] = None, high: Optional[float] = None,
                   low_inclusive: bool = True,
                   high_inclusive: bool = True) -> Iterator[Tuple[float, Set[int]]]:
        """
        Range scan over the index. Yields (key, row ids) in ascending key order.

        - low=None means unbounded below.
        - high=None means unbounded above.
        """
        if low is None:
            start = 0
        elif low_inclusive:
            start = bisect_left(self._keys, low)
        else:
            start = bisect_right(self._keys, low)

        if high is None:
            stop = len(self._keys)
        elif high_inclusive:
            stop = bisect_right(self._keys, high)
        else:
            stop = bisect_left(self._keys, high)

        for key in self._keys[start:stop]:
            yield key, set(self._postings[key])

    def row_ids(self) -> Set[int]:
        """All row ids present in the index."""
        result: Set[int] = set()
        for rows in self._postings.values():
            result |= rows
        return result

    def keys(self) -> List[float]:
        """Distinct keys in ascending order."""
        return list(self._keys)

    def items(self) -> Iterator[Tuple[float, Set[int]]]:
        return self.range_scan()

    @property
    def entry_count(self) -> int:
        """Total number of (key, row id) entries."""
        return sum(len(rows) for rows in self._postings.values())

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"NumericIndex(keys={len(self._keys)}, entries={self.entry_count})"
