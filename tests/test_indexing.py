"""
MetaDB Indexing Tests
=====================
Tests for the ordered numeric index, the text index, and the per-table
IndexSet (creation on first use, rebuild, verification).
"""

import pytest

from indexing.numeric_index import NumericIndex
from indexing.text_index import TextIndex
from indexing.index_manager import IndexSet
from storage.schema import FieldSchema
from storage.types import FieldType


# ═══════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════

@pytest.fixture
def ages():
    """Numeric index over ages 5, 10, 15, 20 (row ids 0..3) plus a duplicate 10."""
    idx = NumericIndex()
    for row_id, age in enumerate([5.0, 10.0, 15.0, 20.0, 10.0]):
        idx.insert(age, row_id)
    return idx


@pytest.fixture
def schema():
    s = FieldSchema()
    s.declare("name", FieldType.TEXT)
    s.declare("age", FieldType.NUMBER)
    return s


@pytest.fixture
def rows():
    return {
        0: {"name": "ann", "age": 31},
        1: {"name": "bob"},
        3: {"name": "ann", "age": 12.5},
    }


# ═══════════════════════════════════════════════════════════════════
# NumericIndex
# ═══════════════════════════════════════════════════════════════════

class TestNumericIndex:

    def test_search(self, ages):
        assert ages.search(10.0) == {1, 4}
        assert ages.search(7.0) == set()

    def test_keys_sorted(self):
        idx = NumericIndex()
        for row_id, key in enumerate([3.0, -1.0, 2.5, 100.0, 0.0]):
            idx.insert(key, row_id)
        assert idx.keys() == [-1.0, 0.0, 2.5, 3.0, 100.0]

    def test_range_inclusive_low(self, ages):
        keys = [k for k, _ in ages.range_scan(low=10.0)]
        assert keys == [10.0, 15.0, 20.0]

    def test_range_exclusive_low(self, ages):
        keys = [k for k, _ in ages.range_scan(low=10.0, low_inclusive=False)]
        assert keys == [15.0, 20.0]

    def test_range_inclusive_high(self, ages):
        keys = [k for k, _ in ages.range_scan(high=15.0)]
        assert keys == [5.0, 10.0, 15.0]

    def test_range_exclusive_high(self, ages):
        keys = [k for k, _ in ages.range_scan(high=15.0, high_inclusive=False)]
        assert keys == [5.0, 10.0]

    def test_range_bounds_between_keys(self, ages):
        keys = [k for k, _ in ages.range_scan(low=6.0, high=16.0)]
        assert keys == [10.0, 15.0]

    def test_range_empty(self, ages):
        assert list(ages.range_scan(low=21.0)) == []
        assert list(ages.range_scan(high=4.0)) == []

    def test_range_yields_postings(self, ages):
        postings = dict(ages.range_scan(low=10.0, high=10.0))
        assert postings == {10.0: {1, 4}}

    def test_remove_keeps_other_rows(self, ages):
        ages.remove(10.0, 1)
        assert ages.search(10.0) == {4}
        assert 10.0 in ages.keys()

    def test_remove_drops_empty_key(self, ages):
        ages.remove(5.0, 0)
        assert 5.0 not in ages.keys()
        assert len(ages) == 3
        assert [k for k, _ in ages.range_scan()] == [10.0, 15.0, 20.0]

    def test_remove_missing_is_noop(self, ages):
        ages.remove(99.0, 0)
        ages.remove(5.0, 42)
        assert ages.entry_count == 5

    def test_search_returns_copy(self, ages):
        found = ages.search(10.0)
        found.add(99)
        assert ages.search(10.0) == {1, 4}

    def test_row_ids(self, ages):
        assert ages.row_ids() == {0, 1, 2, 3, 4}


# ═══════════════════════════════════════════════════════════════════
# TextIndex
# ═══════════════════════════════════════════════════════════════════

class TestTextIndex:

    def test_insert_search(self):
        idx = TextIndex()
        idx.insert("ann", 0)
        idx.insert("bob", 1)
        idx.insert("ann", 2)
        assert idx.search("ann") == {0, 2}
        assert idx.search("Ann") == set()
        assert len(idx) == 2

    def test_remove(self):
        idx = TextIndex()
        idx.insert("ann", 0)
        idx.remove("ann", 0)
        assert idx.search("ann") == set()
        assert len(idx) == 0
        assert idx.entry_count == 0


# ═══════════════════════════════════════════════════════════════════
# IndexSet
# ═══════════════════════════════════════════════════════════════════

class TestIndexSet:

    def test_index_created_on_first_use(self, schema):
        indexes = IndexSet()
        assert indexes.numeric("age") is None
        indexes.add("age", FieldType.NUMBER, 31, 0)
        assert indexes.numeric("age").search(31.0) == {0}
        assert indexes.text("age") is None

    def test_rebuild_and_verify(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        assert indexes.verify(rows, schema) == []
        assert indexes.text("name").search("ann") == {0, 3}
        assert indexes.numeric("age").keys() == [12.5, 31.0]

    def test_verify_detects_dead_row(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        del rows[3]
        issues = indexes.verify(rows, schema)
        assert any("dead row 3" in issue for issue in issues)

    def test_verify_detects_unindexed_value(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        rows[1]["age"] = 50
        issues = indexes.verify(rows, schema)
        assert any("not indexed" in issue for issue in issues)

    def test_verify_detects_stale_key(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        rows[0]["age"] = 32
        issues = indexes.verify(rows, schema)
        assert any("holds 32" in issue for issue in issues)

    def test_remove_row(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        record = rows.pop(0)
        indexes.remove_row(0, record, schema)
        assert indexes.verify(rows, schema) == []
        assert indexes.numeric("age").keys() == [12.5]

    def test_snapshot(self, rows, schema):
        indexes = IndexSet()
        indexes.rebuild(rows, schema)
        assert indexes.snapshot() == {
            "numeric": {"age": {12.5: [3], 31.0: [0]}},
            "text": {"name": {"ann": [0, 3], "bob": [1]}},
        }
