import unittest
import warnings

from catalog import Database
from catalog.resolver import (
    AmbiguousTableNameError, TableNameWarning, TableNotFoundError,
    case_insensitive_matches, resolve_table_name,
)


class TestResolveTableName(unittest.TestCase):
    def setUp(self):
        self.names = ["Users", "orders", "Sales_2024"]

    def test_exact_match(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            self.assertEqual(resolve_table_name("orders", self.names), "orders")

    def test_case_insensitive_match_warns(self):
        with self.assertWarns(TableNameWarning) as cm:
            resolved = resolve_table_name("users", self.names)
        self.assertEqual(resolved, "Users")
        self.assertEqual(cm.warning.requested, "users")
        self.assertEqual(cm.warning.resolved, "Users")
        self.assertEqual(str(cm.warning), "Did you mean 'Users'? If so, use: Users")

    def test_not_found(self):
        with self.assertRaises(TableNotFoundError) as cm:
            resolve_table_name("customers", self.names)
        self.assertEqual(str(cm.exception), "Table 'customers' not found.")
        self.assertEqual(cm.exception.name, "customers")

    def test_ambiguous(self):
        """Only reachable with names loaded from a file; create_table forbids it."""
        names = ["Users", "USERS"]
        with self.assertRaises(AmbiguousTableNameError) as cm:
            resolve_table_name("users", names)
        self.assertEqual(cm.exception.candidates, ["Users", "USERS"])

    def test_exact_beats_ambiguity(self):
        names = ["Users", "USERS"]
        self.assertEqual(resolve_table_name("USERS", names), "USERS")

    def test_matches_helper(self):
        self.assertEqual(case_insensitive_matches("SALES_2024", self.names), ["Sales_2024"])
        self.assertEqual(case_insensitive_matches("nothing", self.names), [])


class TestDatabaseResolution(unittest.TestCase):
    def setUp(self):
        self.db = Database()
        self.db.create_table("Users")
        self.db.push("Users", {"name": "ann", "age": 31})

    def test_operations_resolve_case_insensitively(self):
        with self.assertWarns(TableNameWarning):
            rows = list(self.db.pull("users", "age == 31"))
        self.assertEqual(rows, [{"name": "ann", "age": 31}])

        with self.assertWarns(TableNameWarning):
            self.db.push("USERS", {"name": "bob", "age": 40})
        self.assertEqual(len(self.db.get_table("Users")), 2)

    def test_mutations_hit_resolved_table(self):
        with self.assertWarns(TableNameWarning):
            self.assertEqual(self.db.set("users", "age == 31", "age", 32), 1)
        with self.assertWarns(TableNameWarning):
            self.assertEqual(self.db.delete("uSeRs", "age == 32"), 1)
        self.assertEqual(len(self.db.get_table("Users")), 0)

    def test_unknown_table(self):
        with self.assertRaises(TableNotFoundError):
            self.db.pull("orders")

    def test_ambiguous_after_load(self):
        db = Database.from_dict({
            "Users": {"name": "Users", "rows": [], "field_types": {}},
            "USERS": {"name": "USERS", "rows": [], "field_types": {}},
        })
        with self.assertRaises(AmbiguousTableNameError):
            db.pull("users")
        self.assertEqual(len(db.pull("USERS")), 0)


if __name__ == "__main__":
    unittest.main()
