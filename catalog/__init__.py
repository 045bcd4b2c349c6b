
# MetaDB Catalog Package
# ======================
# Table collection, name resolution, and whole-database persistence.

from catalog.resolver import (
    CatalogError, TableNotFoundError, AmbiguousTableNameError,
    DuplicateTableError, TableNameWarning, resolve_table_name,
)
from catalog.database import Database
from catalog.persistence import LoadError, open_database, save_database
