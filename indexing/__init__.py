"""
MetaDB Indexing Module
======================
In-memory per-field indexes for accelerating conditions.

Components:
  - numeric_index: ordered value -> row ids (exact + range lookups)
  - text_index: hashed string -> row ids (equality lookups)
  - index_manager: per-table index set (create on first use, rebuild, verify)
"""
