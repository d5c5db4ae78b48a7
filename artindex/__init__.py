# Path: artindex/__init__.py
# Purpose: Package initializer for the artwork index engine.
# Layer: artindex.
# Details: Aggregates subpackages for filtering, storage, indexing, external sources, and search.
