"""Storage engine for file-backed record collections.

This package persists one JSON document per collection with caching,
field indexing, admission control, and debounced rewrites.
"""
