# src/selection/__init__.py — v1
"""Selection store, visible predicate and view projector."""
