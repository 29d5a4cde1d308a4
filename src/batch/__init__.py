# src/batch/__init__.py — v1
"""Sequential batch execution and outcome aggregation."""
