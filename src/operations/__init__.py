# src/operations/__init__.py — v1
