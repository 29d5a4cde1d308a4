# src/controller/__init__.py — v1
