# src/__init__.py — v1
"""bulkops — bulk selection and batch operations for the saved affiliate pipeline."""

from bulkops.version import __version__

__all__ = ["__version__"]
