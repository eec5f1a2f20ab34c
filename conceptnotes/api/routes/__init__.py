"""HTTP API route modules."""

from . import graph, index, notes

__all__ = ["graph", "index", "notes"]
