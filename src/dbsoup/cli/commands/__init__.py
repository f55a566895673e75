"""CLI commands for dbsoup."""

from . import diagram, schema

__all__ = ["diagram", "schema"]
