"""Command-line interface for dbsoup."""
