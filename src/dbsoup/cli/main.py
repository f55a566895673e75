"""Main CLI entry point for dbsoup."""  # pragma: no cover

from dbsoup.cli.app import app  # pragma: no cover

# Register commands
from dbsoup.cli.commands import diagram, schema  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
