from typing import Optional

import typer

from dbsoup.config import get_config
from dbsoup.utils import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import dbsoup

        typer.echo(f"dbsoup version: {dbsoup.__version__}")
        raise typer.Exit()


app = typer.Typer(name="dbsoup", no_args_is_help=True)


@app.callback()
def app_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr output (overrides DBSOUP_LOG_LEVEL).",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """dbsoup - parse, validate and format DBSoup schema documents."""
    config = get_config()
    setup_logging(level=(log_level or config.log_level).upper(), log_file=config.log_file)
