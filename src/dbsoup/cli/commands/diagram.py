"""Diagram export commands for dbsoup."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from dbsoup.cli.app import app
from dbsoup.cli.commands.command_utils import fail, load_document
from dbsoup.file_utils import FileError, default_output_path, write_file_atomic
from dbsoup.render.mermaid import MermaidConfig, MermaidTheme, generate_mermaid

console = Console()


@app.command()
def mermaid(
    file: Annotated[Path, typer.Argument(help="Path to a .dbsoup file")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output path (default: FILE with .mmd suffix)"),
    ] = None,
    theme: MermaidTheme = typer.Option(MermaidTheme.DEFAULT, "--theme", help="Mermaid theme"),
    max_fields: int = typer.Option(
        15, "--max-fields", min=1, help="Fields shown per entity before truncating"
    ),
    no_comments: bool = typer.Option(False, "--no-comments", help="Omit comments"),
    no_types: bool = typer.Option(False, "--no-types", help="Render every field as String"),
    no_constraints: bool = typer.Option(
        False, "--no-constraints", help="Omit key markers and field facets"
    ),
    stdout: bool = typer.Option(False, "--stdout", help="Print the diagram instead of saving it"),
):
    """Export a schema file as a Mermaid ER diagram."""
    document = load_document(file)
    config = MermaidConfig(
        include_comments=not no_comments,
        include_field_types=not no_types,
        include_constraints=not no_constraints,
        max_fields_per_entity=max_fields,
        theme=theme,
    )
    diagram = generate_mermaid(document, config)

    if stdout:
        typer.echo(diagram, nl=False)
        return

    target = output or default_output_path(file, ".mmd")
    try:
        write_file_atomic(target, diagram)
    except FileError as e:
        raise fail(str(e))
    console.print(f"[green]Mermaid diagram written to {target}[/green]")
