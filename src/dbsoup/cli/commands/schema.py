"""Schema document CLI commands for dbsoup.

Provides `dbsoup parse`, `dbsoup validate`, `dbsoup format` and `dbsoup stats`.
Every command reads `.dbsoup` files from disk; parse failures print the file
name and line number and exit with status 1.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from dbsoup.cli.app import app
from dbsoup.cli.commands.command_utils import fail, load_document, print_json, to_jsonable
from dbsoup.config import get_config
from dbsoup.file_utils import (
    FileError,
    compute_checksum,
    read_schema_file,
    write_file_atomic,
)
from dbsoup.render.generator import format_document
from dbsoup.render.statistics import generate_statistics
from dbsoup.schema.errors import DBSoupParseError
from dbsoup.schema.parser import parse_document
from dbsoup.schema.validator import ValidationResult, validate_document

console = Console()

SchemaFile = Annotated[Path, typer.Argument(help="Path to a .dbsoup file")]


# --- Parse ---


@app.command()
def parse(
    file: SchemaFile,
    json_output: bool = typer.Option(False, "--json", help="Output the parsed model as JSON"),
):
    """Parse a schema file and summarize its structure."""
    document = load_document(file)
    if json_output:
        print_json(document)
        return

    schema = document.schema_definition
    table = Table(title=f"Parsed: {file.name}")
    table.add_column("Module", style="cyan")
    table.add_column("Entity")
    table.add_column("Type", justify="center")
    table.add_column("Fields", justify="right")
    for section in schema.sections:
        for entity in section.entities:
            table.add_row(section.name, entity.name, entity.type.value, str(len(entity.fields)))

    console.print(table)
    console.print(
        f"\n{len(schema.sections)} modules, {len(document.entities)} entities, "
        f"{len(document.relationships)} relationships"
    )


# --- Validate ---


def _print_result(file: Path, result: ValidationResult) -> None:
    if result.is_valid:
        console.print(f"[green]✓ {file} is valid[/green]")
    else:
        console.print(f"[red]✗ {file} is invalid[/red]")

    if result.errors:
        console.print(f"\n[bold red]Errors ({result.error_count}):[/bold red]")
        for error in result.errors:
            console.print(f"  • {error.message}", markup=False)
    if result.warnings:
        console.print(f"\n[bold yellow]Warnings ({result.warning_count}):[/bold yellow]")
        for warning in result.warnings:
            console.print(f"  • {warning}", markup=False)


def _result_json(file: Path, result: ValidationResult) -> dict:
    data = to_jsonable(result)
    for error, dumped in zip(result.errors, data["errors"]):
        dumped["message"] = error.message
    return {"file": str(file), **data}


@app.command()
def validate(
    files: Annotated[list[Path], typer.Argument(help="One or more .dbsoup files")],
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as failures"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
):
    """Validate schema files and report every error and warning.

    Exits with status 1 when any file fails to parse or has validation errors.
    With --strict, warnings also cause a non-zero exit.
    """
    rules = get_config().heuristic_rules()
    reports = []
    total_errors = 0
    total_warnings = 0
    failed = False

    for file in files:
        try:
            document = parse_document(read_schema_file(file))
        except (FileError, DBSoupParseError) as e:
            message = f"{file}: {e}" if isinstance(e, DBSoupParseError) else str(e)
            logger.error(message)
            typer.echo(f"Error: {message}", err=True)
            reports.append({"file": str(file), "is_valid": False, "parse_error": str(e)})
            failed = True
            continue

        result = validate_document(document, rules)
        total_errors += result.error_count
        total_warnings += result.warning_count
        if not result.is_valid or (strict and result.warnings):
            failed = True

        if json_output:
            reports.append(_result_json(file, result))
        else:
            _print_result(file, result)

    if json_output:
        print_json(reports)
    else:
        console.print(f"\nSummary: {total_errors} errors, {total_warnings} warnings")

    if failed:
        raise typer.Exit(1)


# --- Format ---


@app.command("format")
def format_command(
    file: SchemaFile,
    output: Annotated[
        Optional[Path],
        typer.Argument(help="Where to write the result (default: print to stdout)"),
    ] = None,
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Rewrite FILE itself"),
    check: bool = typer.Option(
        False, "--check", help="Only check formatting; exit 1 if FILE would change"
    ),
    sort_entities: bool = typer.Option(
        False, "--sort-entities", help="Sort entities alphabetically within each module"
    ),
    sort_fields: bool = typer.Option(False, "--sort-fields", help="Sort fields alphabetically"),
    no_comments: bool = typer.Option(False, "--no-comments", help="Drop inline comments"),
    group_relationships: bool = typer.Option(
        False, "--group-relationships", help="Group relationship definitions by cardinality"
    ),
):
    """Reformat a schema file into canonical, column-aligned layout."""
    document = load_document(file)
    config = get_config().generator_config(
        include_comments=not no_comments,
        sort_entities_alphabetically=sort_entities,
        sort_fields_alphabetically=sort_fields,
        group_relationships=group_relationships,
    )
    formatted = format_document(document, config)

    if check:
        original = read_schema_file(file)
        if compute_checksum(original) != compute_checksum(formatted):
            typer.echo(f"would reformat {file}", err=True)
            raise typer.Exit(1)
        console.print(f"{file} is already formatted")
        return

    target = file if in_place else output
    if target is None:
        typer.echo(formatted, nl=False)
        return

    try:
        write_file_atomic(target, formatted)
    except FileError as e:
        raise fail(str(e))
    console.print(f"[green]Formatted {file} -> {target}[/green]")


# --- Stats ---


def _usage_table(title: str, label: str, counts: dict[str, int]) -> Table:
    table = Table(title=title)
    table.add_column(label, style="cyan")
    table.add_column("Count", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table


@app.command()
def stats(
    file: SchemaFile,
    json_output: bool = typer.Option(False, "--json", help="Output statistics as JSON"),
):
    """Show entity, field, type and constraint statistics for a schema file."""
    document = load_document(file)
    statistics = generate_statistics(document)
    if json_output:
        print_json(statistics)
        return

    summary = Table(title=f"Statistics: {file.name}")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Entities", str(statistics.total_entities))
    summary.add_row("  Standard", str(statistics.standard_entities))
    summary.add_row("  Embedded", str(statistics.embedded_entities))
    summary.add_row("Fields", str(statistics.total_fields))
    summary.add_row("Relationships", str(statistics.total_relationships))
    summary.add_row("Modules", str(statistics.module_count))
    console.print(summary)

    if statistics.modules:
        modules = dict(sorted(statistics.modules.items()))
        console.print(_usage_table("Entities per Module", "Module", modules))
    if statistics.data_types:
        console.print(_usage_table("Data Type Usage", "Type", statistics.data_types))
    if statistics.constraints:
        console.print(_usage_table("Constraint Usage", "Constraint", statistics.constraints))
    if statistics.field_prefixes:
        console.print(_usage_table("Field Prefix Usage", "Prefix", statistics.field_prefixes))
