"""utility functions for commands"""

import json
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from pydantic import TypeAdapter

from dbsoup.file_utils import FileError, read_schema_file
from dbsoup.schema.errors import DBSoupParseError
from dbsoup.schema.model import Document
from dbsoup.schema.parser import parse_document


def fail(message: str) -> typer.Exit:
    """Log and print an error, returning the Exit to raise."""
    logger.error(message)
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def load_document(path: Path) -> Document:
    """Read and parse a schema file, exiting with status 1 on any failure."""
    try:
        return parse_document(read_schema_file(path))
    except FileError as e:
        raise fail(str(e))
    except DBSoupParseError as e:
        raise fail(f"{path}: {e}")


def to_jsonable(value: Any) -> Any:
    """Dump a model dataclass to plain JSON-compatible data."""
    return TypeAdapter(type(value)).dump_python(value, mode="json")


def print_json(value: Any) -> None:
    print(json.dumps(to_jsonable(value), indent=2, ensure_ascii=True, default=str))
