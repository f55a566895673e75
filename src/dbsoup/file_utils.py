"""Utilities for reading and writing schema files."""

import hashlib
from pathlib import Path
from typing import Union

from loguru import logger

FilePath = Union[Path, str]

SCHEMA_SUFFIX = ".dbsoup"


class FileError(Exception):
    """Base exception for file operations."""

    pass


class SchemaFileNotFoundError(FileError):
    """Raised when the requested schema file does not exist."""

    pass


class FileReadError(FileError):
    """Raised when a schema file exists but cannot be read or decoded."""

    pass


class FileWriteError(FileError):
    """Raised when file operations fail."""

    pass


def compute_checksum(content: Union[str, bytes]) -> str:
    """
    Compute SHA-256 checksum of content.

    Args:
        content: Content to hash (either text string or bytes)

    Returns:
        SHA-256 hex digest
    """
    if isinstance(content, str):
        content = content.encode()
    return hashlib.sha256(content).hexdigest()


def read_schema_file(path: FilePath) -> str:
    """
    Read a schema file as UTF-8 text.

    Args:
        path: File to read (Path or string)

    Returns:
        The complete file content

    Raises:
        SchemaFileNotFoundError: If the file does not exist
        FileReadError: If the file cannot be read or is not valid UTF-8
    """
    path_obj = Path(path)
    if not path_obj.is_file():
        raise SchemaFileNotFoundError(f"File not found: {path_obj}")

    try:
        content = path_obj.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read file", path=str(path_obj), error=str(e))
        raise FileReadError(f"Failed to read file {path_obj}: {e}")

    logger.debug("Read schema file", path=str(path_obj), content_length=len(content))
    return content


def write_file_atomic(path: FilePath, content: str) -> None:
    """
    Write file with atomic operation using temporary file.

    Args:
        path: Target file path (Path or string)
        content: Content to write

    Raises:
        FileWriteError: If write operation fails
    """
    path_obj = Path(path) if isinstance(path, str) else path
    temp_path = path_obj.with_name(path_obj.name + ".tmp")

    try:
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(path_obj)
        logger.debug("Wrote file atomically", path=str(path_obj), content_length=len(content))
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        logger.error("Failed to write file", path=str(path_obj), error=str(e))
        raise FileWriteError(f"Failed to write file {path}: {e}")


def default_output_path(source: FilePath, suffix: str) -> Path:
    """`schemas/app.dbsoup` + `.mmd` -> `schemas/app.mmd`."""
    return Path(source).with_suffix(suffix)
