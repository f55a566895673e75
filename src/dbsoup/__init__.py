"""dbsoup - parse, validate and format DBSoup database schema documents."""

from dbsoup.render.generator import GeneratorConfig, format_document
from dbsoup.schema.errors import DBSoupError, DBSoupParseError
from dbsoup.schema.model import Document
from dbsoup.schema.parser import parse_document
from dbsoup.schema.validator import ValidationResult, validate_document

__version__ = "0.4.0"

# Short aliases for the three core operations
parse = parse_document
validate = validate_document
format = format_document

__all__ = [
    "__version__",
    "DBSoupError",
    "DBSoupParseError",
    "Document",
    "GeneratorConfig",
    "ValidationResult",
    "format",
    "format_document",
    "parse",
    "parse_document",
    "validate",
    "validate_document",
]
