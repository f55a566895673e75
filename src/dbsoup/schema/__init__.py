"""DBSoup notation core.

Parses `.dbsoup` schema documents into a dataclass model and validates them.
Parsing fails fast with a positioned error; validation always completes and
reports everything it finds.
"""

from dbsoup.schema.errors import (
    DBSoupError,
    DBSoupParseError,
    InvalidCardinalityError,
    InvalidConstraintError,
    InvalidDataTypeError,
    InvalidEntityError,
    InvalidFieldError,
    InvalidHeaderError,
    InvalidRelationshipError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from dbsoup.schema.heuristics import HeuristicRules
from dbsoup.schema.model import (
    ArrayType,
    Cardinality,
    Constraint,
    DataType,
    Document,
    EmbeddedEntityType,
    Entity,
    EntityType,
    FeatureSection,
    Field,
    FieldPrefix,
    Header,
    JsonField,
    JsonObjectType,
    ModuleSection,
    ParametricType,
    Relationship,
    RelationshipArrayType,
    RelationshipCardinality,
    RelationshipDefinitions,
    RelationshipDetail,
    RelationshipNature,
    RelationshipSection,
    SchemaDefinition,
    SimpleType,
    type_to_string,
)
from dbsoup.schema.parser import DBSoupParser, parse_document, parse_field_line
from dbsoup.schema.resolver import resolve_document
from dbsoup.schema.validator import (
    SchemaValidationError,
    ValidationErrorKind,
    ValidationResult,
    validate_document,
)

__all__ = [
    # Errors
    "DBSoupError",
    "DBSoupParseError",
    "InvalidCardinalityError",
    "InvalidConstraintError",
    "InvalidDataTypeError",
    "InvalidEntityError",
    "InvalidFieldError",
    "InvalidHeaderError",
    "InvalidRelationshipError",
    "UnexpectedEndOfInputError",
    "UnexpectedTokenError",
    # Model
    "ArrayType",
    "Cardinality",
    "Constraint",
    "DataType",
    "Document",
    "EmbeddedEntityType",
    "Entity",
    "EntityType",
    "FeatureSection",
    "Field",
    "FieldPrefix",
    "Header",
    "JsonField",
    "JsonObjectType",
    "ModuleSection",
    "ParametricType",
    "Relationship",
    "RelationshipArrayType",
    "RelationshipCardinality",
    "RelationshipDefinitions",
    "RelationshipDetail",
    "RelationshipNature",
    "RelationshipSection",
    "SchemaDefinition",
    "SimpleType",
    "type_to_string",
    # Parser
    "DBSoupParser",
    "parse_document",
    "parse_field_line",
    # Resolver
    "resolve_document",
    # Validator
    "HeuristicRules",
    "SchemaValidationError",
    "ValidationErrorKind",
    "ValidationResult",
    "validate_document",
]
