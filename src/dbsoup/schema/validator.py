"""Semantic validator for parsed DBSoup documents.

Runs a fixed sequence of read-only passes over a `Document` and collects every
problem it finds instead of stopping at the first one:

  1. header          -- presence and shape of the `@name.dbsoup` line
  2. relationships   -- declared relationships resolve, sane pairings, inheritance cycles
  3. structure       -- unique names, prefix contradictions, primary keys
  4. data types      -- vocabulary, parametric shapes, entity references, cardinality bounds
  5. constraints     -- duplicates, FK/DEFAULT/ENUM shapes, known vocabulary
  6. heuristics      -- suspiciously simple entities and undeclared complex structures
  7. cross-checks    -- module list vs sections, FKs vs relationship definitions

Errors make the document invalid. Warnings are advisory and never do.
Results are ordered by pass, then by discovery order, so output is stable.
"""

import re
from dataclasses import dataclass, field as dataclass_field
from enum import Enum

from loguru import logger

from dbsoup.schema.grammar import KNOWN_CONSTRAINTS
from dbsoup.schema.heuristics import HeuristicRules
from dbsoup.schema.model import (
    ArrayType,
    Cardinality,
    Constraint,
    DataType,
    Document,
    EmbeddedEntityType,
    Entity,
    Field,
    FieldPrefix,
    JsonObjectType,
    ParametricType,
    Relationship,
    RelationshipArrayType,
    RelationshipCardinality,
    RelationshipNature,
    SimpleType,
)
from dbsoup.schema.resolver import resolve_document


# --- Result Data Model ---


class ValidationErrorKind(Enum):
    DUPLICATE_ENTITY_NAME = "duplicate_entity_name"
    DUPLICATE_FIELD_NAME = "duplicate_field_name"
    INVALID_FIELD_PREFIX = "invalid_field_prefix"
    INVALID_DATA_TYPE = "invalid_data_type"
    INVALID_CONSTRAINT = "invalid_constraint"
    MISSING_PRIMARY_KEY = "missing_primary_key"
    INVALID_FOREIGN_KEY = "invalid_foreign_key"
    CIRCULAR_REFERENCE = "circular_reference"
    INVALID_RELATIONSHIP = "invalid_relationship"
    INVALID_CARDINALITY = "invalid_cardinality"
    MISSING_REQUIRED_ENTITY = "missing_required_entity"
    INCONSISTENT_RELATIONSHIP = "inconsistent_relationship"


_ERROR_LABELS = {
    ValidationErrorKind.DUPLICATE_ENTITY_NAME: "Duplicate entity name",
    ValidationErrorKind.DUPLICATE_FIELD_NAME: "Duplicate field name",
    ValidationErrorKind.INVALID_FIELD_PREFIX: "Invalid field prefix",
    ValidationErrorKind.INVALID_DATA_TYPE: "Invalid data type",
    ValidationErrorKind.INVALID_CONSTRAINT: "Invalid constraint",
    ValidationErrorKind.MISSING_PRIMARY_KEY: "Missing primary key",
    ValidationErrorKind.INVALID_FOREIGN_KEY: "Invalid foreign key",
    ValidationErrorKind.CIRCULAR_REFERENCE: "Circular reference detected",
    ValidationErrorKind.INVALID_RELATIONSHIP: "Invalid relationship",
    ValidationErrorKind.INVALID_CARDINALITY: "Invalid cardinality",
    ValidationErrorKind.MISSING_REQUIRED_ENTITY: "Missing required entity",
    ValidationErrorKind.INCONSISTENT_RELATIONSHIP: "Inconsistent relationship",
}


@dataclass
class SchemaValidationError:
    """One validation error with the identifiers it concerns.

    `target` is the offending value: the missing entity name, the malformed
    type or constraint text, and so on.
    """

    kind: ValidationErrorKind
    detail: str
    entity: str | None = None
    field: str | None = None
    target: str | None = None

    @property
    def message(self) -> str:
        return f"{_ERROR_LABELS[self.kind]}: {self.detail}"

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationResult:
    """Outcome of validating one document."""

    is_valid: bool
    errors: list[SchemaValidationError] = dataclass_field(default_factory=list)
    warnings: list[str] = dataclass_field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def errors_of(self, kind: ValidationErrorKind) -> list[SchemaValidationError]:
        return [error for error in self.errors if error.kind is kind]


# --- Vocabulary ---

SIMPLE_TYPES = frozenset(
    {
        "String",
        "Int",
        "Float",
        "Double",
        "Boolean",
        "DateTime",
        "Date",
        "Time",
        "UUID",
        "Guid",
        "ObjectId",
        "Binary",
        "JSON",
        "Text",
        "LongText",
        "Decimal",
        "Money",
        "Timestamp",
        "TinyInt",
        "SmallInt",
        "BigInt",
        "Bit",
        "VarBinary",
        "Image",
        "XML",
        "Geometry",
        "Geography",
        "Point",
        "Polygon",
        "LineString",
        "Buffer",
        "BinData",
    }
)

# Natures that make sense for each cardinality. Pairs outside this table warn.
_SANE_NATURES: dict[RelationshipCardinality, frozenset[RelationshipNature]] = {
    RelationshipCardinality.ONE_TO_ONE: frozenset(
        {
            RelationshipNature.COMPOSITION,
            RelationshipNature.AGGREGATION,
            RelationshipNature.ASSOCIATION,
            RelationshipNature.DEPENDENCY,
        }
    ),
    RelationshipCardinality.ONE_TO_MANY: frozenset(
        {
            RelationshipNature.COMPOSITION,
            RelationshipNature.AGGREGATION,
            RelationshipNature.ASSOCIATION,
            RelationshipNature.DEPENDENCY,
        }
    ),
    RelationshipCardinality.MANY_TO_MANY: frozenset(
        {RelationshipNature.ASSOCIATION, RelationshipNature.AGGREGATION}
    ),
    RelationshipCardinality.INHERITANCE: frozenset({RelationshipNature.INHERITANCE}),
    RelationshipCardinality.COMPOSITION: frozenset({RelationshipNature.COMPOSITION}),
    RelationshipCardinality.AGGREGATION: frozenset({RelationshipNature.AGGREGATION}),
}

_IDENTIFIER = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
_FOREIGN_KEY = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_]*)$")


# --- Validation Logic ---


@dataclass
class _Context:
    """Shared lookups plus the error/warning sinks for one run."""

    document: Document
    rules: HeuristicRules
    entity_names: set[str]
    entities_by_name: dict[str, Entity]
    errors: list[SchemaValidationError] = dataclass_field(default_factory=list)
    warnings: list[str] = dataclass_field(default_factory=list)

    def error(
        self,
        kind: ValidationErrorKind,
        detail: str,
        entity: str | None = None,
        field: str | None = None,
        target: str | None = None,
    ) -> None:
        self.errors.append(SchemaValidationError(kind, detail, entity, field, target))

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def missing_entity(
        self, name: str, referrer: str, entity: str | None = None, field: str | None = None
    ) -> None:
        self.error(
            ValidationErrorKind.MISSING_REQUIRED_ENTITY,
            f"{name} (referenced by {referrer})",
            entity=entity,
            field=field,
            target=name,
        )


def validate_document(document: Document, rules: HeuristicRules | None = None) -> ValidationResult:
    """Validate a parsed document and return every error and warning found.

    Never raises for problems in the document itself.
    """
    resolved = resolve_document(document)
    entities_by_name: dict[str, Entity] = {}
    for entity in resolved.entities:
        entities_by_name.setdefault(entity.name, entity)

    ctx = _Context(
        document=resolved,
        rules=rules or HeuristicRules(),
        entity_names=set(entities_by_name),
        entities_by_name=entities_by_name,
    )

    _check_header(ctx)
    _check_relationships(ctx)
    _check_structure(ctx)
    _check_data_types(ctx)
    _check_constraints(ctx)
    _check_heuristics(ctx)
    _check_cross_references(ctx)

    logger.debug(
        f"Validated document: {len(ctx.errors)} errors, {len(ctx.warnings)} warnings"
    )
    return ValidationResult(is_valid=not ctx.errors, errors=ctx.errors, warnings=ctx.warnings)


# --- Header Pass ---


def _check_header(ctx: _Context) -> None:
    header = ctx.document.header
    if header is None:
        ctx.warn("No header found in document")
        return
    if not header.filename:
        ctx.warn("Empty filename in header")
    elif not _IDENTIFIER.match(header.filename):
        ctx.warn(f"Header filename '{header.filename}' should be a valid identifier")


# --- Relationship Pass ---


def _check_relationships(ctx: _Context) -> None:
    if ctx.document.relationship_definitions is None:
        ctx.warn("No relationship definitions found")
        return

    for relationship in ctx.document.relationships:
        label = _relationship_label(relationship)
        referenced = [relationship.from_entity, relationship.to_entity]
        if relationship.via_entity:
            referenced.append(relationship.via_entity)

        reported: set[str] = set()
        for name in referenced:
            if name not in ctx.entity_names and name not in reported:
                reported.add(name)
                ctx.missing_entity(name, f"relationship {label}")

        _check_pairing(ctx, relationship, label)

    _check_inheritance_cycles(ctx)


def _relationship_label(relationship: Relationship) -> str:
    return (
        f"{relationship.from_entity} -> {relationship.to_entity} "
        f"[{relationship.cardinality.value}]"
    )


def _check_pairing(ctx: _Context, relationship: Relationship, label: str) -> None:
    nature = relationship.nature
    if nature is not None and nature not in _SANE_NATURES[relationship.cardinality]:
        ctx.warn(f"Relationship {label} has unusual nature '{nature.value}'")

    if (
        relationship.cardinality is RelationshipCardinality.MANY_TO_MANY
        and relationship.via_entity is None
    ):
        ctx.warn(
            f"Many-to-many relationship without via entity: "
            f"{relationship.from_entity} -> {relationship.to_entity}"
        )


def _check_inheritance_cycles(ctx: _Context) -> None:
    """Depth-first search over inheritance edges only; one error per back edge."""
    graph: dict[str, list[str]] = {}
    for relationship in ctx.document.relationships:
        if relationship.cardinality is RelationshipCardinality.INHERITANCE:
            graph.setdefault(relationship.from_entity, []).append(relationship.to_entity)

    visited: set[str] = set()
    for root in list(graph):
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        pending = [iter(graph.get(root, []))]
        while pending:
            neighbor = next(pending[-1], None)
            if neighbor is None:
                pending.pop()
                on_path.discard(path.pop())
            elif neighbor in on_path:
                cycle = path[path.index(neighbor) :] + [neighbor]
                ctx.error(
                    ValidationErrorKind.CIRCULAR_REFERENCE,
                    f"Inheritance cycle detected involving {neighbor}: {' -> '.join(cycle)}",
                    entity=neighbor,
                )
            elif neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                on_path.add(neighbor)
                pending.append(iter(graph.get(neighbor, [])))


# --- Structure Pass ---


def _check_structure(ctx: _Context) -> None:
    seen_entities: set[str] = set()
    for entity in ctx.document.entities:
        if entity.name in seen_entities:
            ctx.error(
                ValidationErrorKind.DUPLICATE_ENTITY_NAME,
                entity.name,
                entity=entity.name,
            )
        seen_entities.add(entity.name)

        seen_fields: set[str] = set()
        for f in entity.fields:
            for name in f.names:
                if name in seen_fields:
                    ctx.error(
                        ValidationErrorKind.DUPLICATE_FIELD_NAME,
                        f"'{name}' in entity '{entity.name}'",
                        entity=entity.name,
                        field=name,
                    )
                seen_fields.add(name)
            _check_prefixes(ctx, entity, f)

        if not entity.primary_key_fields:
            ctx.error(
                ValidationErrorKind.MISSING_PRIMARY_KEY,
                f"entity '{entity.name}' has no field with a PK constraint",
                entity=entity.name,
            )


def _check_prefixes(ctx: _Context, entity: Entity, f: Field) -> None:
    if f.has_prefix(FieldPrefix.REQUIRED) and f.has_prefix(FieldPrefix.OPTIONAL):
        ctx.error(
            ValidationErrorKind.INVALID_FIELD_PREFIX,
            f"field '{f.display_name}' in entity '{entity.name}' cannot be both "
            f"required (*) and optional (-)",
            entity=entity.name,
            field=f.display_name,
            target="".join(p.value for p in f.prefixes),
        )
    if f.has_prefix(FieldPrefix.REQUIRED) and f.has_constraint("SYSTEM"):
        ctx.warn(
            f"System field '{f.display_name}' in entity '{entity.name}' should not be required"
        )


# --- Data Type Pass ---


def _check_data_types(ctx: _Context) -> None:
    for entity in ctx.document.entities:
        for f in entity.fields:
            _check_data_type(ctx, entity, f, f.data_type)


def _check_data_type(ctx: _Context, entity: Entity, f: Field, data_type: DataType) -> None:
    where = f"field '{f.display_name}' in entity '{entity.name}'"
    match data_type:
        case SimpleType(name=name):
            _check_simple_type(ctx, name, where)
        case ParametricType():
            _check_parametric_type(ctx, entity, f, data_type, where)
        case ArrayType(inner=inner):
            _check_data_type(ctx, entity, f, inner)
        case JsonObjectType(fields=properties):
            seen: set[str] = set()
            for prop in properties:
                if prop.name in seen:
                    ctx.warn(f"Duplicate JSON property '{prop.name}' in {where}")
                seen.add(prop.name)
                _check_data_type(ctx, entity, f, prop.data_type)
        case RelationshipArrayType(entity=target, cardinality=cardinality):
            if target not in ctx.entity_names:
                ctx.missing_entity(target, where, entity=entity.name, field=f.display_name)
            _check_cardinality(ctx, entity, f, target, cardinality)
        case EmbeddedEntityType(entity=target):
            if target not in ctx.entity_names:
                ctx.missing_entity(target, where, entity=entity.name, field=f.display_name)


def _check_simple_type(ctx: _Context, name: str, where: str) -> None:
    if name in SIMPLE_TYPES:
        return
    referenced = ctx.entities_by_name.get(name)
    if referenced is not None:
        ctx.warn(
            f"Type '{name}' for {where} names standard entity '{name}'; "
            f"use a relationship array or an FK constraint"
        )
    else:
        ctx.warn(f"Unknown data type '{name}' for {where}")


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


def _check_parametric_type(
    ctx: _Context, entity: Entity, f: Field, data_type: ParametricType, where: str
) -> None:
    name, params = data_type.name, data_type.params
    problem = None
    if name in ("String", "VarChar", "Char"):
        if len(params) != 1 or not _is_int(params[0]):
            problem = f"{name} requires a single integer parameter"
    elif name in ("Decimal", "Numeric"):
        if len(params) != 2 or not all(_is_int(p) for p in params):
            problem = f"{name} requires two integer parameters (precision, scale)"
    elif name == "Enum":
        if not [p for p in params if p]:
            problem = "Enum requires at least one value"
    else:
        ctx.warn(f"Unknown parametric type '{name}' for {where}")
        return

    if problem:
        ctx.error(
            ValidationErrorKind.INVALID_DATA_TYPE,
            f"{problem} ({where})",
            entity=entity.name,
            field=f.display_name,
            target=f"{name}({','.join(params)})",
        )


def _check_cardinality(
    ctx: _Context, entity: Entity, f: Field, target: str, cardinality: Cardinality
) -> None:
    where = f"{target}[{cardinality}] on field '{f.display_name}' in entity '{entity.name}'"
    if cardinality.min < 0:
        ctx.error(
            ValidationErrorKind.INVALID_CARDINALITY,
            f"minimum cannot be negative: {where}",
            entity=entity.name,
            field=f.display_name,
            target=str(cardinality),
        )
    if cardinality.max is not None and cardinality.max < cardinality.min:
        ctx.error(
            ValidationErrorKind.INVALID_CARDINALITY,
            f"maximum cannot be less than minimum: {where}",
            entity=entity.name,
            field=f.display_name,
            target=str(cardinality),
        )


# --- Constraint Pass ---


def _check_constraints(ctx: _Context) -> None:
    for entity in ctx.document.entities:
        for f in entity.fields:
            seen: set[str] = set()
            for constraint in f.constraints:
                key = constraint.name.upper()
                if key in seen:
                    ctx.warn(
                        f"Duplicate constraint '{constraint.name}' for field "
                        f"'{f.display_name}' in entity '{entity.name}'"
                    )
                seen.add(key)

                rule = _CONSTRAINT_RULES.get(key)
                if rule is not None:
                    rule(ctx, entity, f, constraint)
                elif key not in KNOWN_CONSTRAINTS:
                    ctx.warn(
                        f"Unknown constraint '{constraint.name}' for field "
                        f"'{f.display_name}' in entity '{entity.name}'"
                    )


def _check_primary_key(ctx: _Context, entity: Entity, f: Field, constraint: Constraint) -> None:
    if constraint.value is not None:
        ctx.warn(
            f"Primary key constraint on '{f.display_name}' in entity '{entity.name}' "
            f"should not have a value"
        )


def _check_foreign_key(ctx: _Context, entity: Entity, f: Field, constraint: Constraint) -> None:
    if constraint.value is None:
        ctx.error(
            ValidationErrorKind.INVALID_CONSTRAINT,
            f"FK on field '{f.display_name}' in entity '{entity.name}' requires a value",
            entity=entity.name,
            field=f.display_name,
            target=str(constraint),
        )
        return

    match = _FOREIGN_KEY.match(constraint.value.strip())
    if match is None:
        ctx.error(
            ValidationErrorKind.INVALID_FOREIGN_KEY,
            f"'{constraint.value}' on field '{f.display_name}' in entity '{entity.name}' "
            f"should be EntityName.fieldName",
            entity=entity.name,
            field=f.display_name,
            target=constraint.value,
        )
        return

    referenced_entity, referenced_field = match.groups()
    target = ctx.entities_by_name.get(referenced_entity)
    if target is None:
        ctx.missing_entity(
            referenced_entity,
            f"FK on field '{f.display_name}' in entity '{entity.name}'",
            entity=entity.name,
            field=f.display_name,
        )
    elif referenced_field not in target.field_names:
        ctx.warn(
            f"Foreign key '{constraint.value}' on field '{f.display_name}' in entity "
            f"'{entity.name}' references unknown field '{referenced_field}'"
        )


def _require_value(ctx: _Context, entity: Entity, f: Field, constraint: Constraint) -> None:
    if constraint.value is None:
        ctx.error(
            ValidationErrorKind.INVALID_CONSTRAINT,
            f"{constraint.name} on field '{f.display_name}' in entity '{entity.name}' "
            f"requires a value",
            entity=entity.name,
            field=f.display_name,
            target=constraint.name,
        )


_CONSTRAINT_RULES = {
    "PK": _check_primary_key,
    "FK": _check_foreign_key,
    "DEFAULT": _require_value,
    "ENUM": _require_value,
}


# --- Heuristic Pass ---


def _check_heuristics(ctx: _Context) -> None:
    rules = ctx.rules
    for entity in ctx.document.entities:
        too_few = len(entity.fields) < rules.min_entity_fields
        if too_few and not rules.allows_few_fields(entity.name):
            ctx.warn(
                f"Entity '{entity.name}' has only {len(entity.fields)} fields - "
                f"may be missing complex structures"
            )

        for f in entity.fields:
            data_type = f.data_type
            too_many = isinstance(data_type, JsonObjectType) and (
                len(data_type.fields) > rules.max_json_properties
            )
            if too_many:
                ctx.warn(
                    f"Field '{f.display_name}' in entity '{entity.name}' is a JSON object with "
                    f"{len(data_type.fields)} properties - consider an embedded entity"
                )
            if isinstance(data_type, ArrayType) and isinstance(data_type.inner, JsonObjectType):
                ctx.warn(
                    f"Field '{f.display_name}' in entity '{entity.name}' is Array<JSON> - "
                    f"consider an embedded entity relationship"
                )

        for pattern, hints in rules.expected_substructures(entity.name):
            if not rules.has_hint(entity.field_names, hints):
                ctx.warn(
                    f"Entity '{entity.name}' may be missing expected complex fields: "
                    f"{', '.join(hints)}"
                )


# --- Cross-Reference Pass ---


def _check_cross_references(ctx: _Context) -> None:
    schema = ctx.document.schema_definition
    declared = schema.modules
    present = [section.name for section in schema.sections]
    for name in declared:
        if name not in present:
            ctx.warn(f"Module '{name}' is declared but has no section")
    for name in present:
        if name not in declared:
            ctx.warn(f"Module section '{name}' is not declared in the module list")

    relationships = ctx.document.relationships
    if relationships:
        linked = {(r.from_entity, r.to_entity) for r in relationships}
        linked |= {(r.to_entity, r.from_entity) for r in relationships}
        for r in relationships:
            if r.via_entity:
                linked |= {(r.via_entity, r.from_entity), (r.via_entity, r.to_entity)}
                linked |= {(r.from_entity, r.via_entity), (r.to_entity, r.via_entity)}

        for entity in ctx.document.entities:
            for f in entity.fields:
                fk = f.constraint("FK")
                if fk is None or fk.value is None:
                    continue
                match = _FOREIGN_KEY.match(fk.value.strip())
                if match is None or match.group(1) not in ctx.entity_names:
                    continue
                referenced = match.group(1)
                if referenced != entity.name and (entity.name, referenced) not in linked:
                    ctx.warn(
                        f"Foreign key {entity.name}.{f.name} -> {fk.value} has no matching "
                        f"relationship definition"
                    )

    for entity in ctx.document.entities:
        for section in entity.relationship_sections:
            for detail in section.details:
                for name in (detail.from_entity, detail.to_entity):
                    if name not in ctx.entity_names:
                        ctx.warn(
                            f"Relationship detail in entity '{entity.name}' references "
                            f"unknown entity '{name}'"
                        )
