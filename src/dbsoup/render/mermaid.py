"""Mermaid `erDiagram` output for a parsed document.

Entity blocks list each field as `type name KEYS "facets"`; fields that hold
a declared embedded entity carry an `embedded` facet. Declared relationships
become edges labelled with their comment or a verb derived from the
cardinality.
"""

import re
from dataclasses import dataclass
from enum import Enum

from dbsoup.schema.model import (
    ArrayType,
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
    SimpleType,
)
from dbsoup.schema.resolver import resolve_document


class MermaidTheme(Enum):
    DEFAULT = "default"
    DARK = "dark"
    NEUTRAL = "neutral"
    BASE = "base"

    @property
    def directive(self) -> str:
        return f"%%{{init: {{'theme':'{self.value}'}}}}%%"


@dataclass
class MermaidConfig:
    include_comments: bool = True
    include_field_types: bool = True
    include_constraints: bool = True
    max_fields_per_entity: int = 15
    theme: MermaidTheme = MermaidTheme.DEFAULT


CARDINALITY_ARROWS: dict[RelationshipCardinality, str] = {
    RelationshipCardinality.ONE_TO_ONE: "||--||",
    RelationshipCardinality.ONE_TO_MANY: "||--o{",
    RelationshipCardinality.MANY_TO_MANY: "}o--o{",
    RelationshipCardinality.COMPOSITION: "||--o{",
    RelationshipCardinality.AGGREGATION: "||--o{",
    RelationshipCardinality.INHERITANCE: "||--||",
}

CARDINALITY_VERBS: dict[RelationshipCardinality, str] = {
    RelationshipCardinality.ONE_TO_ONE: "relates to",
    RelationshipCardinality.ONE_TO_MANY: "has",
    RelationshipCardinality.MANY_TO_MANY: "relates to",
    RelationshipCardinality.COMPOSITION: "contains",
    RelationshipCardinality.AGGREGATION: "includes",
    RelationshipCardinality.INHERITANCE: "inherits",
}

# Constraint name -> Mermaid attribute key
_KEYS = {"PK": "PK", "FK": "FK", "UK": "UK", "UNIQUE": "UK"}

_PREFIX_FACETS = {
    FieldPrefix.REQUIRED: "required",
    FieldPrefix.OPTIONAL: "optional",
    FieldPrefix.INDEXED: "indexed",
    FieldPrefix.SENSITIVE: "sensitive",
    FieldPrefix.MASKED: "masked",
    FieldPrefix.PARTITIONED: "partitioned",
    FieldPrefix.AUDIT: "audit",
}

_UNSAFE = re.compile(r"[^A-Za-z0-9_]+")


def sanitize(name: str) -> str:
    """Collapse characters Mermaid cannot take in identifiers to `_`."""
    return _UNSAFE.sub("_", name).strip("_") or "unnamed"


def mermaid_type(data_type: DataType) -> str:
    match data_type:
        case SimpleType(name=name):
            return sanitize(name)
        case ParametricType(name=name, params=params):
            return sanitize("_".join([name, *params]))
        case ArrayType(inner=inner):
            return f"Array_{mermaid_type(inner)}"
        case JsonObjectType():
            return "JSON"
        case RelationshipArrayType(entity=entity):
            return f"Array_{sanitize(entity)}"
        case EmbeddedEntityType(entity=entity):
            return sanitize(entity)
    return "String"


def _embeds_entity(data_type: DataType) -> bool:
    if isinstance(data_type, ArrayType):
        return _embeds_entity(data_type.inner)
    return isinstance(data_type, EmbeddedEntityType)


def _quote(text: str) -> str:
    return '"' + text.replace('"', "'") + '"'


class MermaidGenerator:
    def __init__(self, config: MermaidConfig | None = None):
        self.config = config or MermaidConfig()

    def generate(self, document: Document) -> str:
        document = resolve_document(document)
        lines = [self.config.theme.directive, "erDiagram"]
        if self.config.include_comments and document.header is not None:
            lines.append(f"    %% Generated from: {document.header.filename}")

        for entity in document.entities:
            lines.extend(self._entity(entity))

        if document.relationships:
            lines.append("")
            lines.append("    %% Relationships")
            lines.extend(self._relationship(r) for r in document.relationships)
        return "\n".join(lines) + "\n"

    def _entity(self, entity: Entity) -> list[str]:
        lines = [f"    {sanitize(entity.name)} {{"]
        if self.config.include_comments and entity.comment:
            lines.append(f"        %% {entity.comment}")

        limit = self.config.max_fields_per_entity
        for f in entity.fields[:limit]:
            lines.append(f"        {self._attribute(f)}")
        if len(entity.fields) > limit:
            remaining = len(entity.fields) - limit
            lines.append(f'        String truncated_fields "... and {remaining} more fields"')
        lines.append("    }")
        return lines

    def _attribute(self, f: Field) -> str:
        data_type = mermaid_type(f.data_type) if self.config.include_field_types else "String"
        parts = [data_type, sanitize(f.name)]
        if not self.config.include_constraints:
            return " ".join(parts)

        keys: list[str] = []
        facets = [_PREFIX_FACETS[p] for p in dict.fromkeys(f.prefixes)]
        if _embeds_entity(f.data_type):
            facets.append("embedded")
        for constraint in f.constraints:
            key = _KEYS.get(constraint.name.upper())
            if key is None:
                facets.append(str(constraint))
            elif key not in keys:
                keys.append(key)

        if keys:
            parts.append(",".join(keys))
        if facets:
            parts.append(_quote(", ".join(facets)))
        return " ".join(parts)

    def _relationship(self, relationship: Relationship) -> str:
        arrow = CARDINALITY_ARROWS[relationship.cardinality]
        label = relationship.comment or CARDINALITY_VERBS[relationship.cardinality]
        return (
            f"    {sanitize(relationship.from_entity)} {arrow} "
            f"{sanitize(relationship.to_entity)} : {_quote(label)}"
        )


def generate_mermaid(document: Document, config: MermaidConfig | None = None) -> str:
    """Render `document` as a Mermaid ER diagram."""
    return MermaidGenerator(config).generate(document)
