"""Render a `Document` back to canonical DBSoup text.

The output parses back to an equal document (apart from reordering the caller
asked for through sort/group options), and formatting that output again gives
the same text.
"""

from dataclasses import dataclass

from dbsoup.schema.grammar import (
    HEADER_EXTENSION,
    RELATIONSHIP_BLOCK,
    RELATIONSHIP_ITEM_PREFIX,
    RELATIONSHIPS_SECTION,
    SCHEMA_BLOCK,
    starts_new_constraint,
)
from dbsoup.schema.model import (
    Constraint,
    Document,
    Entity,
    EntityType,
    FeatureSection,
    Field,
    ModuleSection,
    Relationship,
    RelationshipCardinality,
    RelationshipSection,
    type_to_string,
)

STANDARD_SEPARATOR = "=========="
EMBEDDED_SEPARATOR = "/=========/"

RELATIONSHIP_GROUPS: dict[RelationshipCardinality, str] = {
    RelationshipCardinality.ONE_TO_ONE: "One-to-One Relationships",
    RelationshipCardinality.ONE_TO_MANY: "One-to-Many Relationships",
    RelationshipCardinality.MANY_TO_MANY: "Many-to-Many Relationships",
    RelationshipCardinality.INHERITANCE: "Inheritance Relationships",
    RelationshipCardinality.COMPOSITION: "Composition Relationships",
    RelationshipCardinality.AGGREGATION: "Aggregation Relationships",
}


@dataclass
class GeneratorConfig:
    """Layout and ordering options for `format_document`."""

    field_name_width: int = 15
    data_type_width: int = 20
    constraint_column_start: int = 40
    include_comments: bool = True
    include_front_matter: bool = True
    group_relationships: bool = False
    sort_entities_alphabetically: bool = False
    sort_fields_alphabetically: bool = False


class DBSoupGenerator:
    """Line-by-line renderer. One instance can format many documents."""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()
        self._lines: list[str] = []

    def generate(self, document: Document) -> str:
        self._lines = []
        self._front_matter(document.metadata)
        if document.header is not None:
            self._emit(f"@{document.header.filename}{HEADER_EXTENSION}", "")
        if document.comments and self.config.include_comments:
            for comment in document.comments:
                self._emit(f"# {comment}".rstrip())
            self._emit("")
        if document.relationship_definitions is not None:
            self._relationships(document.relationships)
        self._schema(document)

        while self._lines and not self._lines[-1]:
            self._lines.pop()
        return "\n".join(self._lines) + "\n"

    def _emit(self, *lines: str) -> None:
        self._lines.extend(lines)

    # --- Preamble ---

    def _front_matter(self, metadata: dict[str, str]) -> None:
        if not metadata or not self.config.include_front_matter:
            return
        self._emit("---")
        for key, value in metadata.items():
            self._emit(f"{key}: {value}".rstrip())
        self._emit("---", "")

    # --- Relationship Definitions ---

    def _relationships(self, relationships: list[Relationship]) -> None:
        self._emit(RELATIONSHIP_BLOCK)
        if not self.config.group_relationships:
            for relationship in relationships:
                self._emit(self.relationship_line(relationship))
            self._emit("")
            return

        for cardinality, title in RELATIONSHIP_GROUPS.items():
            group = [r for r in relationships if r.cardinality is cardinality]
            if not group:
                continue
            self._emit(f"# {title}")
            for relationship in group:
                self._emit(self.relationship_line(relationship))
            self._emit("")

    def relationship_line(self, relationship: Relationship) -> str:
        line = (
            f"{relationship.from_entity} -> {relationship.to_entity} "
            f"[{relationship.cardinality.value}]"
        )
        if relationship.nature is not None:
            line += f" ({relationship.nature.value})"
        if relationship.via_entity:
            line += f" via {relationship.via_entity}"
        return line + self._comment(relationship.comment)

    # --- Schema ---

    def _schema(self, document: Document) -> None:
        schema = document.schema_definition
        self._emit(SCHEMA_BLOCK)
        for module in schema.modules:
            self._emit(f"+ {module}")
        self._emit("")
        for section in schema.sections:
            self._module(section)

    def _module(self, section: ModuleSection) -> None:
        self._emit(f"=== {section.name} ===")
        if section.description:
            self._emit(section.description)
        self._emit("")

        entities = section.entities
        if self.config.sort_entities_alphabetically:
            entities = sorted(entities, key=lambda e: e.name)
        for entity in entities:
            self._entity(entity)

    def _entity(self, entity: Entity) -> None:
        self._emit(entity.name + self._comment(entity.comment))
        self._emit(EMBEDDED_SEPARATOR if entity.type is EntityType.EMBEDDED else STANDARD_SEPARATOR)

        fields = entity.fields
        if self.config.sort_fields_alphabetically:
            fields = sorted(fields, key=lambda f: f.name)
        for f in fields:
            self._emit(self.field_line(f))

        for relationship_section in entity.relationship_sections:
            self._relationship_section(relationship_section)
        for feature_section in entity.feature_sections:
            self._feature_section(feature_section)
        self._emit("")

    def field_line(self, f: Field) -> str:
        """Column-aligned field line: prefixes+names, `: type`, constraints, comment."""
        config = self.config
        prefixes = "".join(prefix.value for prefix in f.prefixes)
        line = _pad(f"{prefixes} {f.display_name}", config.field_name_width)
        line += _pad(f": {type_to_string(f.data_type)}", config.data_type_width)

        if f.constraints:
            line = line.rstrip()
            line = _pad(line, config.constraint_column_start)
            line += " ".join(f"[{group}]" for group in _constraint_groups(f.constraints))

        return line.rstrip() + self._comment(f.comment)

    def _relationship_section(self, section: RelationshipSection) -> None:
        self._emit(RELATIONSHIPS_SECTION)
        for text in section.relationships:
            self._emit(f"{RELATIONSHIP_ITEM_PREFIX} {text}".rstrip())
        for detail in section.details:
            line = (
                f"## {detail.from_entity}.{detail.from_field} -> "
                f"{detail.to_entity}.{detail.to_field}"
            )
            self._emit(line + self._comment(detail.comment))

    def _feature_section(self, section: FeatureSection) -> None:
        self._emit(f"# {section.title}")
        self._emit(*section.content)

    def _comment(self, comment: str | None) -> str:
        if comment is None or not self.config.include_comments:
            return ""
        return f" # {comment}"


def _constraint_groups(constraints: list[Constraint]) -> list[str]:
    """Join constraints into as few `[...]` groups as parse back unchanged."""
    groups: list[list[Constraint]] = []
    for constraint in constraints:
        previous = groups[-1][-1] if groups else None
        if previous is None or not starts_new_constraint(
            constraint.name, constraint.value is not None, previous
        ):
            groups.append([])
        groups[-1].append(constraint)
    return [",".join(str(c) for c in group) for group in groups]


def _pad(text: str, width: int) -> str:
    """Left-justify to `width`, always leaving at least one trailing space."""
    if len(text) >= width:
        return text + " "
    return text.ljust(width)


def format_document(document: Document, config: GeneratorConfig | None = None) -> str:
    """Render `document` as DBSoup text."""
    return DBSoupGenerator(config).generate(document)
