"""Document model for the DBSoup schema notation.

A parsed `.dbsoup` file becomes a tree of plain dataclasses rooted at
`Document`. The parser builds the tree once; everything downstream (validator,
generator, statistics, diagrams) only reads it.

Data types form a closed recursive union (`DataType`). Each variant carries a
constant `kind` tag so a serialized document is self-describing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, TypeAlias


# --- Enumerations ---


class RelationshipCardinality(Enum):
    """Cardinality token of a declared relationship line."""

    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:M"
    MANY_TO_MANY = "M:N"
    INHERITANCE = "inheritance"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"


class RelationshipNature(Enum):
    """Ownership semantics of a declared relationship."""

    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"
    INHERITANCE = "inheritance"
    DEPENDENCY = "dependency"


class EntityType(Enum):
    STANDARD = "standard"
    EMBEDDED = "embedded"


class FieldPrefix(Enum):
    """Single-character sigils that open a field line."""

    REQUIRED = "*"
    OPTIONAL = "-"
    INDEXED = "!"
    SENSITIVE = "@"
    MASKED = "~"
    PARTITIONED = ">"
    AUDIT = "$"


PREFIX_CHARACTERS = frozenset(prefix.value for prefix in FieldPrefix)


# --- Data Types ---


@dataclass(frozen=True)
class Cardinality:
    """Multiplicity bound of a relationship array. `max=None` means unlimited."""

    min: int
    max: int | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.max is None

    def __str__(self) -> str:
        upper = "*" if self.max is None else str(self.max)
        return f"{self.min}..{upper}"


@dataclass(frozen=True)
class SimpleType:
    """A bare identifier such as `String` or `DateTime`."""

    name: str
    kind: Literal["simple"] = "simple"


@dataclass(frozen=True)
class ParametricType:
    """`Name(p1, p2, ...)`, e.g. `String(50)` or `Decimal(10,2)`."""

    name: str
    params: tuple[str, ...] = ()
    kind: Literal["parametric"] = "parametric"


@dataclass(frozen=True)
class ArrayType:
    """`Array<T>` with an arbitrary inner type."""

    inner: "DataType"
    kind: Literal["array"] = "array"


@dataclass(frozen=True)
class JsonField:
    name: str
    data_type: "DataType"


@dataclass(frozen=True)
class JsonObjectType:
    """`JSON` (opaque) or `JSON{name: Type, ...}` (declared properties)."""

    fields: tuple[JsonField, ...] = ()
    kind: Literal["json"] = "json"


@dataclass(frozen=True)
class RelationshipArrayType:
    """`Entity[min..max]`, a bounded collection of another entity."""

    entity: str
    cardinality: Cardinality
    kind: Literal["relationship_array"] = "relationship_array"


@dataclass(frozen=True)
class EmbeddedEntityType:
    """A bare identifier known to name a declared embedded entity.

    The parser never produces this variant; see `dbsoup.schema.resolver`.
    """

    entity: str
    kind: Literal["embedded_entity"] = "embedded_entity"


DataType: TypeAlias = (
    SimpleType
    | ParametricType
    | ArrayType
    | JsonObjectType
    | RelationshipArrayType
    | EmbeddedEntityType
)


def type_to_string(data_type: DataType) -> str:
    """Render a data type back to its surface syntax."""
    match data_type:
        case SimpleType(name=name):
            return name
        case ParametricType(name=name, params=params):
            return f"{name}({','.join(params)})"
        case ArrayType(inner=inner):
            return f"Array<{type_to_string(inner)}>"
        case JsonObjectType(fields=fields):
            if not fields:
                return "JSON"
            inner = ", ".join(f"{f.name}: {type_to_string(f.data_type)}" for f in fields)
            return f"JSON{{{inner}}}"
        case RelationshipArrayType(entity=entity, cardinality=cardinality):
            return f"{entity}[{cardinality}]"
        case EmbeddedEntityType(entity=entity):
            return entity
    # Hand-built documents may carry anything here; render what we can
    return str(data_type)


# --- Fields and Entities ---


@dataclass
class Constraint:
    """A bracketed `NAME` or `NAME:value` annotation on a field."""

    name: str
    value: str | None = None

    def __str__(self) -> str:
        if self.value is None:
            return self.name
        return f"{self.name}:{self.value}"


@dataclass
class Field:
    prefixes: list[FieldPrefix]
    names: list[str]
    data_type: DataType
    constraints: list[Constraint] = field(default_factory=list)
    comment: str | None = None

    @property
    def name(self) -> str:
        """Primary name (first of the comma-joined synonyms)."""
        return self.names[0] if self.names else ""

    @property
    def display_name(self) -> str:
        return ", ".join(self.names)

    def has_prefix(self, prefix: FieldPrefix) -> bool:
        return prefix in self.prefixes

    def constraint(self, name: str) -> Constraint | None:
        """Return the first constraint called `name` (case-insensitive)."""
        wanted = name.upper()
        for constraint in self.constraints:
            if constraint.name.upper() == wanted:
                return constraint
        return None

    def has_constraint(self, name: str) -> bool:
        return self.constraint(name) is not None


@dataclass
class RelationshipDetail:
    """`## From.field -> To.field # comment` inside a RELATIONSHIPS section."""

    from_entity: str
    from_field: str
    to_entity: str
    to_field: str
    comment: str | None = None


@dataclass
class RelationshipSection:
    relationships: list[str] = field(default_factory=list)
    details: list[RelationshipDetail] = field(default_factory=list)


@dataclass
class FeatureSection:
    """Free-text `# TITLE` block under an entity."""

    title: str
    content: list[str] = field(default_factory=list)


@dataclass
class Entity:
    name: str
    type: EntityType
    fields: list[Field] = field(default_factory=list)
    relationship_sections: list[RelationshipSection] = field(default_factory=list)
    feature_sections: list[FeatureSection] = field(default_factory=list)
    comment: str | None = None

    @property
    def is_embedded(self) -> bool:
        return self.type is EntityType.EMBEDDED

    @property
    def primary_key_fields(self) -> list[Field]:
        return [f for f in self.fields if f.has_constraint("PK")]

    @property
    def field_names(self) -> list[str]:
        return [name for f in self.fields for name in f.names]


# --- Document Structure ---


@dataclass
class ModuleSection:
    name: str
    description: str | None = None
    entities: list[Entity] = field(default_factory=list)


@dataclass
class SchemaDefinition:
    """Module table of contents plus the module sections themselves."""

    modules: list[str] = field(default_factory=list)
    sections: list[ModuleSection] = field(default_factory=list)


@dataclass
class Relationship:
    from_entity: str
    to_entity: str
    cardinality: RelationshipCardinality
    nature: RelationshipNature | None = None
    via_entity: str | None = None
    comment: str | None = None


@dataclass
class RelationshipDefinitions:
    relationships: list[Relationship] = field(default_factory=list)


@dataclass
class Header:
    """`@filename.dbsoup`; `filename` excludes the `@` and the extension."""

    filename: str


@dataclass
class Document:
    """Root of a parsed DBSoup file."""

    schema_definition: SchemaDefinition
    header: Header | None = None
    relationship_definitions: RelationshipDefinitions | None = None
    comments: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def entities(self) -> list[Entity]:
        """All entities in document order, across every module section."""
        return [
            entity for section in self.schema_definition.sections for entity in section.entities
        ]

    @property
    def relationships(self) -> list[Relationship]:
        if self.relationship_definitions is None:
            return []
        return self.relationship_definitions.relationships

    def find_entity(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None
