"""Summary statistics over a parsed document."""

from collections import Counter
from dataclasses import dataclass, field

from dbsoup.schema.model import (
    ArrayType,
    DataType,
    Document,
    EmbeddedEntityType,
    JsonObjectType,
    ParametricType,
    RelationshipArrayType,
    SimpleType,
)


@dataclass
class SchemaStatistics:
    total_entities: int = 0
    standard_entities: int = 0
    embedded_entities: int = 0
    total_fields: int = 0
    total_relationships: int = 0
    module_count: int = 0
    modules: dict[str, int] = field(default_factory=dict)  # module name -> entity count
    # Usage counters, most used first
    data_types: dict[str, int] = field(default_factory=dict)
    constraints: dict[str, int] = field(default_factory=dict)
    field_prefixes: dict[str, int] = field(default_factory=dict)


def _count_data_type(data_type: DataType, counter: Counter) -> None:
    match data_type:
        case SimpleType(name=name) | ParametricType(name=name):
            counter[name] += 1
        case ArrayType(inner=inner):
            counter["Array"] += 1
            _count_data_type(inner, counter)
        case JsonObjectType():
            counter["JSON"] += 1
        case RelationshipArrayType(entity=entity) | EmbeddedEntityType(entity=entity):
            counter[entity] += 1


def generate_statistics(document: Document) -> SchemaStatistics:
    data_types: Counter = Counter()
    constraints: Counter = Counter()
    prefixes: Counter = Counter()
    stats = SchemaStatistics(
        total_relationships=len(document.relationships),
        module_count=len(document.schema_definition.sections),
    )
    for section in document.schema_definition.sections:
        stats.modules[section.name] = stats.modules.get(section.name, 0) + len(section.entities)
        for entity in section.entities:
            stats.total_entities += 1
            if entity.is_embedded:
                stats.embedded_entities += 1
            else:
                stats.standard_entities += 1

            stats.total_fields += len(entity.fields)
            for f in entity.fields:
                _count_data_type(f.data_type, data_types)
                constraints.update(c.name for c in f.constraints)
                prefixes.update(p.value for p in f.prefixes)

    stats.data_types = dict(data_types.most_common())
    stats.constraints = dict(constraints.most_common())
    stats.field_prefixes = dict(prefixes.most_common())
    return stats


def render_statistics(stats: SchemaStatistics) -> str:
    """Plain-text report, most used items first."""
    lines = [
        "=== DBSoup Statistics ===",
        "",
        "Entities:",
        f"  Total: {stats.total_entities}",
        f"  Standard: {stats.standard_entities}",
        f"  Embedded: {stats.embedded_entities}",
        "",
        f"Fields: {stats.total_fields}",
        f"Relationships: {stats.total_relationships}",
        f"Modules: {stats.module_count}",
        "",
    ]

    if stats.modules:
        lines.append("Entities per Module:")
        lines.extend(f"  {name}: {count}" for name, count in sorted(stats.modules.items()))
        lines.append("")

    for title, counter in (
        ("Data Type Usage", stats.data_types),
        ("Constraint Usage", stats.constraints),
        ("Field Prefix Usage", stats.field_prefixes),
    ):
        if counter:
            lines.append(f"{title}:")
            lines.extend(f"  {name}: {count}" for name, count in counter.items())
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"
