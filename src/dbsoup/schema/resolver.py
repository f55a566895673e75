"""Post-parse resolution of bare identifiers.

The parser cannot tell `Address` (an embedded entity declared later in the
file) from `String` (a built-in type): both are bare identifiers and both
come out as `SimpleType`. Once the whole document is known, names that match
a declared embedded entity are reclassified as `EmbeddedEntityType`.
"""

from dataclasses import replace

from dbsoup.schema.model import (
    ArrayType,
    DataType,
    Document,
    EmbeddedEntityType,
    JsonField,
    JsonObjectType,
    ModuleSection,
    SchemaDefinition,
    SimpleType,
)


def entity_names(document: Document) -> set[str]:
    return {entity.name for entity in document.entities}


def embedded_entity_names(document: Document) -> set[str]:
    return {entity.name for entity in document.entities if entity.is_embedded}


def resolve_data_type(data_type: DataType, embedded_names: set[str]) -> DataType:
    """Reclassify simple names that refer to embedded entities, recursively."""
    match data_type:
        case SimpleType(name=name) if name in embedded_names:
            return EmbeddedEntityType(entity=name)
        case ArrayType(inner=inner):
            return ArrayType(inner=resolve_data_type(inner, embedded_names))
        case JsonObjectType(fields=fields) if fields:
            return JsonObjectType(
                fields=tuple(
                    JsonField(name=f.name, data_type=resolve_data_type(f.data_type, embedded_names))
                    for f in fields
                )
            )
    return data_type


def resolve_document(document: Document) -> Document:
    """Return a copy of `document` with embedded-entity references resolved.

    The input document is left untouched.
    """
    embedded = embedded_entity_names(document)
    if not embedded:
        return document

    sections = []
    for section in document.schema_definition.sections:
        entities = []
        for entity in section.entities:
            fields = [
                replace(f, data_type=resolve_data_type(f.data_type, embedded))
                for f in entity.fields
            ]
            entities.append(replace(entity, fields=fields))
        sections.append(ModuleSection(section.name, section.description, entities))

    return replace(
        document,
        schema_definition=SchemaDefinition(
            modules=list(document.schema_definition.modules), sections=sections
        ),
    )
