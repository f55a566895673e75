"""Recursive-descent parser for DBSoup documents.

Builds a `Document` from raw text in a single forward pass over the lines.
Grammar (informal):

  document          := frontMatter? header? relationshipBlock? schemaBlock
  frontMatter       := "---" (key ":" value)* "---"
  header            := "@" identifier ".dbsoup"
  relationshipBlock := "=== RELATIONSHIP DEFINITIONS ===" (comment | relationship | blank)*
  schemaBlock       := "=== DATABASE SCHEMA ===" moduleList moduleSection*
  moduleList        := ("+" name comment?)*
  moduleSection     := "=== " name " ===" description? entity*
  entity            := name comment? separatorRow field* relationshipSection* featureSection*
  field             := prefix+ names ":" dataType constraintGroup* comment?

The first error aborts the parse; there is no recovery.
"""

from loguru import logger

from dbsoup.schema.errors import (
    InvalidEntityError,
    InvalidFieldError,
    InvalidHeaderError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from dbsoup.schema.grammar import (
    FRONT_MATTER_DELIMITER,
    HEADER_EXTENSION,
    RELATIONSHIP_BLOCK,
    RELATIONSHIP_DETAIL_PREFIX,
    RELATIONSHIP_ITEM_PREFIX,
    RELATIONSHIPS_SECTION,
    SCHEMA_BLOCK,
    extract_constraint_groups,
    is_embedded_separator,
    is_module_header,
    is_separator_row,
    is_standard_separator,
    module_name_from_header,
    parse_constraint_list,
    parse_data_type,
    parse_prefixes,
    parse_relationship_detail,
    parse_relationship_line,
    split_inline_comment,
)
from dbsoup.schema.lexer import LineReader, is_blank, is_comment
from dbsoup.schema.model import (
    PREFIX_CHARACTERS,
    Document,
    Entity,
    EntityType,
    FeatureSection,
    Field,
    Header,
    ModuleSection,
    RelationshipDefinitions,
    RelationshipSection,
    SchemaDefinition,
)


class DBSoupParser:
    """Parser for one DBSoup document.

    Usage:
        document = DBSoupParser(text).parse()
    """

    def __init__(self, text: str):
        self.reader = LineReader(text)

    @classmethod
    def parse_text(cls, text: str) -> Document:
        return cls(text).parse()

    def parse(self) -> Document:
        comments: list[str] = []

        self.reader.skip_blank()
        metadata = self._parse_front_matter()
        self.reader.skip_blank_and_comments(collect=comments)
        header = self._parse_header()

        self.reader.skip_blank_and_comments(collect=comments)
        relationship_definitions = self._parse_relationship_definitions()

        self.reader.skip_blank_and_comments(collect=comments)
        schema_definition = self._parse_schema_definition()

        self.reader.skip_blank_and_comments()
        if self.reader.has_more:
            raise UnexpectedTokenError(
                f"Unexpected content '{self.reader.peek().strip()}'", self.reader.line_number
            )

        logger.debug(
            f"Parsed document: {len(schema_definition.sections)} modules, "
            f"{sum(len(s.entities) for s in schema_definition.sections)} entities"
        )
        return Document(
            header=header,
            relationship_definitions=relationship_definitions,
            schema_definition=schema_definition,
            comments=comments,
            metadata=metadata,
        )

    # --- Preamble ---

    def _parse_front_matter(self) -> dict[str, str]:
        line = self.reader.peek()
        if line is None or line.strip() != FRONT_MATTER_DELIMITER:
            return {}

        start = self.reader.line_number
        self.reader.advance()
        metadata: dict[str, str] = {}
        while self.reader.has_more:
            line = self.reader.advance().strip()
            if line == FRONT_MATTER_DELIMITER:
                return metadata
            if not line:
                continue
            key, _, value = line.partition(":")
            metadata[key.strip()] = value.strip()
        raise UnexpectedEndOfInputError("Unclosed front matter block", start)

    def _parse_header(self) -> Header | None:
        line = self.reader.peek()
        if line is None or not line.strip().startswith("@"):
            return None

        number = self.reader.line_number
        text = self.reader.advance().strip()
        if not text.endswith(HEADER_EXTENSION):
            raise InvalidHeaderError(f"Header must end with {HEADER_EXTENSION}", number)
        return Header(filename=text[1 : -len(HEADER_EXTENSION)])

    # --- Relationship Definitions ---

    def _parse_relationship_definitions(self) -> RelationshipDefinitions | None:
        line = self.reader.peek()
        if line is None or line.strip() != RELATIONSHIP_BLOCK:
            return None
        self.reader.advance()

        definitions = RelationshipDefinitions()
        while self.reader.has_more:
            line = self.reader.peek()
            if is_blank(line) or is_comment(line):
                self.reader.advance()
                continue
            if line.strip() == SCHEMA_BLOCK or is_module_header(line):
                break
            number = self.reader.line_number
            definitions.relationships.append(parse_relationship_line(self.reader.advance(), number))

        logger.debug(f"Parsed {len(definitions.relationships)} relationship definitions")
        return definitions

    # --- Schema Definition ---

    def _parse_schema_definition(self) -> SchemaDefinition:
        line = self.reader.peek()
        if line is None:
            raise UnexpectedEndOfInputError(
                f"Expected '{SCHEMA_BLOCK}'", self.reader.line_number
            )
        if line.strip() != SCHEMA_BLOCK:
            raise UnexpectedTokenError(f"Expected '{SCHEMA_BLOCK}'", self.reader.line_number)
        self.reader.advance()

        modules = self._parse_module_list()
        sections: list[ModuleSection] = []
        while True:
            self.reader.skip_blank_and_comments()
            line = self.reader.peek()
            if line is None or not is_module_header(line):
                break
            sections.append(self._parse_module_section())
        return SchemaDefinition(modules=modules, sections=sections)

    def _parse_module_list(self) -> list[str]:
        modules: list[str] = []
        while self.reader.has_more:
            line = self.reader.peek()
            stripped = line.strip()
            if stripped.startswith("+"):
                name, _ = split_inline_comment(stripped[1:].strip())
                modules.append(name.strip())
                self.reader.advance()
            elif is_blank(line) or is_comment(line):
                self.reader.advance()
            else:
                break
        return modules

    def _parse_module_section(self) -> ModuleSection:
        section = ModuleSection(name=module_name_from_header(self.reader.advance()))

        self.reader.skip_blank()
        candidate = self.reader.peek()
        if candidate is not None and self._is_description(candidate):
            section.description = self.reader.advance().strip()

        while True:
            self.reader.skip_blank_and_comments()
            line = self.reader.peek()
            if line is None or is_module_header(line):
                break
            section.entities.append(self._parse_entity())

        logger.debug(f"Module '{section.name}': {len(section.entities)} entities")
        return section

    def _is_description(self, line: str) -> bool:
        """A free line after the module header that is not an entity name."""
        if is_blank(line) or is_comment(line) or is_module_header(line):
            return False
        return not is_separator_row(self.reader.peek_next())

    # --- Entities ---

    def _parse_entity(self) -> Entity:
        number = self.reader.line_number
        name, comment = split_inline_comment(self.reader.advance().strip())
        if not name:
            raise InvalidEntityError("Missing entity name", number)

        separator = self.reader.peek()
        if separator is None:
            raise UnexpectedEndOfInputError(
                f"Expected separator row after entity '{name}'", self.reader.line_number
            )
        if is_standard_separator(separator):
            entity_type = EntityType.STANDARD
        elif is_embedded_separator(separator):
            entity_type = EntityType.EMBEDDED
        else:
            raise InvalidEntityError(
                f"Invalid entity separator after '{name}'", self.reader.line_number
            )
        self.reader.advance()

        entity = Entity(name=name, type=entity_type, comment=comment)
        entity.fields = self._parse_fields()
        self._parse_trailing_sections(entity)
        return entity

    def _parse_fields(self) -> list[Field]:
        fields: list[Field] = []
        while self.reader.has_more:
            stripped = self.reader.peek().strip()
            if not stripped or stripped[0] not in PREFIX_CHARACTERS:
                break
            number = self.reader.line_number
            fields.append(parse_field_line(self.reader.advance(), number))
        return fields

    def _parse_trailing_sections(self, entity: Entity) -> None:
        """Relationship and feature sections directly below the fields."""
        while self.reader.has_more:
            stripped = self.reader.peek().strip()
            if stripped == RELATIONSHIPS_SECTION:
                self.reader.advance()
                entity.relationship_sections.append(self._parse_relationship_section())
            elif stripped.startswith("# ") and not stripped.startswith(RELATIONSHIP_DETAIL_PREFIX):
                self.reader.advance()
                entity.feature_sections.append(self._parse_feature_section(stripped[2:].strip()))
            else:
                break

    def _parse_relationship_section(self) -> RelationshipSection:
        section = RelationshipSection()
        while self.reader.has_more:
            stripped = self.reader.peek().strip()
            number = self.reader.line_number
            if stripped.startswith(RELATIONSHIP_ITEM_PREFIX):
                section.relationships.append(stripped[len(RELATIONSHIP_ITEM_PREFIX) :].strip())
            elif stripped.startswith(RELATIONSHIP_DETAIL_PREFIX):
                section.details.append(parse_relationship_detail(stripped, number))
            else:
                break
            self.reader.advance()
        return section

    def _parse_feature_section(self, title: str) -> FeatureSection:
        section = FeatureSection(title=title)
        while self.reader.has_more:
            line = self.reader.peek()
            if is_blank(line) or is_comment(line) or is_module_header(line):
                break
            # The next entity's name line
            if is_separator_row(self.reader.peek_next()):
                break
            section.content.append(self.reader.advance().strip())
        return section


# --- Field Lines ---


def parse_field_line(text: str, line: int | None = None) -> Field:
    """Parse one field line such as `* id : UUID [PK] # row id`."""
    prefixes, rest = parse_prefixes(text, line)

    names_part, colon, remainder = rest.partition(":")
    if not colon:
        raise InvalidFieldError(f"Missing ':' in field definition '{text.strip()}'", line)
    names = [name.strip() for name in names_part.split(",")]
    if not all(names):
        raise InvalidFieldError(f"Empty field name in '{names_part.strip()}'", line)

    content, comment = split_inline_comment(remainder.strip())
    type_text, groups = extract_constraint_groups(content, line)
    if not type_text:
        raise InvalidFieldError(f"Missing field type for '{', '.join(names)}'", line)

    constraints = [c for group in groups for c in parse_constraint_list(group, line)]
    return Field(
        prefixes=prefixes,
        names=names,
        data_type=parse_data_type(type_text, line),
        constraints=constraints,
        comment=comment,
    )


def parse_document(text: str) -> Document:
    """Parse DBSoup text into a `Document`.

    Raises:
        DBSoupParseError: on the first malformed line, with its line number.
    """
    return DBSoupParser(text).parse()
