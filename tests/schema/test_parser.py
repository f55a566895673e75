"""Tests for dbsoup.schema.parser -- document parsing."""

import pytest

from dbsoup.schema.errors import (
    InvalidDataTypeError,
    InvalidEntityError,
    InvalidFieldError,
    InvalidHeaderError,
    InvalidRelationshipError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from dbsoup.schema.model import (
    ArrayType,
    Cardinality,
    Constraint,
    EntityType,
    FieldPrefix,
    JsonObjectType,
    ParametricType,
    RelationshipArrayType,
    RelationshipCardinality,
    RelationshipNature,
    SimpleType,
)
from dbsoup.schema.parser import DBSoupParser, parse_document, parse_field_line


# --- parse_field_line ---


class TestParseFieldLine:
    def test_basic_field(self):
        f = parse_field_line("* id : UUID [PK]")
        assert f.prefixes == [FieldPrefix.REQUIRED]
        assert f.names == ["id"]
        assert f.data_type == SimpleType("UUID")
        assert f.constraints == [Constraint("PK")]
        assert f.comment is None

    def test_full_field(self):
        f = parse_field_line("*! email, mail : String(255) [UK,INDEX] [ENCRYPTED] # login")
        assert f.prefixes == [FieldPrefix.REQUIRED, FieldPrefix.INDEXED]
        assert f.names == ["email", "mail"]
        assert f.name == "email"
        assert f.display_name == "email, mail"
        assert f.data_type == ParametricType("String", ("255",))
        assert [c.name for c in f.constraints] == ["UK", "INDEX", "ENCRYPTED"]
        assert f.comment == "login"

    def test_relationship_array_field(self):
        f = parse_field_line("- items : Category[0..*]")
        assert f.data_type == RelationshipArrayType("Category", Cardinality(0, None))
        assert f.constraints == []

    def test_comment_hash_requires_space(self):
        f = parse_field_line('- code : String [DEFAULT:"A#1"] # note')
        assert f.constraint("DEFAULT").value == '"A#1"'
        assert f.comment == "note"

    def test_missing_colon(self):
        with pytest.raises(InvalidFieldError, match="Missing ':'"):
            parse_field_line("* id UUID")

    def test_missing_type(self):
        with pytest.raises(InvalidFieldError, match="Missing field type"):
            parse_field_line("* id : [PK]", line=5)

    def test_empty_name(self):
        with pytest.raises(InvalidFieldError, match="Empty field name"):
            parse_field_line("* id, : UUID")

    def test_unclosed_constraint(self):
        with pytest.raises(InvalidDataTypeError, match="line 8"):
            parse_field_line("* id : UUID [PK", line=8)


# --- parse_document ---


class TestParseDocument:
    def test_sample_structure(self, ecommerce_document):
        document = ecommerce_document
        assert document.header.filename == "ecommerce"
        assert document.metadata == {"@specs": "DBSoup 1.0", "@version": "1.2"}
        assert document.comments == ["Sample store schema"]
        assert document.schema_definition.modules == ["Core", "Commerce"]
        assert [s.name for s in document.schema_definition.sections] == ["Core", "Commerce"]
        assert [e.name for e in document.entities] == [
            "User",
            "Address",
            "Order",
            "OrderItem",
            "Product",
            "Category",
            "ProductCategory",
        ]

    def test_relationship_definitions(self, ecommerce_document):
        relationships = ecommerce_document.relationships
        assert len(relationships) == 5
        first = relationships[0]
        assert (first.from_entity, first.to_entity) == ("User", "Order")
        assert first.cardinality is RelationshipCardinality.ONE_TO_MANY
        assert first.nature is RelationshipNature.COMPOSITION
        assert first.comment == "user places orders"
        assert relationships[-1].via_entity == "ProductCategory"

    def test_module_description(self, ecommerce_document):
        core, commerce = ecommerce_document.schema_definition.sections
        assert core.description == "Accounts and identity"
        assert commerce.description is None

    def test_entity_types_and_comments(self, ecommerce_document):
        user = ecommerce_document.find_entity("User")
        address = ecommerce_document.find_entity("Address")
        assert user.type is EntityType.STANDARD
        assert user.comment == "registered customer"
        assert address.type is EntityType.EMBEDDED
        assert address.is_embedded

    def test_embedded_reference_stays_simple(self, ecommerce_document):
        order = ecommerce_document.find_entity("Order")
        shipping = next(f for f in order.fields if f.name == "shipping")
        assert shipping.data_type == SimpleType("Address")

    def test_field_details(self, ecommerce_document):
        order = ecommerce_document.find_entity("Order")
        status = next(f for f in order.fields if f.name == "status")
        assert status.constraints == [
            Constraint("ENUM", "pending,paid,shipped"),
            Constraint("DEFAULT", "pending"),
        ]
        product = ecommerce_document.find_entity("Product")
        assert isinstance(product.fields[3].data_type, ArrayType)
        assert isinstance(product.fields[4].data_type, JsonObjectType)
        assert len(product.fields[4].data_type.fields) == 2

    def test_relationship_section(self, ecommerce_document):
        user = ecommerce_document.find_entity("User")
        assert len(user.fields) == 7
        [section] = user.relationship_sections
        assert section.relationships == ["has many orders"]
        [detail] = section.details
        assert (detail.from_entity, detail.from_field) == ("Order", "user_id")
        assert detail.comment == "owner"

    def test_feature_section(self, ecommerce_document):
        order = ecommerce_document.find_entity("Order")
        [feature] = order.feature_sections
        assert feature.title == "NOTES"
        assert feature.content == ["Orders are immutable once paid."]

    def test_primary_key_fields(self, ecommerce_document):
        link = ecommerce_document.find_entity("ProductCategory")
        assert [f.name for f in link.primary_key_fields] == ["product_id", "category_id"]

    def test_parse_text_classmethod(self, ecommerce_text):
        assert DBSoupParser.parse_text(ecommerce_text) == parse_document(ecommerce_text)


class TestOptionalBlocks:
    def test_minimal_document(self):
        document = parse_document("=== DATABASE SCHEMA ===\n")
        assert document.header is None
        assert document.relationship_definitions is None
        assert document.relationships == []
        assert document.entities == []

    def test_header_without_relationships(self):
        text = (
            "@shop.dbsoup\n=== DATABASE SCHEMA ===\n+ Core\n"
            "=== Core ===\nUser\n=====\n* id : UUID [PK]\n"
        )
        document = parse_document(text)
        assert document.header.filename == "shop"
        assert document.relationship_definitions is None
        assert document.entities[0].fields[0].name == "id"

    def test_empty_relationship_block(self, make_document):
        document = make_document(
            """
            User
            ==========
            * id : UUID [PK]
            """
        )
        assert document.relationship_definitions is not None
        assert document.relationships == []

    def test_variable_length_module_header(self):
        text = "=== DATABASE SCHEMA ===\n=== Core ==========\nUser\n==\n* id : UUID [PK]\n"
        document = parse_document(text)
        assert document.schema_definition.sections[0].name == "Core"
        assert document.schema_definition.modules == []

    def test_description_directly_before_entity(self):
        text = (
            "=== DATABASE SCHEMA ===\n=== Core ===\nIdentity tables\n"
            "User\n=====\n* id : UUID [PK]\n"
        )
        section = parse_document(text).schema_definition.sections[0]
        assert section.description == "Identity tables"
        assert section.entities[0].name == "User"

    def test_entity_without_fields(self, make_document):
        document = make_document(
            """
            Empty
            ==========

            User
            ==========
            * id : UUID [PK]
            """
        )
        assert [e.name for e in document.entities] == ["Empty", "User"]
        assert document.entities[0].fields == []

    def test_comments_between_entities_are_skipped(self, make_document):
        document = make_document(
            """
            User
            ==========
            * id : UUID [PK]

            # -- billing --

            Invoice
            ==========
            * id : UUID [PK]
            """
        )
        assert [e.name for e in document.entities] == ["User", "Invoice"]


class TestParseErrors:
    def test_invalid_header(self):
        with pytest.raises(InvalidHeaderError, match="at line 1"):
            parse_document("@shop.txt\n=== DATABASE SCHEMA ===\n")

    def test_missing_schema_block(self):
        with pytest.raises(UnexpectedEndOfInputError):
            parse_document("@shop.dbsoup\n")

    def test_unexpected_token_instead_of_schema_block(self):
        with pytest.raises(UnexpectedTokenError, match="DATABASE SCHEMA") as exc_info:
            parse_document("@shop.dbsoup\nsomething else\n")
        assert exc_info.value.line == 2

    def test_unclosed_front_matter(self):
        with pytest.raises(UnexpectedEndOfInputError, match="front matter"):
            parse_document("---\nkey: value\n")

    def test_relationship_errors_carry_line(self, make_text):
        text = make_text(
            """
            User
            ==========
            * id : UUID [PK]
            """,
            relationships="User -> Order",
        )
        with pytest.raises(InvalidRelationshipError) as exc_info:
            parse_document(text)
        assert exc_info.value.line == 4
        assert "Missing cardinality" in str(exc_info.value)

    def test_bad_separator(self, make_text):
        text = make_text(
            """
            Account
            ==========
            * id : UUID [PK]

            User
            ----------
            * id : UUID [PK]
            """
        )
        with pytest.raises(
            InvalidEntityError, match="Invalid entity separator after 'User'"
        ) as exc_info:
            parse_document(text)
        assert exc_info.value.line == 16

    def test_entity_name_at_end_of_input(self):
        with pytest.raises(UnexpectedEndOfInputError, match="separator"):
            parse_document("=== DATABASE SCHEMA ===\n=== Core ===\nAccounts\n\nUser\n")

    def test_field_without_prefix_is_read_as_entity_name(self, make_text):
        text = make_text(
            """
            User
            ==========
            * id : UUID [PK]
            name : String
            * email : String
            """
        )
        with pytest.raises(InvalidEntityError, match="after 'name : String'") as exc_info:
            parse_document(text)
        assert exc_info.value.line == 15

    def test_unclosed_array_in_document(self, make_text):
        text = make_text(
            """
            User
            ==========
            * id   : UUID [PK]
            - tags : Array<String
            """
        )
        with pytest.raises(InvalidDataTypeError) as exc_info:
            parse_document(text)
        assert exc_info.value.line == 14

    def test_first_error_aborts(self, make_text):
        text = make_text(
            """
            User
            ==========
            * id : UUID [PK
            * bad : Array<String
            """
        )
        with pytest.raises(InvalidDataTypeError) as exc_info:
            parse_document(text)
        assert exc_info.value.line == 13
