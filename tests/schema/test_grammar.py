"""Tests for dbsoup.schema.grammar -- single-line grammar primitives."""

import pytest

from dbsoup.schema.errors import (
    InvalidCardinalityError,
    InvalidConstraintError,
    InvalidDataTypeError,
    InvalidFieldError,
    InvalidRelationshipError,
)
from dbsoup.schema.grammar import (
    extract_constraint_groups,
    is_embedded_separator,
    is_module_header,
    is_standard_separator,
    module_name_from_header,
    parse_cardinality,
    parse_constraint_list,
    parse_data_type,
    parse_prefixes,
    parse_relationship_detail,
    parse_relationship_line,
    split_inline_comment,
    split_top_level,
)
from dbsoup.schema.model import (
    ArrayType,
    Cardinality,
    Constraint,
    FieldPrefix,
    JsonField,
    JsonObjectType,
    ParametricType,
    RelationshipArrayType,
    RelationshipCardinality,
    RelationshipNature,
    SimpleType,
)


# --- split_top_level / split_inline_comment ---


class TestSplitting:
    def test_split_respects_brackets_and_quotes(self):
        assert split_top_level('a, Decimal(10,2), "x,y"') == ["a", " Decimal(10,2)", ' "x,y"']

    def test_split_without_separator(self):
        assert split_top_level("single") == ["single"]

    def test_inline_comment(self):
        assert split_inline_comment("UUID [PK] # primary key") == ("UUID [PK]", "primary key")

    def test_hash_without_space_is_not_a_comment(self):
        assert split_inline_comment("String#1") == ("String#1", None)

    def test_hash_inside_brackets_is_kept(self):
        content, comment = split_inline_comment('String [DEFAULT:"a #1"] # note')
        assert content == 'String [DEFAULT:"a #1"]'
        assert comment == "note"


# --- parse_prefixes ---


class TestParsePrefixes:
    def test_single_prefix(self):
        prefixes, rest = parse_prefixes("* id : UUID")
        assert prefixes == [FieldPrefix.REQUIRED]
        assert rest == "id : UUID"

    def test_concatenated_prefixes(self):
        prefixes, rest = parse_prefixes("*!@ email : String")
        assert prefixes == [FieldPrefix.REQUIRED, FieldPrefix.INDEXED, FieldPrefix.SENSITIVE]
        assert rest == "email : String"

    def test_spaced_prefixes(self):
        prefixes, rest = parse_prefixes("* - bad_field : String")
        assert prefixes == [FieldPrefix.REQUIRED, FieldPrefix.OPTIONAL]
        assert rest == "bad_field : String"

    def test_duplicates_are_kept(self):
        prefixes, _ = parse_prefixes("** id : UUID")
        assert prefixes == [FieldPrefix.REQUIRED, FieldPrefix.REQUIRED]

    def test_all_prefix_characters(self):
        prefixes, _ = parse_prefixes("*-!@~>$ x : Int")
        assert prefixes == list(FieldPrefix)

    def test_missing_prefix_raises(self):
        with pytest.raises(InvalidFieldError, match="Missing field prefix at line 7"):
            parse_prefixes("id : UUID", line=7)


# --- Constraints ---


class TestExtractConstraintGroups:
    def test_single_group(self):
        assert extract_constraint_groups("UUID [PK]") == ("UUID", ["PK"])

    def test_multiple_groups(self):
        type_text, groups = extract_constraint_groups("String [UK,INDEX] [ENCRYPTED]")
        assert type_text == "String"
        assert groups == ["UK,INDEX", "ENCRYPTED"]

    def test_relationship_array_bracket_stays_with_type(self):
        type_text, groups = extract_constraint_groups("Category[0..*] [CACHED]")
        assert type_text == "Category[0..*]"
        assert groups == ["CACHED"]

    def test_nested_brackets_inside_group(self):
        type_text, groups = extract_constraint_groups('String [CHECK:len(x)>0,DEFAULT:"[]"]')
        assert type_text == "String"
        assert groups == ['CHECK:len(x)>0,DEFAULT:"[]"']

    def test_unclosed_group_raises(self):
        with pytest.raises(InvalidDataTypeError, match="line 3"):
            extract_constraint_groups("String [PK", line=3)

    def test_stray_closer_raises(self):
        with pytest.raises(InvalidDataTypeError):
            extract_constraint_groups("String PK]")


class TestParseConstraintList:
    def test_names_and_values(self):
        assert parse_constraint_list("PK,FK:User.id,DEFAULT:0") == [
            Constraint("PK"),
            Constraint("FK", "User.id"),
            Constraint("DEFAULT", "0"),
        ]

    def test_enum_values_stay_together(self):
        assert parse_constraint_list('ENUM:"a","b","c"') == [Constraint("ENUM", '"a","b","c"')]

    def test_unquoted_enum_values_stay_together(self):
        assert parse_constraint_list("ENUM:pending,paid,DEFAULT:pending") == [
            Constraint("ENUM", "pending,paid"),
            Constraint("DEFAULT", "pending"),
        ]

    def test_known_name_after_value_starts_new_constraint(self):
        assert parse_constraint_list("CIX:email,tenant_id,INDEX") == [
            Constraint("CIX", "email,tenant_id"),
            Constraint("INDEX"),
        ]

    def test_unknown_name_after_valueless_constraint(self):
        assert parse_constraint_list("PK,CUSTOM") == [Constraint("PK"), Constraint("CUSTOM")]

    def test_foreign_key_value_is_never_extended(self):
        assert parse_constraint_list("FK:User.id,CASCADE") == [
            Constraint("FK", "User.id"),
            Constraint("CASCADE"),
        ]

    def test_default_value_is_never_extended(self):
        assert parse_constraint_list("DEFAULT:active,NOT_NULL") == [
            Constraint("DEFAULT", "active"),
            Constraint("NOT_NULL"),
        ]

    def test_unknown_upper_case_item_continues_a_list_value(self):
        assert parse_constraint_list("ENUM:ACTIVE,INACTIVE") == [
            Constraint("ENUM", "ACTIVE,INACTIVE"),
        ]

    def test_empty_value_becomes_none(self):
        assert parse_constraint_list("DEFAULT:") == [Constraint("DEFAULT")]

    def test_empty_group_raises(self):
        with pytest.raises(InvalidConstraintError, match="Empty constraint list"):
            parse_constraint_list("  ")

    def test_empty_item_raises(self):
        with pytest.raises(InvalidConstraintError):
            parse_constraint_list("PK,,UK")


# --- Data Types ---


class TestParseCardinality:
    def test_bounded(self):
        assert parse_cardinality("1..5") == Cardinality(1, 5)

    def test_unbounded(self):
        cardinality = parse_cardinality("0..*")
        assert cardinality == Cardinality(0, None)
        assert cardinality.is_unbounded
        assert str(cardinality) == "0..*"

    def test_inverted_bounds_are_parsed(self):
        assert parse_cardinality("5..2") == Cardinality(5, 2)

    def test_non_integer_raises(self):
        with pytest.raises(InvalidCardinalityError, match="minimum"):
            parse_cardinality("a..2")
        with pytest.raises(InvalidCardinalityError, match="maximum"):
            parse_cardinality("0..many")

    def test_missing_range_raises(self):
        with pytest.raises(InvalidCardinalityError):
            parse_cardinality("3")


class TestParseDataType:
    def test_simple(self):
        assert parse_data_type("String") == SimpleType("String")

    def test_bare_identifier_is_simple(self):
        assert parse_data_type("Address") == SimpleType("Address")

    def test_parametric(self):
        assert parse_data_type("Decimal(10,2)") == ParametricType("Decimal", ("10", "2"))
        assert parse_data_type("String(255)") == ParametricType("String", ("255",))

    def test_parametric_without_params(self):
        assert parse_data_type("Enum()") == ParametricType("Enum", ())

    def test_array(self):
        assert parse_data_type("Array<String>") == ArrayType(SimpleType("String"))

    def test_nested_array(self):
        assert parse_data_type("Array<Array<Decimal(10,2)>>") == ArrayType(
            ArrayType(ParametricType("Decimal", ("10", "2")))
        )

    def test_relationship_array(self):
        assert parse_data_type("Category[0..*]") == RelationshipArrayType(
            "Category", Cardinality(0, None)
        )

    def test_json(self):
        assert parse_data_type("JSON") == JsonObjectType()

    def test_json_object(self):
        assert parse_data_type("JSON{lat: Float, tags: Array<String>}") == JsonObjectType(
            fields=(
                JsonField("lat", SimpleType("Float")),
                JsonField("tags", ArrayType(SimpleType("String"))),
            )
        )

    def test_array_of_json(self):
        assert parse_data_type("Array<JSON>") == ArrayType(JsonObjectType())

    def test_unclosed_array_raises(self):
        with pytest.raises(InvalidDataTypeError, match="Array<.*line 4"):
            parse_data_type("Array<String", line=4)

    def test_unbalanced_parametric_raises(self):
        with pytest.raises(InvalidDataTypeError):
            parse_data_type("Decimal(10,2")

    def test_invalid_json_property_raises(self):
        with pytest.raises(InvalidDataTypeError, match="JSON property"):
            parse_data_type("JSON{lat}")

    def test_empty_type_raises(self):
        with pytest.raises(InvalidFieldError, match="Missing field type"):
            parse_data_type("  ")

    def test_bad_relationship_cardinality_raises(self):
        with pytest.raises(InvalidCardinalityError):
            parse_data_type("Category[x..*]")


# --- Separators and Headers ---


class TestSeparators:
    @pytest.mark.parametrize("line", ["==", "==========", "  =====  "])
    def test_standard_separator(self, line):
        assert is_standard_separator(line)
        assert not is_embedded_separator(line)

    @pytest.mark.parametrize("line", ["/=/", "/=========/"])
    def test_embedded_separator(self, line):
        assert is_embedded_separator(line)
        assert not is_standard_separator(line)

    @pytest.mark.parametrize("line", ["=", "---", "/==", "== ==", "=== Core ==="])
    def test_not_separators(self, line):
        assert not is_standard_separator(line)
        assert not is_embedded_separator(line)

    def test_module_header(self):
        assert is_module_header("=== Core ===")
        assert module_name_from_header("=== Core ===") == "Core"
        assert module_name_from_header("=== Core ==========") == "Core"
        assert module_name_from_header("===   Order Management ===") == "Order Management"

    def test_separator_is_not_module_header(self):
        assert not is_module_header("==========")


# --- Relationship Lines ---


class TestParseRelationshipLine:
    def test_minimal(self):
        relationship = parse_relationship_line("User -> Order [1:M]")
        assert relationship.from_entity == "User"
        assert relationship.to_entity == "Order"
        assert relationship.cardinality is RelationshipCardinality.ONE_TO_MANY
        assert relationship.nature is None
        assert relationship.via_entity is None
        assert relationship.comment is None

    def test_full(self):
        relationship = parse_relationship_line(
            "Product -> Category [M:N] (association) via ProductCategory # tagging"
        )
        assert relationship.cardinality is RelationshipCardinality.MANY_TO_MANY
        assert relationship.nature is RelationshipNature.ASSOCIATION
        assert relationship.via_entity == "ProductCategory"
        assert relationship.comment == "tagging"

    def test_inheritance(self):
        relationship = parse_relationship_line("Admin -> User [inheritance]")
        assert relationship.cardinality is RelationshipCardinality.INHERITANCE

    def test_missing_arrow(self):
        with pytest.raises(InvalidRelationshipError, match="->"):
            parse_relationship_line("User Order [1:M]")

    def test_missing_cardinality(self):
        with pytest.raises(InvalidRelationshipError, match="Missing cardinality at line 9"):
            parse_relationship_line("User -> Order", line=9)

    def test_unknown_cardinality(self):
        with pytest.raises(InvalidRelationshipError, match="Unknown cardinality: 2:N"):
            parse_relationship_line("User -> Order [2:N]")

    def test_unknown_nature(self):
        with pytest.raises(InvalidRelationshipError, match="nature"):
            parse_relationship_line("User -> Order [1:M] (ownership)")

    def test_missing_entity(self):
        with pytest.raises(InvalidRelationshipError, match="Missing entity name"):
            parse_relationship_line("User -> [1:M]")


class TestParseRelationshipDetail:
    def test_detail(self):
        detail = parse_relationship_detail("## Order.user_id -> User.id # owner")
        assert (detail.from_entity, detail.from_field) == ("Order", "user_id")
        assert (detail.to_entity, detail.to_field) == ("User", "id")
        assert detail.comment == "owner"

    def test_malformed_detail(self):
        with pytest.raises(InvalidRelationshipError, match="line 12"):
            parse_relationship_detail("## Order -> User", line=12)
