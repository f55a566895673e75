"""Grammar primitives for DBSoup field and relationship lines.

These are small pure functions over a single line (or a fragment of one). The
document parser drives them and passes the current line number through so
every error points back at the input.

Field line anatomy:
  * ! email, mail : String(255)  [UK,INDEX] [ENCRYPTED]  # login address
  ^^^ prefixes    ^ names        ^ type      ^ constraint groups  ^ comment
"""

import re

from dbsoup.schema.errors import (
    InvalidCardinalityError,
    InvalidConstraintError,
    InvalidDataTypeError,
    InvalidFieldError,
    InvalidRelationshipError,
)
from dbsoup.schema.model import (
    ArrayType,
    Cardinality,
    Constraint,
    DataType,
    FieldPrefix,
    PREFIX_CHARACTERS,
    JsonField,
    JsonObjectType,
    ParametricType,
    Relationship,
    RelationshipCardinality,
    RelationshipDetail,
    RelationshipNature,
    RelationshipArrayType,
    SimpleType,
)


# --- Fixed Tokens ---

HEADER_EXTENSION = ".dbsoup"
RELATIONSHIP_BLOCK = "=== RELATIONSHIP DEFINITIONS ==="
SCHEMA_BLOCK = "=== DATABASE SCHEMA ==="
MODULE_HEADER_PREFIX = "=== "
RELATIONSHIPS_SECTION = "# RELATIONSHIPS"
RELATIONSHIP_ITEM_PREFIX = "@ relationships::"
RELATIONSHIP_DETAIL_PREFIX = "## "
FRONT_MATTER_DELIMITER = "---"
COMMENT_MARKER = " #"
ARROW = "->"

# Constraint names whose values get shape checks, and names accepted as-is.
VALUE_CONSTRAINTS = frozenset({"PK", "FK", "UK", "UNIQUE", "INDEX", "IX", "DEFAULT", "ENUM"})
SYSTEM_CONSTRAINTS = frozenset(
    {
        "SYSTEM",
        "AUTO",
        "AUTO_INCREMENT",
        "ENCRYPTED",
        "COMPRESSED",
        "SPATIAL",
        "BASE64",
        "CURRENCY",
        "PII",
        "MASK",
        "PARTITION",
        "SHARD",
        "CIX",
        "PIX",
        "CACHED",
        "TTL",
        "AUDIT",
        "DEPRECATED",
        "VALIDATE",
        "CHECK",
        "COLLATION",
        "PRECISION",
        "GENERATED",
        "COMPUTED",
    }
)
KNOWN_CONSTRAINTS = VALUE_CONSTRAINTS | SYSTEM_CONSTRAINTS
# Constraints whose value is itself a comma list: `ENUM:a,b`, `CIX:email,tenant_id`.
LIST_CONSTRAINTS = frozenset({"ENUM", "CIX", "PIX", "CHECK", "VALIDATE", "PARTITION", "SHARD"})

_PAIRS = {"(": ")", "<": ">", "{": "}", "[": "]"}
_CLOSERS = {v: k for k, v in _PAIRS.items()}

_CONSTRAINT_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")
_PARAMETRIC = re.compile(r"^([A-Za-z_][A-Za-z0-9_.]*)\s*\((.*)\)$", re.DOTALL)
_RELATIONSHIP_ARRAY = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\[(.*)\]$")
_JSON_OBJECT = re.compile(r"^JSON\s*\{(.*)\}$", re.DOTALL)
_MODULE_HEADER = re.compile(r"^===\s+(.*?)\s*=*$")
_RELATIONSHIP_CARDINALITY = re.compile(r"\[([^\]]*)\]")
_RELATIONSHIP_NATURE = re.compile(r"\(([^)]*)\)")
_RELATIONSHIP_VIA = re.compile(r"\bvia\s+([A-Za-z_][A-Za-z0-9_]*)")
_DETAIL_ENDPOINT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_]*)$")


# --- Scanning Helpers ---


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on `separator` outside quotes and bracket groups.

    >>> split_top_level('a, Decimal(10,2), "x,y"')
    ['a', ' Decimal(10,2)', ' "x,y"']
    """
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    for i, char in enumerate(text):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in _PAIRS:
            depth += 1
        elif char in _CLOSERS and depth > 0:
            depth -= 1
        elif char == separator and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def split_inline_comment(text: str) -> tuple[str, str | None]:
    """Slice off an inline comment introduced by `" #"`.

    The marker only counts outside bracket groups, so values such as
    `[DEFAULT:"a #1"]` keep their `#`.
    """
    depth = 0
    for i, char in enumerate(text):
        if char in _PAIRS:
            depth += 1
        elif char in _CLOSERS and depth > 0:
            depth -= 1
        elif char == "#" and depth == 0 and i > 0 and text[i - 1] == " ":
            return text[: i - 1].rstrip(), text[i + 1 :].strip()
    return text.rstrip(), None


# --- Prefixes ---


def parse_prefixes(text: str, line: int | None = None) -> tuple[list[FieldPrefix], str]:
    """Greedily read prefix sigils from the start of a field line."""
    prefixes: list[FieldPrefix] = []
    index = 0
    stripped = text.strip()
    while index < len(stripped):
        char = stripped[index]
        if char.isspace() and prefixes:
            # Sigils may be spaced apart: "* - name"
            lookahead = stripped[index:].lstrip()
            if lookahead and lookahead[0] in PREFIX_CHARACTERS:
                index = len(stripped) - len(lookahead)
                continue
            break
        try:
            prefixes.append(FieldPrefix(char))
        except ValueError:
            break
        index += 1

    if not prefixes:
        raise InvalidFieldError("Missing field prefix", line)
    return prefixes, stripped[index:].strip()


# --- Constraints ---


def extract_constraint_groups(text: str, line: int | None = None) -> tuple[str, list[str]]:
    """Pull every top-level `[...]` group out of a type expression.

    A bracket attached directly to the type name whose content contains `..`
    is a relationship-array cardinality (`Category[0..*]`) and stays with the
    type. Returns the remaining type text and the raw group contents.
    """
    groups: list[str] = []
    remaining: list[str] = []
    depth = 0
    i = 0
    while i < len(text):
        char = text[i]
        if char == "[" and depth == 0:
            end = _find_group_end(text, i)
            if end < 0:
                raise InvalidDataTypeError("Unclosed '[' in field definition", line)
            content = text[i + 1 : end]
            attached = i > 0 and (text[i - 1].isalnum() or text[i - 1] == "_")
            if attached and ".." in content:
                remaining.append(text[i : end + 1])
            else:
                groups.append(content)
                remaining.append(" ")
            i = end + 1
            continue
        elif char in _PAIRS:
            depth += 1
        elif char in _CLOSERS:
            if depth == 0:
                raise InvalidDataTypeError(f"Unexpected '{char}' in field definition", line)
            depth -= 1
        remaining.append(char)
        i += 1

    if depth != 0:
        raise InvalidDataTypeError("Unbalanced brackets in data type", line)
    return "".join(remaining).strip(), groups


def _find_group_end(text: str, start: int) -> int:
    """Index of the `]` closing the `[` at `start`, or -1."""
    depth = 0
    quote: str | None = None
    for i in range(start, len(text)):
        char = text[i]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def starts_new_constraint(name: str, has_value: bool, previous: Constraint | None) -> bool:
    """Whether a comma item opens a constraint rather than extending `previous`."""
    if previous is None or previous.value is None:
        return True
    if previous.name.upper() not in LIST_CONSTRAINTS:
        return True
    if not _CONSTRAINT_NAME.match(name):
        return False
    return has_value or name in KNOWN_CONSTRAINTS


def parse_constraint_list(group: str, line: int | None = None) -> list[Constraint]:
    """Parse the inside of one `[...]` group.

    Items are `NAME` or `NAME:value`. After a list-valued constraint such as
    `ENUM` or `CIX`, an item that cannot start a constraint of its own continues
    the previous value, which keeps `ENUM:"a","b"` and `CIX:email,tenant_id`
    together. Every other item is a constraint of its own.
    """
    if not group.strip():
        raise InvalidConstraintError("Empty constraint list", line)

    constraints: list[Constraint] = []
    for raw_item in split_top_level(group):
        item = raw_item.strip()
        if not item:
            raise InvalidConstraintError(f"Empty constraint in '[{group}]'", line)

        name, colon, value = item.partition(":")
        name = name.strip()
        previous = constraints[-1] if constraints else None

        if previous is not None and not starts_new_constraint(name, bool(colon), previous):
            previous.value = f"{previous.value},{item}"
            continue

        if not name:
            raise InvalidConstraintError(f"Constraint without a name in '[{group}]'", line)
        value = value.strip()
        constraints.append(Constraint(name=name, value=value or None))
    return constraints


# --- Data Types ---


def parse_cardinality(text: str, line: int | None = None) -> Cardinality:
    """Parse `min..max` or `min..*`.

    Non-integer bounds are rejected here; ordering of the bounds is a validation
    concern.
    """
    lower, sep, upper = text.strip().partition("..")
    if not sep:
        raise InvalidCardinalityError(f"Invalid cardinality format '{text}'", line)
    try:
        minimum = int(lower.strip())
    except ValueError:
        raise InvalidCardinalityError(f"Invalid minimum cardinality '{lower.strip()}'", line)

    upper = upper.strip()
    if upper == "*":
        return Cardinality(min=minimum, max=None)
    try:
        return Cardinality(min=minimum, max=int(upper))
    except ValueError:
        raise InvalidCardinalityError(f"Invalid maximum cardinality '{upper}'", line)


def parse_data_type(text: str, line: int | None = None) -> DataType:
    """Parse a data type expression by surface syntax.

    Check order matters: Array, JSON, parametric, relationship array, then the
    simple fallback. Bare identifiers always become `SimpleType`; telling them
    apart from embedded-entity references happens after parsing.
    """
    expr = text.strip()
    if not expr:
        raise InvalidFieldError("Missing field type", line)

    if expr.startswith("Array<"):
        if not expr.endswith(">") or not _balanced(expr):
            raise InvalidDataTypeError(f"Unclosed 'Array<' in '{expr}'", line)
        return ArrayType(inner=parse_data_type(expr[len("Array<") : -1], line))

    if expr == "JSON":
        return JsonObjectType()
    if expr.startswith("JSON") and expr[4:].lstrip().startswith("{"):
        match = _JSON_OBJECT.match(expr)
        if not match or not _balanced(expr):
            raise InvalidDataTypeError(f"Unclosed '{{' in '{expr}'", line)
        return JsonObjectType(fields=_parse_json_fields(match.group(1), line))

    if "(" in expr:
        match = _PARAMETRIC.match(expr)
        if not match or not _balanced(expr):
            raise InvalidDataTypeError(f"Malformed parametric type '{expr}'", line)
        body = match.group(2).strip()
        params = tuple(p.strip() for p in split_top_level(body)) if body else ()
        return ParametricType(name=match.group(1), params=params)

    if "[" in expr:
        match = _RELATIONSHIP_ARRAY.match(expr)
        if not match:
            raise InvalidDataTypeError(f"Malformed relationship array '{expr}'", line)
        return RelationshipArrayType(
            entity=match.group(1), cardinality=parse_cardinality(match.group(2), line)
        )

    if any(char in expr for char in "<>(){}[]"):
        raise InvalidDataTypeError(f"Malformed data type '{expr}'", line)
    return SimpleType(name=expr)


def _parse_json_fields(body: str, line: int | None) -> tuple[JsonField, ...]:
    fields: list[JsonField] = []
    if not body.strip():
        return ()
    for item in split_top_level(body):
        name, colon, type_text = item.partition(":")
        if not colon or not name.strip():
            raise InvalidDataTypeError(f"Invalid JSON property '{item.strip()}'", line)
        fields.append(JsonField(name=name.strip(), data_type=parse_data_type(type_text, line)))
    return tuple(fields)


def _balanced(text: str) -> bool:
    stack: list[str] = []
    for char in text:
        if char in _PAIRS:
            stack.append(_PAIRS[char])
        elif char in _CLOSERS:
            if not stack or stack.pop() != char:
                return False
    return not stack


# --- Separators and Headers ---


def is_standard_separator(line: str) -> bool:
    """A row of at least two `=` characters."""
    stripped = line.strip()
    return len(stripped) >= 2 and set(stripped) == {"="}


def is_embedded_separator(line: str) -> bool:
    """`/=====/`"""
    stripped = line.strip()
    return (
        len(stripped) >= 3
        and stripped.startswith("/")
        and stripped.endswith("/")
        and set(stripped[1:-1]) == {"="}
    )


def is_separator_row(line: str | None) -> bool:
    return line is not None and (is_standard_separator(line) or is_embedded_separator(line))


def is_module_header(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(MODULE_HEADER_PREFIX) and _MODULE_HEADER.match(stripped) is not None


def module_name_from_header(line: str) -> str:
    """`=== Core ===` and `=== Core =========` both name module `Core`."""
    match = _MODULE_HEADER.match(line.strip())
    return match.group(1).strip() if match else ""


# --- Relationship Lines ---


def parse_relationship_line(text: str, line: int | None = None) -> Relationship:
    """Parse `From -> To [cardinality] (nature) via Junction # comment`."""
    content, comment = split_inline_comment(text.strip())
    if ARROW not in content:
        raise InvalidRelationshipError(f"Expected '{ARROW}' in relationship '{content}'", line)

    left, _, right = content.partition(ARROW)
    from_entity = left.strip()

    cardinality_match = _RELATIONSHIP_CARDINALITY.search(right)
    if cardinality_match is None:
        raise InvalidRelationshipError("Missing cardinality", line)
    token = cardinality_match.group(1).strip()
    try:
        cardinality = RelationshipCardinality(token)
    except ValueError:
        raise InvalidRelationshipError(f"Unknown cardinality: {token}", line)

    to_entity = right[: cardinality_match.start()].strip()
    if not from_entity or not to_entity:
        raise InvalidRelationshipError(f"Missing entity name in '{content}'", line)

    tail = right[cardinality_match.end() :]
    nature = None
    nature_match = _RELATIONSHIP_NATURE.search(tail)
    if nature_match:
        nature_token = nature_match.group(1).strip()
        try:
            nature = RelationshipNature(nature_token)
        except ValueError:
            raise InvalidRelationshipError(f"Unknown relationship nature: {nature_token}", line)

    via_match = _RELATIONSHIP_VIA.search(tail)
    return Relationship(
        from_entity=from_entity,
        to_entity=to_entity,
        cardinality=cardinality,
        nature=nature,
        via_entity=via_match.group(1) if via_match else None,
        comment=comment,
    )


def parse_relationship_detail(text: str, line: int | None = None) -> RelationshipDetail:
    """Parse `## From.field -> To.field # comment`."""
    body = text.strip()
    if body.startswith(RELATIONSHIP_DETAIL_PREFIX.strip()):
        body = body[2:]
    content, comment = split_inline_comment(body.strip())
    left, arrow, right = content.partition(ARROW)
    source = _DETAIL_ENDPOINT.match(left.strip())
    target = _DETAIL_ENDPOINT.match(right.strip())
    if not arrow or source is None or target is None:
        raise InvalidRelationshipError(
            f"Relationship detail must look like 'Entity.field -> Entity.field': '{content}'",
            line,
        )
    return RelationshipDetail(
        from_entity=source.group(1),
        from_field=source.group(2),
        to_entity=target.group(1),
        to_field=target.group(2),
        comment=comment,
    )
