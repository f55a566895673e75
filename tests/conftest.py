"""Shared fixtures: sample DBSoup documents and a small document builder."""

import textwrap
from pathlib import Path

import pytest

from dbsoup.schema.parser import parse_document


ECOMMERCE_SCHEMA = """\
---
@specs: DBSoup 1.0
@version: 1.2
---
@ecommerce.dbsoup
# Sample store schema

=== RELATIONSHIP DEFINITIONS ===
# One-to-Many Relationships
User -> Order [1:M] (composition) # user places orders
User -> Address [1:M] (composition)
Order -> OrderItem [1:M] (composition)
Product -> OrderItem [1:M] (association)

# Many-to-Many Relationships
Product -> Category [M:N] (association) via ProductCategory

=== DATABASE SCHEMA ===
+ Core # identity
+ Commerce

=== Core ===
Accounts and identity

User # registered customer
==========
* id              : UUID               [PK]
* ! email         : String(255)        [UK,INDEX]
@ password_hash   : String             [ENCRYPTED]
- display_name    : String(100)
- preferences     : JSON
- addresses       : Address[0..*]
$ created_at      : DateTime           [SYSTEM]
# RELATIONSHIPS
@ relationships:: has many orders
## Order.user_id -> User.id # owner

Address
/=========/
* id              : UUID               [PK]
* street          : String
* city            : String
- zip             : String(10)

=== Commerce ===

Order # customer order
==========
* id              : UUID               [PK]
* user_id         : UUID               [FK:User.id]
* status          : String             [ENUM:pending,paid,shipped] [DEFAULT:pending]
* total           : Decimal(10,2)
- items           : OrderItem[1..*]
- shipping        : Address
# NOTES
Orders are immutable once paid.

OrderItem
==========
* id              : UUID               [PK]
* order_id        : UUID               [FK:Order.id]
* product_id      : UUID               [FK:Product.id]
* quantity        : Int                [DEFAULT:1]
* unit_price      : Decimal(10,2)

Product
==========
* id              : UUID               [PK]
* ! sku           : String(64)         [UK]
* name            : String(200)
- tags            : Array<String>
- variants        : JSON{size: String, color: String}

Category
==========
* id              : UUID               [PK]
* name            : String(100)
- parent_id       : UUID               [FK:Category.id]

ProductCategory
==========
* product_id      : UUID               [PK,FK:Product.id]
* category_id     : UUID               [PK,FK:Category.id]
- position        : Int
"""


DOCUMENT_TEMPLATE = """\
@test.dbsoup

=== RELATIONSHIP DEFINITIONS ===
{relationships}

=== DATABASE SCHEMA ===
+ Core

=== Core ===

{entities}
"""


@pytest.fixture
def ecommerce_text() -> str:
    return ECOMMERCE_SCHEMA


@pytest.fixture
def ecommerce_document(ecommerce_text):
    return parse_document(ecommerce_text)


@pytest.fixture
def ecommerce_file(tmp_path) -> Path:
    """The sample schema written to disk."""
    path = tmp_path / "ecommerce.dbsoup"
    path.write_text(ECOMMERCE_SCHEMA, encoding="utf-8")
    return path


@pytest.fixture
def make_text():
    """Build document text around entity definitions and relationship lines.

    Usage:
        text = make_text('''
            User
            ==========
            * id : UUID [PK]
        ''', relationships="User -> Order [1:M]")
    """

    def _make(entities: str, relationships: str = "") -> str:
        return DOCUMENT_TEMPLATE.format(
            relationships=textwrap.dedent(relationships).strip(),
            entities=textwrap.dedent(entities).strip(),
        )

    return _make


@pytest.fixture
def make_document(make_text):
    """Like `make_text`, but returns the parsed document."""

    def _make(entities: str, relationships: str = ""):
        return parse_document(make_text(entities, relationships))

    return _make
