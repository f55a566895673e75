"""
Exceptions raised while parsing DBSoup documents.
"""


class DBSoupError(Exception):
    """Base exception for all DBSoup errors."""

    pass


class DBSoupParseError(DBSoupError):
    """Raised when a document cannot be parsed.

    Parsing stops at the first error; `line` is the 1-based line number of the
    offending input line when it is known.
    """

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        location = ""
        if line is not None:
            location = f" at line {line}"
        super().__init__(f"{message}{location}")


class InvalidHeaderError(DBSoupParseError):
    pass


class UnexpectedTokenError(DBSoupParseError):
    pass


class InvalidRelationshipError(DBSoupParseError):
    pass


class InvalidEntityError(DBSoupParseError):
    pass


class InvalidFieldError(DBSoupParseError):
    pass


class InvalidDataTypeError(DBSoupParseError):
    pass


class InvalidConstraintError(DBSoupParseError):
    pass


class InvalidCardinalityError(DBSoupParseError):
    pass


class UnexpectedEndOfInputError(DBSoupParseError):
    """Raised when the input ends where more content was required."""

    def __init__(self, message: str = "Unexpected end of input", line: int | None = None):
        super().__init__(message, line)
