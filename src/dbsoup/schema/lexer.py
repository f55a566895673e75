"""
Line reader for DBSoup documents.

The notation is line oriented, so instead of a token stream the parser works
on physical lines with one line of lookahead.
"""

from dbsoup.schema.errors import UnexpectedEndOfInputError


def is_blank(line: str) -> bool:
    return not line.strip()


def is_comment(line: str) -> bool:
    """Full-line comment: trimmed content starts with `#`."""
    return line.strip().startswith("#")


class LineReader:
    """Peekable cursor over the lines of one document.

    Each parse owns its own reader; nothing here is shared between documents.
    """

    def __init__(self, text: str):
        self.lines: list[str] = text.splitlines()
        self.pos = 0

    @property
    def has_more(self) -> bool:
        return self.pos < len(self.lines)

    @property
    def line_number(self) -> int:
        """1-based number of the line `peek()` returns."""
        return self.pos + 1

    def peek(self) -> str | None:
        """Return the current line without consuming it."""
        if self.pos < len(self.lines):
            return self.lines[self.pos]
        return None

    def peek_next(self) -> str | None:
        """Return the line after the current one without consuming anything."""
        if self.pos + 1 < len(self.lines):
            return self.lines[self.pos + 1]
        return None

    def advance(self) -> str:
        """Consume and return the current line."""
        if self.pos >= len(self.lines):
            raise UnexpectedEndOfInputError(line=self.line_number)
        line = self.lines[self.pos]
        self.pos += 1
        return line

    def skip_blank(self) -> None:
        while self.has_more and is_blank(self.lines[self.pos]):
            self.pos += 1

    def skip_blank_and_comments(self, collect: list[str] | None = None) -> None:
        """Advance past blank and full-line comment lines.

        When `collect` is given, the text of every skipped comment (without the
        leading `#` and surrounding whitespace) is appended to it.
        """
        while self.has_more:
            line = self.lines[self.pos]
            if is_blank(line):
                self.pos += 1
            elif is_comment(line):
                if collect is not None:
                    collect.append(line.strip()[1:].strip())
                self.pos += 1
            else:
                break
