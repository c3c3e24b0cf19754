"""Lexer and parser for the ``---`` delimited frontmatter block.

The lexer is a pure function from ``(text, cursor)`` to ``(token, cursor)``.
Three modes are entered on successive ``---`` lines::

    START --- HEADER --- BODY

Inside HEADER a line ``key: value`` lexes as a TEXT token for the key and a
KEYVAL token for the value. Token boundaries are found by looking one
character ahead: a token ends before a newline, before end of input, or in
HEADER mode before the ``:`` separator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Iterator, NamedTuple

from .errors import ParseError
from .render import read_text

BAR = "---"


class TokenKind(Enum):
    BAR = auto()
    KEYVAL = auto()
    TEXT = auto()
    NEWLINE = auto()
    EOF = auto()


class Mode(Enum):
    START = auto()
    HEADER = auto()
    BODY = auto()


class Token(NamedTuple):
    kind: TokenKind
    value: str
    start: int
    end: int
    line: int
    col: int


class Cursor(NamedTuple):
    pos: int = 0
    line: int = 1
    col: int = 1
    mode: Mode = Mode.START


def _next_mode(mode: Mode) -> Mode:
    if mode is Mode.START:
        return Mode.HEADER
    return Mode.BODY


def next_token(text: str, cursor: Cursor, name: str = "<string>") -> tuple[Token, Cursor]:
    """Scan one token starting at ``cursor``.

    Whitespace-only TEXT runs are skipped rather than returned, so the
    returned token may start after ``cursor.pos``.
    """
    pos, line, col, mode = cursor
    size = len(text)
    start = -1
    start_line = start_col = 0

    while pos < size:
        char = text[pos]
        if char == "\n":
            token = Token(TokenKind.NEWLINE, "", pos, pos + 1, line, col)
            return token, Cursor(pos + 1, line + 1, 1, mode)

        if start < 0:
            start, start_line, start_col = pos, line, col

        if mode is Mode.HEADER and char == ":":
            value_pos, value_col = pos + 1, col + 1
            while value_pos < size and text[value_pos] == " ":
                value_pos += 1
                value_col += 1
            end = text.find("\n", value_pos)
            if end < 0:
                raise ParseError(
                    "Got EOF on key-value pair", name, line, value_col + size - value_pos
                )
            token = Token(TokenKind.KEYVAL, text[value_pos:end], pos, end + 1, line, col)
            return token, Cursor(end + 1, line + 1, 1, mode)

        rod = text[start : pos + 1]
        peek = text[pos + 1] if pos + 1 < size else "\0"

        if rod == BAR and peek in ("\n", "\0"):
            end = min(pos + 2, size)
            if peek == "\n":
                after = Cursor(end, line + 1, 1, _next_mode(mode))
            else:
                after = Cursor(end, line, col + 1, _next_mode(mode))
            return Token(TokenKind.BAR, "", start, end, start_line, start_col), after

        if peek in ("\n", "\0") or (mode is Mode.HEADER and peek == ":"):
            pos, col = pos + 1, col + 1
            if not rod.strip():
                start = -1
                continue
            token = Token(TokenKind.TEXT, rod, start, pos, start_line, start_col)
            return token, Cursor(pos, line, col, mode)

        pos, col = pos + 1, col + 1

    return Token(TokenKind.EOF, "", size, size, line, col), Cursor(size, line, col, mode)


def tokenize(text: str, name: str = "<string>") -> Iterator[Token]:
    """Yield tokens lazily up to and including EOF."""
    cursor = Cursor()
    while True:
        token, cursor = next_token(text, cursor, name)
        yield token
        if token.kind is TokenKind.EOF:
            return


@dataclass(frozen=True)
class Frontmatter:
    values: dict[str, str] = field(default_factory=dict)
    body_offset: int = 0

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def body(self, text: str) -> str:
        return text[self.body_offset :]


def parse_frontmatter(text: str, name: str = "<string>") -> Frontmatter:
    tokens = tokenize(text, name)
    first = next(tokens)
    if first.kind is not TokenKind.BAR:
        raise ParseError("Expected --- at start", name, first.line, first.col)

    values: dict[str, str] = {}
    for token in tokens:
        if token.kind is TokenKind.BAR:
            return Frontmatter(values, token.end)
        if token.kind is TokenKind.NEWLINE:
            continue
        if token.kind is TokenKind.TEXT:
            value = next(tokens)
            if value.kind is not TokenKind.KEYVAL:
                raise ParseError("Expected key value pair", name, value.line, value.col)
            values[token.value] = value.value
            continue
        raise ParseError("Expected --- at the end", name, token.line, token.col)
    raise ParseError("Expected --- at the end", name)


def split_document(text: str, name: str = "<string>") -> tuple[Frontmatter, str]:
    frontmatter = parse_frontmatter(text, name)
    return frontmatter, frontmatter.body(text)


def read_document(path: Path) -> tuple[Frontmatter, str]:
    text = read_text(path, "utf-8-sig")
    return split_document(text, path.as_posix())


def read_frontmatter(path: Path) -> Frontmatter:
    return read_document(path)[0]
