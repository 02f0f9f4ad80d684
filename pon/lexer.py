"""Pon Lexer — on-demand tokenizer with line/column tracking.

Reads one character at a time from a text stream and hands out one token per
call, so it works equally well on a file and on an interactive terminal.
Only the current character is kept between calls.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, TextIO, Union

from pon.errors import SourceLocation, lexical_error, CompileError

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    EOF = auto()

    # Keywords
    DEF = auto()
    EXTERN = auto()

    # Primary
    IDENTIFIER = auto()
    NUMBER = auto()

    # Any other single character: operators, parens, commas, ';'
    CHAR = auto()


KEYWORDS: dict[str, TokenKind] = {
    "def": TokenKind.DEF,
    "extern": TokenKind.EXTERN,
}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Union[str, float, None] = None
    location: Optional[SourceLocation] = None

    def is_char(self, ch: str) -> bool:
        return self.kind is TokenKind.CHAR and self.value == ch

    def __str__(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.NUMBER:
            return f"{self.value:g}"
        return str(self.value)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.value!r}, {self.location})"


class Lexer:
    """Tokenizer for Pon source text."""

    def __init__(self, stream: TextIO, filename: str = "<stdin>"):
        self.stream = stream
        self.filename = filename
        # Position of the current character. The lexer starts on a virtual
        # blank just before column 1.
        self.line = 1
        self.column = 0
        self._last_char = " "

    @classmethod
    def from_string(cls, source: str, filename: str = "<string>") -> Lexer:
        return cls(io.StringIO(source), filename)

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.filename)

    def _advance(self) -> str:
        if self._last_char == "":
            return ""
        if self._last_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self._last_char = self.stream.read(1)
        return self._last_char

    def _skip_whitespace_and_comments(self) -> None:
        while True:
            while self._last_char.isspace():
                self._advance()
            if self._last_char != "#":
                return
            while self._last_char not in ("", "\n", "\r"):
                self._advance()

    def _read_identifier(self) -> Token:
        loc = self._loc()
        value = self._last_char
        while self._advance().isalnum():
            value += self._last_char
        kind = KEYWORDS.get(value, TokenKind.IDENTIFIER)
        return Token(kind, value, loc)

    def _read_number(self) -> Token:
        loc = self._loc()
        text = ""
        while self._last_char.isdigit() or self._last_char == ".":
            text += self._last_char
            self._advance()
        try:
            value = float(text)
        except ValueError:
            raise CompileError(lexical_error(text, loc)) from None
        return Token(TokenKind.NUMBER, value, loc)

    def next_token(self) -> Token:
        """Return the next token from the stream; EOF repeats once reached."""
        self._skip_whitespace_and_comments()
        ch = self._last_char

        if ch.isalpha():
            tok = self._read_identifier()
        elif ch.isdigit() or ch == ".":
            tok = self._read_number()
        elif ch == "":
            tok = Token(TokenKind.EOF, None, self._loc())
        else:
            tok = Token(TokenKind.CHAR, ch, self._loc())
            self._advance()

        logger.debug("token %r", tok)
        return tok


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function: every token of *source*, ending with EOF."""
    lexer = Lexer.from_string(source, filename)
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.kind is TokenKind.EOF:
            return tokens
