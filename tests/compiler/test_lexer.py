"""Pon Lexer Tests.

Covers keyword/identifier classification, number literals (including the
rejected multi-dot form), comments, punctuation and source locations.
"""

import io

import pytest

from pon.lexer import Lexer, Token, TokenKind, tokenize
from pon.errors import CompileError, ErrorKind


def _kinds_and_values(source):
    return [(t.kind, t.value) for t in tokenize(source)]


class TestKeywordsAndIdentifiers:
    """Identifiers are alpha followed by alphanumerics; def/extern are reserved."""

    def test_definition_tokens(self):
        assert _kinds_and_values("def foo(x) x+1") == [
            (TokenKind.DEF, "def"),
            (TokenKind.IDENTIFIER, "foo"),
            (TokenKind.CHAR, "("),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.CHAR, ")"),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.CHAR, "+"),
            (TokenKind.NUMBER, 1.0),
            (TokenKind.EOF, None),
        ]

    def test_extern_keyword(self):
        tokens = tokenize("extern sin(a)")
        assert tokens[0].kind is TokenKind.EXTERN

    def test_keyword_prefix_is_identifier(self):
        tokens = tokenize("define externs")
        assert tokens[0].kind is TokenKind.IDENTIFIER
        assert tokens[0].value == "define"
        assert tokens[1].kind is TokenKind.IDENTIFIER
        assert tokens[1].value == "externs"

    def test_alphanumeric_identifier(self):
        tokens = tokenize("a1b2")
        assert tokens[0] == Token(TokenKind.IDENTIFIER, "a1b2", tokens[0].location)

    def test_digit_then_letter_splits(self):
        assert _kinds_and_values("1a")[:2] == [
            (TokenKind.NUMBER, 1.0),
            (TokenKind.IDENTIFIER, "a"),
        ]


class TestNumbers:
    """Numbers are runs of digits and dots holding a valid decimal float."""

    def test_integer_literal(self):
        assert tokenize("42")[0].value == 42.0

    def test_fractional_literal(self):
        assert tokenize("4.5")[0].value == 4.5

    def test_leading_dot(self):
        assert tokenize(".5")[0].value == 0.5

    def test_trailing_dot(self):
        assert tokenize("3.")[0].value == 3.0

    def test_multiple_dots_rejected(self):
        with pytest.raises(CompileError) as exc_info:
            tokenize("1.2.3")
        err = exc_info.value.errors[0]
        assert err.kind is ErrorKind.LEXICAL_ERROR
        assert err.details["text"] == "1.2.3"

    def test_lone_dot_rejected(self):
        with pytest.raises(CompileError):
            tokenize(".")

    def test_lexer_continues_after_bad_number(self):
        lexer = Lexer.from_string("1..2 + 3")
        with pytest.raises(CompileError):
            lexer.next_token()
        tok = lexer.next_token()
        assert tok.is_char("+")
        assert lexer.next_token().value == 3.0


class TestCommentsAndWhitespace:
    """Whitespace is discarded; '#' comments run to the end of the line."""

    def test_comment_transparency(self):
        with_comment = _kinds_and_values("1 + 2 # trailing comment\n + 3")
        without = _kinds_and_values("1 + 2 + 3")
        assert with_comment == without

    def test_comment_at_end_of_input(self):
        assert _kinds_and_values("7 # no newline") == [
            (TokenKind.NUMBER, 7.0),
            (TokenKind.EOF, None),
        ]

    def test_consecutive_comment_lines(self):
        assert _kinds_and_values("# one\n# two\r\nx") == [
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.EOF, None),
        ]

    def test_empty_input(self):
        assert _kinds_and_values("   \n\t ") == [(TokenKind.EOF, None)]


class TestPunctuationAndEOF:
    """Any other character is a token of its own; EOF is sticky."""

    def test_single_character_tokens(self):
        tokens = tokenize("(,);<*-!")
        chars = [t.value for t in tokens[:-1]]
        assert chars == ["(", ",", ")", ";", "<", "*", "-", "!"]
        assert all(t.kind is TokenKind.CHAR for t in tokens[:-1])

    def test_eof_repeats(self):
        lexer = Lexer.from_string("x")
        lexer.next_token()
        assert lexer.next_token().kind is TokenKind.EOF
        assert lexer.next_token().kind is TokenKind.EOF

    def test_reads_from_stream(self):
        lexer = Lexer(io.StringIO("extern f()"), filename="repl")
        tok = lexer.next_token()
        assert tok.kind is TokenKind.EXTERN
        assert tok.location.file == "repl"


class TestLocations:
    """Tokens carry the line and column where they start."""

    def test_first_token_location(self):
        tok = tokenize("foo")[0]
        assert (tok.location.line, tok.location.column) == (1, 1)

    def test_location_after_newline(self):
        tokens = tokenize("x\n  y")
        assert (tokens[1].location.line, tokens[1].location.column) == (2, 3)

    def test_location_after_comment(self):
        tokens = tokenize("# note\n\n  42")
        assert (tokens[0].location.line, tokens[0].location.column) == (3, 3)
