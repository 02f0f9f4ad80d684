"""Pon Parser — recursive descent with precedence climbing.

Pulls tokens from a Lexer on demand and builds one top-level statement at a
time. Binary operators are resolved with a configurable precedence table.

Failures inside a production raise CompileError; the public statement-level
entry points turn that into a recorded diagnostic and a None result, so a
malformed statement never yields a partial node.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, TypeVar

from pon.lexer import Lexer, Token, TokenKind
from pon.ast_nodes import (
    Expr, NumberLiteral, VariableRef, BinaryOp, Call, Prototype, FunctionDef,
)
from pon.errors import PonError, SourceLocation, syntax_error, CompileError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Higher binds tighter.
DEFAULT_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
}


def validate_precedence(table: Mapping[str, int]) -> dict[str, int]:
    """Check a precedence table: single-character keys, positive int values."""
    checked: dict[str, int] = {}
    for op, prec in table.items():
        if not isinstance(op, str) or len(op) != 1:
            raise ValueError(f"Operator must be a single character, got {op!r}")
        if op.isalnum() or op.isspace() or op in "(),;#.":
            raise ValueError(f"Character {op!r} cannot be a binary operator")
        if isinstance(prec, bool) or not isinstance(prec, int) or prec <= 0:
            raise ValueError(f"Precedence of {op!r} must be a positive integer, got {prec!r}")
        checked[op] = prec
    return checked


class Parser:
    """Recursive-descent parser for Pon statements."""

    def __init__(self, lexer: Lexer, precedence: Optional[Mapping[str, int]] = None):
        self.lexer = lexer
        self.precedence = validate_precedence(
            DEFAULT_PRECEDENCE if precedence is None else precedence
        )
        self.current: Optional[Token] = None
        self.diagnostics: list[PonError] = []

    @classmethod
    def from_string(cls, source: str, precedence: Optional[Mapping[str, int]] = None,
                    filename: str = "<string>") -> Parser:
        """Parser over *source*, already positioned on its first token."""
        parser = cls(Lexer.from_string(source, filename), precedence)
        parser.next_token()
        return parser

    # -------------------------------------------------------------------
    # Token handling
    # -------------------------------------------------------------------

    def next_token(self) -> Token:
        self.current = self.lexer.next_token()
        return self.current

    def _loc(self) -> Optional[SourceLocation]:
        return self.current.location if self.current else None

    def _token_precedence(self) -> int:
        tok = self.current
        if tok is None or tok.kind is not TokenKind.CHAR:
            return -1
        return self.precedence.get(tok.value, -1)

    def _error(self, message: str) -> CompileError:
        return CompileError(syntax_error(message, self._loc()))

    # -------------------------------------------------------------------
    # Statement boundary
    # -------------------------------------------------------------------

    def _statement(self, production: Callable[[], T]) -> Optional[T]:
        try:
            if self.current is None:
                self.next_token()
            return production()
        except CompileError as e:
            self.report(e)
            return None

    def report(self, error: CompileError) -> None:
        """Record the diagnostics carried by *error*."""
        for err in error.errors:
            logger.info("%s", err)
        self.diagnostics.extend(error.errors)

    def skip_token(self) -> None:
        """Drop the current token so parsing can resume after a failure."""
        try:
            self.next_token()
        except CompileError as e:
            self.report(e)

    def parse_definition(self) -> Optional[FunctionDef]:
        """definition ::= 'def' prototype expression"""
        return self._statement(self._parse_definition)

    def parse_extern(self) -> Optional[Prototype]:
        """external ::= 'extern' prototype"""
        return self._statement(self._parse_extern)

    def parse_top_level_expression(self) -> Optional[FunctionDef]:
        """toplevelexpr ::= expression, wrapped in an anonymous nullary function"""
        return self._statement(self._parse_top_level_expression)

    # -------------------------------------------------------------------
    # Top level
    # -------------------------------------------------------------------

    def _parse_definition(self) -> FunctionDef:
        loc = self._loc()
        self.next_token()  # eat 'def'
        proto = self._parse_prototype()
        body = self._parse_expression()
        logger.debug("parsed definition of %s", proto.name)
        return FunctionDef(prototype=proto, body=body, location=loc)

    def _parse_extern(self) -> Prototype:
        self.next_token()  # eat 'extern'
        proto = self._parse_prototype()
        logger.debug("parsed extern %s", proto.name)
        return proto

    def _parse_top_level_expression(self) -> FunctionDef:
        loc = self._loc()
        body = self._parse_expression()
        proto = Prototype(name="", params=(), location=loc)
        return FunctionDef(prototype=proto, body=body, location=loc)

    def _parse_prototype(self) -> Prototype:
        tok = self.current
        if tok.kind is not TokenKind.IDENTIFIER:
            raise self._error("Expected function name in prototype")
        name = tok.value
        self.next_token()

        if not self.current.is_char("("):
            raise self._error("Expected '(' in prototype")

        params: list[str] = []
        while self.next_token().kind is TokenKind.IDENTIFIER:
            params.append(self.current.value)
        if not self.current.is_char(")"):
            raise self._error("Expected ')' in prototype")
        self.next_token()  # eat ')'

        return Prototype(name=name, params=tuple(params), location=tok.location)

    # -------------------------------------------------------------------
    # Expressions (precedence climbing)
    # -------------------------------------------------------------------

    def _parse_expression(self) -> Expr:
        lhs = self._parse_primary()
        return self._parse_binop_rhs(0, lhs)

    def _parse_binop_rhs(self, expr_prec: int, lhs: Expr) -> Expr:
        while True:
            tok_prec = self._token_precedence()
            # Not an operator, or one that binds looser than what we are
            # currently extending: the caller takes over.
            if tok_prec < expr_prec:
                return lhs

            op_tok = self.current
            self.next_token()
            rhs = self._parse_primary()

            if tok_prec < self._token_precedence():
                rhs = self._parse_binop_rhs(tok_prec + 1, rhs)

            lhs = BinaryOp(op=op_tok.value, left=lhs, right=rhs, location=op_tok.location)

    def _parse_primary(self) -> Expr:
        tok = self.current
        if tok.kind is TokenKind.IDENTIFIER:
            return self._parse_identifier_expr()
        if tok.kind is TokenKind.NUMBER:
            self.next_token()
            return NumberLiteral(value=tok.value, location=tok.location)
        if tok.is_char("("):
            return self._parse_paren_expr()
        raise self._error(f"unknown token '{tok}' when expecting an expression")

    def _parse_paren_expr(self) -> Expr:
        self.next_token()  # eat '('
        expr = self._parse_expression()
        if not self.current.is_char(")"):
            raise self._error("expected ')'")
        self.next_token()
        return expr

    def _parse_identifier_expr(self) -> Expr:
        tok = self.current
        self.next_token()
        if not self.current.is_char("("):
            return VariableRef(name=tok.value, location=tok.location)

        self.next_token()  # eat '('
        args: list[Expr] = []
        if not self.current.is_char(")"):
            while True:
                args.append(self._parse_expression())
                if self.current.is_char(")"):
                    break
                if not self.current.is_char(","):
                    raise self._error("Expected ')' or ',' in argument list")
                self.next_token()
        self.next_token()  # eat ')'

        return Call(callee=tok.value, args=tuple(args), location=tok.location)
