"""Pon driver — the statement loop.

Reads one top-level statement at a time, hands it to the parser and then to
the lowering pass, and reports what happened. A statement that fails to parse
costs exactly one token: the driver skips it and carries on, so a typo never
ends the session.
"""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, TextIO, Union

from pon.ast_nodes import Prototype, FunctionDef
from pon.codegen import CompilationContext
from pon.errors import PonError
from pon.lexer import Lexer, TokenKind
from pon.parser import Parser

logger = logging.getLogger(__name__)

Statement = Union[Prototype, FunctionDef]


@dataclass
class SessionResult:
    """Summary of one driver run."""
    statements: int = 0
    errors: int = 0
    diagnostics: list[PonError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class Driver:
    """Parses and lowers every statement of a source stream."""

    def __init__(
        self,
        source: TextIO,
        context: Optional[CompilationContext] = None,
        precedence: Optional[Mapping[str, int]] = None,
        out: Optional[TextIO] = None,
        prompt: Optional[str] = None,
        filename: str = "<stdin>",
        dump_module: bool = False,
    ):
        self.context = context if context is not None else CompilationContext()
        self.parser = Parser(Lexer(source, filename), precedence)
        self.out = out if out is not None else sys.stderr
        self.prompt = prompt
        self.dump_module = dump_module

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def statements(self) -> Iterator[Statement]:
        """Yield each statement that parses; skip one token after each that does not."""
        parser = self.parser
        if self.prompt:
            self._write(self.prompt)
        self._advance()
        while parser.current is None:
            self._advance()

        while True:
            tok = parser.current
            if tok.kind is TokenKind.EOF:
                return
            if tok.is_char(";"):
                self._advance()
            else:
                if tok.kind is TokenKind.DEF:
                    node = parser.parse_definition()
                elif tok.kind is TokenKind.EXTERN:
                    node = parser.parse_extern()
                else:
                    node = parser.parse_top_level_expression()

                if node is None:
                    self._report(parser.diagnostics[-1])
                    self._advance()
                else:
                    yield node
            if self.prompt:
                self._write(self.prompt)

    def run(self) -> SessionResult:
        result = SessionResult()
        for node in self.statements():
            result.statements += 1
            fn = self.context.lower(node)
            if fn is None:
                self._report(self.context.diagnostics[-1])
                continue
            self._write(f"{_describe(node)}{self.context.backend.function_ir(fn)}\n")

        if self.dump_module:
            self._write("\n" + self.context.backend.ir_text() + "\n")

        result.diagnostics = self.parser.diagnostics + self.context.diagnostics
        result.errors = len(result.diagnostics)
        logger.debug("session done: %d statements, %d errors", result.statements, result.errors)
        return result

    def _advance(self) -> None:
        seen = len(self.parser.diagnostics)
        self.parser.skip_token()
        for err in self.parser.diagnostics[seen:]:
            self._report(err)

    def _report(self, error: PonError) -> None:
        loc = f"{error.location}: " if error.location else ""
        self._write(f"Error: {loc}{error.message}\n")


def _describe(node: Statement) -> str:
    if isinstance(node, Prototype):
        return "Read extern: "
    if node.prototype.is_anonymous:
        return "Read top-level expression:"
    return "Read function definition:"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compile_source(
    source: str,
    precedence: Optional[Mapping[str, int]] = None,
    context: Optional[CompilationContext] = None,
    out: Optional[TextIO] = None,
    filename: str = "<string>",
) -> tuple[CompilationContext, SessionResult]:
    """Run every statement of *source* through the pipeline."""
    driver = Driver(
        io.StringIO(source),
        context=context,
        precedence=precedence,
        out=out if out is not None else io.StringIO(),
        filename=filename,
    )
    result = driver.run()
    return driver.context, result


def parse_source(
    source: str,
    precedence: Optional[Mapping[str, int]] = None,
    filename: str = "<string>",
) -> tuple[list[Statement], list[PonError]]:
    """Parse every statement of *source* without lowering it."""
    driver = Driver(
        io.StringIO(source),
        precedence=precedence,
        out=io.StringIO(),
        filename=filename,
    )
    nodes = list(driver.statements())
    return nodes, driver.parser.diagnostics
