"""Structured error objects for the Pon compiler.

Every diagnostic is machine-readable: a kind, a message, an optional source
location and a details dict. The driver prints them; tools can dump them as JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    LEXICAL_ERROR = "lexical_error"
    SYNTAX_ERROR = "syntax_error"
    UNDEFINED_SYMBOL = "undefined_symbol"
    ARITY_MISMATCH = "arity_mismatch"
    REDEFINITION_CONFLICT = "redefinition_conflict"
    INVALID_OPERATOR = "invalid_operator"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int
    file: str = "<stdin>"

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass
class PonError:
    kind: ErrorKind
    message: str
    location: Optional[SourceLocation] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.location:
            d["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


def lexical_error(
    text: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.LEXICAL_ERROR,
        message=f"Malformed number literal '{text}'",
        location=location,
        details={"text": text},
    )


def syntax_error(
    message: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.SYNTAX_ERROR,
        message=message,
        location=location,
    )


def undefined_symbol(
    name: str,
    symbol_kind: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    """Unknown variable or function. *symbol_kind* is "variable" or "function"."""
    if symbol_kind == "variable":
        message = f"Unknown variable name '{name}'"
    else:
        message = f"Unknown function referenced '{name}'"
    return PonError(
        kind=ErrorKind.UNDEFINED_SYMBOL,
        message=message,
        location=location,
        details={"name": name, "symbol_kind": symbol_kind},
    )


def arity_mismatch(
    name: str,
    expected: int,
    actual: int,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.ARITY_MISMATCH,
        message=f"Incorrect # arguments passed to '{name}': expected {expected}, got {actual}",
        location=location,
        details={"name": name, "expected": expected, "actual": actual},
    )


def redefinition_conflict(
    name: str,
    reason: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.REDEFINITION_CONFLICT,
        message=f"{reason} '{name}'",
        location=location,
        details={"name": name},
    )


def invalid_operator(
    op: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.INVALID_OPERATOR,
        message=f"invalid binary operator '{op}'",
        location=location,
        details={"op": op},
    )


def internal_error(
    message: str,
    location: Optional[SourceLocation] = None,
) -> PonError:
    return PonError(
        kind=ErrorKind.INTERNAL_ERROR,
        message=message,
        location=location,
    )


class CompileError(Exception):
    """Exception wrapping one or more PonErrors."""

    def __init__(self, errors: list[PonError] | PonError):
        if isinstance(errors, PonError):
            errors = [errors]
        self.errors = errors
        super().__init__(self._format())

    def _format(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps([e.to_dict() for e in self.errors], indent=indent)
