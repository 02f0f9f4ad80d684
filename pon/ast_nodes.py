"""Pon AST node definitions.

A closed set of node kinds. Expressions: number literals, variable
references, binary operations and calls. Top level: prototypes (extern
declarations) and function definitions. Nodes are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pon.errors import SourceLocation


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NumberLiteral:
    value: float = 0.0
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True)
class VariableRef:
    name: str = ""
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BinaryOp:
    op: str = ""
    left: Expr = field(default_factory=NumberLiteral)
    right: Expr = field(default_factory=NumberLiteral)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"({self.left}{self.op}{self.right})"


@dataclass(frozen=True)
class Call:
    callee: str = ""
    args: tuple[Expr, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.callee}({', '.join(str(a) for a in self.args)})"


Expr = Union[NumberLiteral, VariableRef, BinaryOp, Call]


# ---------------------------------------------------------------------------
# Top-level constructs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Prototype:
    """A function's name and parameter names. Empty name = anonymous wrapper."""
    name: str = ""
    params: tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""

    def __str__(self) -> str:
        return f"{self.name}({' '.join(self.params)})"


@dataclass(frozen=True)
class FunctionDef:
    prototype: Prototype = field(default_factory=Prototype)
    body: Expr = field(default_factory=NumberLiteral)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        if self.prototype.is_anonymous:
            return str(self.body)
        return f"def {self.prototype} {self.body}"


Node = Union[NumberLiteral, VariableRef, BinaryOp, Call, Prototype, FunctionDef]


def to_dict(node: Node) -> dict[str, Any]:
    """JSON-friendly dump of a node tree."""
    if isinstance(node, NumberLiteral):
        return {"node": "number", "value": node.value}
    if isinstance(node, VariableRef):
        return {"node": "variable", "name": node.name}
    if isinstance(node, BinaryOp):
        return {
            "node": "binary",
            "op": node.op,
            "left": to_dict(node.left),
            "right": to_dict(node.right),
        }
    if isinstance(node, Call):
        return {
            "node": "call",
            "callee": node.callee,
            "args": [to_dict(a) for a in node.args],
        }
    if isinstance(node, Prototype):
        return {"node": "prototype", "name": node.name, "params": list(node.params)}
    if isinstance(node, FunctionDef):
        return {
            "node": "function",
            "prototype": to_dict(node.prototype),
            "body": to_dict(node.body),
        }
    raise TypeError(f"not a Pon AST node: {node!r}")
