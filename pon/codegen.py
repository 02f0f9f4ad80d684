"""Pon lowering — AST to LLVM IR.

A CompilationContext owns everything a session accumulates: the IR backend,
the table of known functions and the local table of the function currently
being lowered. ``lower`` walks one top-level node bottom-up and emits IR
through the backend, enforcing the call arity and redefinition rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from llvmlite import ir as llvm_ir

from pon.ast_nodes import (
    Node, NumberLiteral, VariableRef, BinaryOp, Call, Prototype, FunctionDef,
)
from pon.backend import LLVMBackend, BINARY_OPERATORS
from pon.errors import (
    PonError, CompileError,
    undefined_symbol, arity_mismatch, redefinition_conflict, invalid_operator,
)

logger = logging.getLogger(__name__)

ANON_FUNCTION_NAME = "__anon_expr"


@dataclass
class FunctionEntry:
    """What the session knows about a named function."""
    arity: int
    has_body: bool
    handle: llvm_ir.Function


class CompilationContext:
    """Per-session lowering state."""

    def __init__(self, backend: Optional[LLVMBackend] = None):
        self.backend = backend if backend is not None else LLVMBackend()
        self.functions: dict[str, FunctionEntry] = {}
        self.named_values: dict[str, llvm_ir.Value] = {}
        self.diagnostics: list[PonError] = []

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------

    def lower(self, node: Node) -> Optional[Any]:
        """Lower one top-level node. Returns the IR handle, or None on failure."""
        try:
            return self._lower(node)
        except CompileError as e:
            for err in e.errors:
                logger.info("%s", err)
            self.diagnostics.extend(e.errors)
            return None

    def has_body(self, name: str) -> bool:
        entry = self.functions.get(name)
        return entry is not None and entry.has_body

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------

    def _lower(self, node: Node) -> Any:
        if isinstance(node, NumberLiteral):
            return self.backend.emit_constant(node.value)
        if isinstance(node, VariableRef):
            return self._lower_variable(node)
        if isinstance(node, BinaryOp):
            return self._lower_binary(node)
        if isinstance(node, Call):
            return self._lower_call(node)
        if isinstance(node, Prototype):
            return self._lower_prototype(node)
        if isinstance(node, FunctionDef):
            return self._lower_function(node)
        raise TypeError(f"cannot lower {type(node).__name__}")

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def _lower_variable(self, node: VariableRef) -> llvm_ir.Value:
        value = self.named_values.get(node.name)
        if value is None:
            raise CompileError(undefined_symbol(node.name, "variable", node.location))
        return value

    def _lower_binary(self, node: BinaryOp) -> llvm_ir.Value:
        lhs = self._lower(node.left)
        rhs = self._lower(node.right)
        if node.op not in BINARY_OPERATORS:
            raise CompileError(invalid_operator(node.op, node.location))
        return self.backend.emit_binary_op(node.op, lhs, rhs)

    def _lower_call(self, node: Call) -> llvm_ir.Value:
        entry = self.functions.get(node.callee)
        if entry is None:
            raise CompileError(undefined_symbol(node.callee, "function", node.location))
        if entry.arity != len(node.args):
            raise CompileError(arity_mismatch(
                node.callee, entry.arity, len(node.args), node.location,
            ))
        args = [self._lower(arg) for arg in node.args]
        return self.backend.emit_call(entry.handle, args)

    # -------------------------------------------------------------------
    # Top level
    # -------------------------------------------------------------------

    def _lower_prototype(self, proto: Prototype) -> llvm_ir.Function:
        if proto.is_anonymous:
            name = self.backend.unique_name(ANON_FUNCTION_NAME)
            fn = self.backend.declare_function(name, proto.params)
        else:
            entry = self.functions.get(proto.name)
            if entry is None:
                fn = self.backend.declare_function(proto.name, proto.params)
                self.functions[proto.name] = FunctionEntry(
                    arity=proto.arity, has_body=False, handle=fn,
                )
            elif entry.has_body:
                raise CompileError(redefinition_conflict(
                    proto.name, "redefinition of function", proto.location,
                ))
            elif entry.arity != proto.arity:
                raise CompileError(redefinition_conflict(
                    proto.name, "redefinition of function with different # args",
                    proto.location,
                ))
            else:
                fn = entry.handle

        for param, arg in zip(proto.params, fn.args):
            self.named_values[param] = arg
        return fn

    def _lower_function(self, func: FunctionDef) -> llvm_ir.Function:
        self.named_values.clear()

        proto = func.prototype
        was_declared = proto.name in self.functions
        fn = self._lower_prototype(proto)

        self.backend.begin_function_body(fn)
        try:
            ret_val = self._lower(func.body)
            self.backend.end_function_body(fn, ret_val)
            self.backend.verify(fn)
        except CompileError:
            self._roll_back(proto, fn, was_declared)
            raise

        entry = self.functions.get(proto.name)
        if entry is not None:
            entry.has_body = True
        logger.debug("defined %s", fn.name)
        return fn

    def _roll_back(self, proto: Prototype, fn: llvm_ir.Function, was_declared: bool) -> None:
        # A forward declaration made by an earlier extern survives the
        # failed definition; anything created here goes away.
        if was_declared:
            self.backend.clear_function_body(fn)
        else:
            self.backend.discard_function(fn)
            self.functions.pop(proto.name, None)
