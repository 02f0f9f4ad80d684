"""Pon IR backend — llvmlite module and builder.

Everything the lowering pass needs from an IR library goes through
LLVMBackend: declaring and finding functions, emitting instructions, opening
and closing function bodies, dropping a function that failed to lower, and
running the LLVM verifier. Every Pon value is a double.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from llvmlite import ir as llvm_ir
from llvmlite import binding as llvm_binding

from pon.errors import CompileError, internal_error

logger = logging.getLogger(__name__)

DOUBLE = llvm_ir.DoubleType()

BINARY_OPERATORS = frozenset({"+", "-", "*", "<"})


class LLVMBackend:
    """IR builder/module wrapper around llvmlite."""

    def __init__(self, module_name: str = "pon", verify: bool = True):
        self.module = llvm_ir.Module(name=module_name)
        self.module.triple = llvm_binding.get_default_triple()
        self.builder = llvm_ir.IRBuilder()
        self.verify_enabled = verify

    # -------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------

    def lookup_function(self, name: str) -> Optional[llvm_ir.Function]:
        value = self.module.globals.get(name)
        if isinstance(value, llvm_ir.Function):
            return value
        return None

    def unique_name(self, hint: str) -> str:
        return self.module.get_unique_name(hint)

    def declare_function(
        self, name: str, param_names: Sequence[str],
    ) -> llvm_ir.Function:
        """Declare ``double name(double, ...)``, or return the existing function.

        Arguments are named only when the function is first declared. A later
        definition reusing the declaration keeps the declared names; its own
        parameter names are bound positionally by the caller.
        """
        existing = self.lookup_function(name)
        if existing is not None:
            return existing
        fn_type = llvm_ir.FunctionType(DOUBLE, [DOUBLE] * len(param_names))
        fn = llvm_ir.Function(self.module, fn_type, name=name)
        for arg, param in zip(fn.args, param_names):
            arg.name = param
        logger.debug("declared %s/%d", name, len(param_names))
        return fn

    def begin_function_body(self, fn: llvm_ir.Function) -> None:
        block = fn.append_basic_block(name="entry")
        self.builder.position_at_end(block)

    def end_function_body(self, fn: llvm_ir.Function, value: llvm_ir.Value) -> None:
        self.builder.ret(value)

    def clear_function_body(self, fn: llvm_ir.Function) -> None:
        """Turn *fn* back into a bare declaration."""
        fn.blocks = []
        logger.debug("cleared body of %s", fn.name)

    def discard_function(self, fn: llvm_ir.Function) -> None:
        """Remove *fn* from the module so later lookups cannot see it."""
        del self.module.globals[fn.name]
        _release_name(self.module.scope, fn.name)
        logger.debug("discarded %s", fn.name)

    # -------------------------------------------------------------------
    # Instructions
    # -------------------------------------------------------------------

    def emit_constant(self, value: float) -> llvm_ir.Constant:
        return llvm_ir.Constant(DOUBLE, value)

    def emit_binary_op(self, op: str, lhs: llvm_ir.Value, rhs: llvm_ir.Value) -> llvm_ir.Value:
        if op == "+":
            return self.builder.fadd(lhs, rhs, name="addtmp")
        if op == "-":
            return self.builder.fsub(lhs, rhs, name="subtmp")
        if op == "*":
            return self.builder.fmul(lhs, rhs, name="multmp")
        if op == "<":
            cmp = self.builder.fcmp_unordered("<", lhs, rhs, name="cmptmp")
            # Booleans are doubles: 0.0 or 1.0
            return self.builder.uitofp(cmp, DOUBLE, name="booltmp")
        raise ValueError(f"unsupported binary operator {op!r}")

    def emit_call(self, callee: llvm_ir.Function, args: Sequence[llvm_ir.Value]) -> llvm_ir.Value:
        return self.builder.call(callee, list(args), name="calltmp")

    # -------------------------------------------------------------------
    # Verification and output
    # -------------------------------------------------------------------

    def verify(self, fn: llvm_ir.Function) -> None:
        """Run the LLVM verifier over the module containing *fn*."""
        if not self.verify_enabled:
            return
        try:
            llvm_binding.parse_assembly(self.ir_text()).verify()
        except RuntimeError as e:
            raise CompileError(internal_error(
                f"Function '{fn.name}' failed verification: {e}"
            )) from e

    def ir_text(self) -> str:
        return str(self.module)

    def function_ir(self, fn: llvm_ir.Function) -> str:
        return str(fn)

    def _parsed_module(self) -> llvm_binding.ModuleRef:
        mod = llvm_binding.parse_assembly(self.ir_text())
        mod.verify()
        return mod

    def compile_to_object(self, opt: int = 0) -> bytes:
        """Compile the module to native object code."""
        return _target_machine(opt).emit_object(self._parsed_module())

    def compile_to_assembly(self, opt: int = 0) -> str:
        """Compile the module to native assembly."""
        return _target_machine(opt).emit_assembly(self._parsed_module())


def _release_name(scope, name: str) -> None:
    """Make *name* available again in an llvmlite NameScope.

    llvmlite has no public API for this; NameScope keeps used names in the
    private ``_useset``. Kept here so a change in llvmlite breaks one place.
    """
    scope._useset.discard(name)


def _target_machine(opt: int) -> llvm_binding.TargetMachine:
    llvm_binding.initialize_native_target()
    llvm_binding.initialize_native_asmprinter()
    target = llvm_binding.Target.from_default_triple()
    return target.create_target_machine(opt=opt)
