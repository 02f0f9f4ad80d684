"""Pon CLI — command-line interface for the Pon compiler.

Commands:
  pon repl                          — Interactive session on stdin
  pon compile <file.pon>            — Lower a file to LLVM IR / assembly / object code
  pon tokens <file.pon>             — Dump the token stream (JSON lines)
  pon ast <file.pon>                — Dump parsed statements
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from pon import __version__
from pon.ast_nodes import to_dict
from pon.backend import LLVMBackend
from pon.codegen import CompilationContext
from pon.config import EMIT_FORMATS, PonConfig, load_config
from pon.driver import Driver, compile_source, parse_source
from pon.errors import CompileError
from pon.lexer import Lexer, TokenKind

logger = logging.getLogger(__name__)

_EXTENSIONS = {"ll": ".ll", "asm": ".s", "obj": ".o"}


def _load_config(args: argparse.Namespace) -> PonConfig:
    try:
        return load_config(args.config)
    except ValueError as e:
        print(json.dumps({"error": f"Invalid configuration: {e}"}))
        sys.exit(2)


def _read_source(path: str) -> Optional[str]:
    if not os.path.exists(path):
        print(json.dumps({"error": f"File not found: {path}"}))
        return None
    with open(path, "r") as f:
        return f.read()


def _new_context(config: PonConfig) -> CompilationContext:
    return CompilationContext(LLVMBackend(module_name=config.module_name, verify=config.verify))


def cmd_repl(args: argparse.Namespace) -> int:
    """Read statements from stdin until end of input."""
    config = _load_config(args)
    driver = Driver(
        sys.stdin,
        context=_new_context(config),
        precedence=config.precedence,
        out=sys.stderr,
        prompt=config.prompt,
        dump_module=config.dump_module,
    )
    driver.run()
    return 0


def cmd_compile(args: argparse.Namespace) -> int:
    """Compile a Pon source file and write the result."""
    config = _load_config(args)
    source = _read_source(args.file)
    if source is None:
        return 1

    context, result = compile_source(
        source,
        precedence=config.precedence,
        context=_new_context(config),
        out=sys.stderr if args.verbose else None,
        filename=args.file,
    )
    if not result.ok:
        print(json.dumps([e.to_dict() for e in result.diagnostics], indent=2))
        return 1

    emit = args.emit or config.emit
    output = args.output or os.path.splitext(args.file)[0] + _EXTENSIONS[emit]
    backend = context.backend

    if emit == "obj":
        with open(output, "wb") as f:
            f.write(backend.compile_to_object())
    else:
        text = backend.compile_to_assembly() if emit == "asm" else backend.ir_text()
        with open(output, "w") as f:
            f.write(text)

    print(json.dumps({"status": "compiled", "format": emit, "path": output,
                      "statements": result.statements}))
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Print every token of a file as one JSON object per line."""
    source = _read_source(args.file)
    if source is None:
        return 1

    lexer = Lexer.from_string(source, args.file)
    try:
        while True:
            tok = lexer.next_token()
            print(json.dumps({
                "kind": tok.kind.name,
                "value": tok.value,
                "line": tok.location.line,
                "column": tok.location.column,
            }))
            if tok.kind is TokenKind.EOF:
                break
    except CompileError as e:
        print(e.to_json())
        return 1
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Print each parsed statement, as source-like text or JSON."""
    config = _load_config(args)
    source = _read_source(args.file)
    if source is None:
        return 1

    nodes, diagnostics = parse_source(source, precedence=config.precedence, filename=args.file)
    for node in nodes:
        if args.json:
            print(json.dumps(to_dict(node)))
        else:
            print(node)
    if diagnostics:
        print(json.dumps([e.to_dict() for e in diagnostics], indent=2))
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pon",
        description="Pon — a tiny expression language lowered to LLVM IR",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a .ponrc.yml / .ponrc.json file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and per-statement IR")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # repl
    p_repl = subparsers.add_parser("repl", help="Interactive session on stdin")
    p_repl.set_defaults(func=cmd_repl)

    # compile
    p_compile = subparsers.add_parser("compile", help="Compile a Pon source file")
    p_compile.add_argument("file", help="Pon source file (.pon)")
    p_compile.add_argument("-o", "--output", help="Output path")
    p_compile.add_argument("--emit", choices=EMIT_FORMATS, help="Output format (default: from config, else ll)")
    p_compile.set_defaults(func=cmd_compile)

    # tokens
    p_tokens = subparsers.add_parser("tokens", help="Dump the token stream as JSON lines")
    p_tokens.add_argument("file", help="Pon source file (.pon)")
    p_tokens.set_defaults(func=cmd_tokens)

    # ast
    p_ast = subparsers.add_parser("ast", help="Dump parsed statements")
    p_ast.add_argument("file", help="Pon source file (.pon)")
    p_ast.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p_ast.set_defaults(func=cmd_ast)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
