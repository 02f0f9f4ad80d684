"""Pon — a tiny expression language: lexer, parser, and LLVM lowering."""

__version__ = "0.1.0"
