"""
Language parsers: Extract function-like items and call sites from Rust source.

This module provides the parsing layer that converts source files into
structured data (functions, call sites, imports) for resolution.

Components:
    - LanguageParser: Protocol defining the parser interface
    - RustParser: tree-sitter based parser for Rust files
    - ParseResult: Container for extracted functions, imports and struct fields

The parser extracts:
    - Functions: free functions, impl and trait methods, nested fns, named closures
    - Call sites: path calls, qualified calls, method calls (with receiver text)
    - Imports: `use` aliases and glob imports per module scope
    - Bindings: syntactically obvious variable types for method resolution
"""

from rust_grapher.languages.base import LanguageParser
from rust_grapher.languages.models import CallKind, CallSite, ParsedFunction, ParseResult
from rust_grapher.languages.rust import RustParser

__all__ = [
    "CallKind",
    "CallSite",
    "LanguageParser",
    "ParsedFunction",
    "ParseResult",
    "RustParser",
]
