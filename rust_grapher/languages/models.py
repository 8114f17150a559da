"""Data models for language parser results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rust_grapher.core.models import Symbol


class CallKind(Enum):
    """Syntactic shape of a call site."""

    PATH = "path"  # foo(), a::b::foo(), Type::assoc()
    QUALIFIED = "qualified"  # <Type as Trait>::m()
    METHOD = "method"  # recv.m()
    OTHER = "other"  # (self.f)(), make()(), ...


@dataclass(frozen=True)
class CallSite:
    """A call expression found in a function body (before resolution)."""

    raw: str
    line: int
    kind: CallKind
    segments: tuple[str, ...] = ()
    receiver: str | None = None
    qualified_type: str | None = None
    qualified_trait: str | None = None

    @property
    def name(self) -> str:
        """Final path segment, or the method name."""
        return self.segments[-1] if self.segments else self.raw


@dataclass
class ParsedFunction:
    """A function-like item with everything needed to resolve its calls."""

    symbol: Symbol
    calls: list[CallSite] = field(default_factory=list)
    bindings: dict[str, str] = field(default_factory=dict)
    # names bound by parameters and patterns; they shadow items when called
    locals: set[str] = field(default_factory=set)
    parent: ParsedFunction | None = None

    @property
    def id(self) -> str:
        return self.symbol.id


@dataclass
class ParseResult:
    """Result of parsing a file."""

    file: Path
    crate: str
    module_path: str
    functions: list[ParsedFunction] = field(default_factory=list)
    # module path -> alias -> full path
    imports: dict[str, dict[str, str]] = field(default_factory=dict)
    # module path -> glob-imported paths
    glob_imports: dict[str, list[str]] = field(default_factory=dict)
    # "module::Struct" -> field -> type name
    struct_fields: dict[str, dict[str, str]] = field(default_factory=dict)
