"""Data models for rust-grapher."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path


class SymbolType(Enum):
    """Kinds of graph nodes."""

    FUNCTION = "function"
    METHOD = "method"
    CLOSURE = "closure"
    CRATE = "crate"


class EdgeType(Enum):
    """Kinds of relationships between nodes."""

    CALL = "call"
    METHOD_CALL = "method_call"
    DEPENDENCY = "dependency"
    DEV_DEPENDENCY = "dev_dependency"
    BUILD_DEPENDENCY = "build_dependency"


class Resolution(Enum):
    """How confidently an edge's target was determined."""

    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    UNRESOLVED = "unresolved"


class DiagnosticKind(Enum):
    """Non-fatal conditions reported during an analysis run."""

    FILE_SKIPPED = "file_skipped"
    AMBIGUOUS_CALL = "ambiguous_call"


@dataclass(frozen=True)
class Symbol:
    """A function-like item (or a crate, in dependency mode)."""

    id: str
    name: str
    display_name: str
    module_path: str
    file: Path
    line: int
    end_line: int | None
    type: SymbolType
    crate: str = ""
    impl_type: str | None = None
    trait_name: str | None = None
    is_public: bool = False
    is_async: bool = False
    signature: str | None = None

    def with_id(self, new_id: str) -> Symbol:
        """Return a copy of this symbol under a different identifier."""
        return replace(self, id=new_id)


@dataclass(frozen=True)
class Edge:
    """A relationship from a caller to a callee.

    ``callee`` is None when the target could not be matched to a known
    symbol; ``raw`` always keeps the callee text as written.
    """

    caller: str
    callee: str | None
    raw: str
    call_lines: tuple[int, ...] = ()
    type: EdgeType = EdgeType.CALL
    resolution: Resolution = Resolution.RESOLVED

    @property
    def is_resolved(self) -> bool:
        return self.callee is not None

    @property
    def target_key(self) -> str:
        """Key identifying the edge target, resolved or not."""
        return self.callee if self.callee is not None else self.raw

    @property
    def line(self) -> int | None:
        return self.call_lines[0] if self.call_lines else None


@dataclass(frozen=True)
class Diagnostic:
    """A warning or informational note produced while analyzing."""

    kind: DiagnosticKind
    message: str
    file: Path | None = None
    line: int | None = None

    def __str__(self) -> str:
        location = ""
        if self.file is not None:
            location = f"{self.file}:{self.line}: " if self.line else f"{self.file}: "
        return f"{location}{self.message}"


@dataclass
class AnalysisStats:
    """Statistics from an analysis run."""

    crates: int = 0
    files: int = 0
    skipped: int = 0
    symbols: int = 0
    edges: int = 0
    unresolved: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def skipped_files(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind is DiagnosticKind.FILE_SKIPPED]

    @property
    def ambiguous_calls(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind is DiagnosticKind.AMBIGUOUS_CALL]

    def __repr__(self) -> str:
        return (
            f"AnalysisStats(crates={self.crates}, files={self.files}, "
            f"skipped={self.skipped}, symbols={self.symbols}, edges={self.edges}, "
            f"unresolved={self.unresolved}, diagnostics={len(self.diagnostics)})"
        )
