"""rust-grapher custom exceptions."""

from __future__ import annotations


class GrapherError(Exception):
    """Base exception for rust-grapher errors."""


class TargetNotFoundError(GrapherError):
    """The analysis root has no recognizable Cargo manifest."""


class ManifestError(GrapherError):
    """A Cargo manifest could not be read or is malformed."""


class ParseError(GrapherError):
    """Error parsing a source file."""


class NoSourceFilesError(GrapherError):
    """No source file of the target could be parsed."""


class GraphError(GrapherError):
    """The call graph would violate one of its invariants."""


class DuplicateSymbolError(GraphError):
    """Two symbols share the same qualified identifier."""


class FocusNotFoundError(GrapherError):
    """The requested focus symbol does not exist in the graph."""


class AmbiguousFocusError(GrapherError):
    """The requested focus name matches more than one symbol."""

    def __init__(self, name: str, candidates: list[str]) -> None:
        self.name = name
        self.candidates = candidates
        listing = ", ".join(candidates)
        super().__init__(f"Focus '{name}' is ambiguous; candidates: {listing}")
