"""
Core module: data models, exceptions, manifests and the analysis pipeline.

Models (models.py):
    - Symbol: A function, method, named closure or crate
    - Edge: A call (or dependency) from one symbol to another, possibly unresolved
    - Diagnostic/AnalysisStats: Non-fatal findings and counts of a run

Exceptions (exceptions.py):
    - GrapherError: Base exception for all rust-grapher errors
    - TargetNotFoundError: No Cargo.toml at the analysis root
    - FocusNotFoundError/AmbiguousFocusError: Focus name lookup failures

Pipeline:
    - manifest.py: Cargo.toml, workspace and path dependency reading
    - collector.py: Source file discovery and module paths
    - resolver.py: Call site resolution
    - indexer.py: Coordinates the passes into a CallGraph
    - deps.py: Crate dependency graphs
"""

from rust_grapher.core.exceptions import (
    AmbiguousFocusError,
    DuplicateSymbolError,
    FocusNotFoundError,
    GraphError,
    GrapherError,
    ManifestError,
    NoSourceFilesError,
    ParseError,
    TargetNotFoundError,
)
from rust_grapher.core.models import (
    AnalysisStats,
    Diagnostic,
    DiagnosticKind,
    Edge,
    EdgeType,
    Resolution,
    Symbol,
    SymbolType,
)

__all__ = [
    # Models
    "Symbol",
    "Edge",
    "Diagnostic",
    "AnalysisStats",
    "SymbolType",
    "EdgeType",
    "Resolution",
    "DiagnosticKind",
    # Exceptions
    "GrapherError",
    "TargetNotFoundError",
    "ManifestError",
    "ParseError",
    "NoSourceFilesError",
    "GraphError",
    "DuplicateSymbolError",
    "FocusNotFoundError",
    "AmbiguousFocusError",
]
