"""Indexer that coordinates collection, parsing, resolution and graph building."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from rust_grapher.core.collector import SourceFile, collect_sources
from rust_grapher.core.exceptions import NoSourceFilesError, ParseError
from rust_grapher.core.graph import CallGraph, build
from rust_grapher.core.manifest import load_project
from rust_grapher.core.models import AnalysisStats, Diagnostic, DiagnosticKind
from rust_grapher.core.resolver import CallResolver
from rust_grapher.languages import LanguageParser, ParseResult, RustParser

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Path, int, int], None]


class Indexer:
    """Builds the call graph of a Cargo project.

    Runs in passes:
    1. Collect the source files of every crate in scope
    2. Parse each file (optionally on a thread pool); failures skip the file
    3. Give colliding qualified ids an ordinal suffix
    4. Resolve every call site against the complete symbol table
    5. Assemble the graph
    """

    def __init__(self, jobs: int = 1) -> None:
        """Initialize with the number of parser threads."""
        self._jobs = max(1, jobs)
        self._local = threading.local()

    def _parser(self) -> LanguageParser:
        # tree-sitter parsers are not shared between threads
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = self._local.parser = RustParser()
        return parser

    def index_directory(
        self,
        directory: Path,
        workspace_only: bool = False,
        exclude_patterns: list[str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> tuple[CallGraph, AnalysisStats]:
        """Analyze the Cargo project rooted at a directory.

        Args:
            directory: Directory holding the root Cargo.toml
            workspace_only: Ignore path dependencies outside the workspace
            exclude_patterns: Additional fnmatch patterns to exclude (e.g. "tests/*")
            on_progress: Optional callback for progress updates (file, current, total)

        Returns:
            The call graph and statistics of the run

        Raises:
            TargetNotFoundError: If the directory has no Cargo.toml
            ManifestError: If a manifest cannot be read
            NoSourceFilesError: If no source file could be parsed
        """
        stats = AnalysisStats()
        project = load_project(directory)
        stats.crates = len(project.crates(workspace_only))

        sources = collect_sources(
            directory,
            workspace_only=workspace_only,
            exclude_patterns=exclude_patterns,
            project=project,
        )
        if not sources:
            raise NoSourceFilesError(f"No Rust source files found in {directory}")

        results = self._parse_all(sources, stats, on_progress)
        if not results:
            raise NoSourceFilesError(f"None of the {len(sources)} source files could be parsed")

        _assign_unique_ids(results)
        symbols = [parsed.symbol for result in results for parsed in result.functions]

        edges, diagnostics = CallResolver(symbols, results).resolve()
        stats.diagnostics.extend(diagnostics)

        graph = build(symbols, edges)
        stats.symbols = graph.num_nodes
        stats.edges = graph.num_edges
        stats.unresolved = sum(1 for e in graph.edges if not e.is_resolved)
        logger.debug("Built call graph: %r", stats)
        return graph, stats

    def _parse_all(
        self,
        sources: list[SourceFile],
        stats: AnalysisStats,
        on_progress: ProgressCallback | None,
    ) -> list[ParseResult]:
        """Parse every source, returning results in source (path) order."""
        total = len(sources)
        outcomes: dict[Path, ParseResult | ParseError] = {}

        def record(source: SourceFile, outcome: ParseResult | ParseError, done: int) -> None:
            outcomes[source.path] = outcome
            if on_progress:
                on_progress(source.path, done, total)

        if self._jobs == 1:
            for i, source in enumerate(sources):
                record(source, self._parse_one(source), i + 1)
        else:
            with ThreadPoolExecutor(max_workers=self._jobs) as executor:
                futures = {executor.submit(self._parse_one, s): s for s in sources}
                for i, future in enumerate(as_completed(futures)):
                    record(futures[future], future.result(), i + 1)

        # Completion order varies between runs; the merge order does not
        results: list[ParseResult] = []
        for source in sources:
            outcome = outcomes[source.path]
            if isinstance(outcome, ParseError):
                stats.skipped += 1
                stats.diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.FILE_SKIPPED, message=str(outcome), file=source.path
                    )
                )
                logger.warning("Skipping %s: %s", source.path, outcome)
            else:
                stats.files += 1
                results.append(outcome)
        return results

    def _parse_one(self, source: SourceFile) -> ParseResult | ParseError:
        try:
            return self._parser().parse(source.path, source.module_path, source.crate)
        except ParseError as e:
            return e


def _assign_unique_ids(results: list[ParseResult]) -> None:
    """Suffix repeated ids with ``#2``, ``#3``, ... in (file, line) order."""
    seen: dict[str, int] = {}
    for result in results:
        for parsed in sorted(result.functions, key=lambda p: p.symbol.line):
            symbol_id = parsed.symbol.id
            count = seen.get(symbol_id, 0) + 1
            seen[symbol_id] = count
            if count > 1:
                new_id = f"{symbol_id}#{count}"
                logger.debug("Renaming duplicate id %s to %s", symbol_id, new_id)
                parsed.symbol = parsed.symbol.with_id(new_id)
