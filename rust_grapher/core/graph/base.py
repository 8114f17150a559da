"""Core CallGraph class with adjacency list representation."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from rust_grapher.core.exceptions import DuplicateSymbolError, GraphError
from rust_grapher.core.models import Edge, Resolution, Symbol


class CallGraph:
    """Directed graph for call relationships.

    Uses adjacency maps for O(1) neighbor lookup. Outgoing edges are keyed by
    target (callee id, or raw text for unresolved calls), so repeated calls
    from one caller to the same target collapse into a single edge.
    """

    __slots__ = ("_out", "_in", "_symbols")

    def __init__(self) -> None:
        self._out: dict[str, dict[tuple[bool, str], Edge]] = {}
        self._in: dict[str, dict[str, Edge]] = {}
        self._symbols: dict[str, Symbol] = {}

    def add_symbol(self, symbol: Symbol) -> None:
        """Add a symbol node. O(1)."""
        if symbol.id in self._symbols:
            raise DuplicateSymbolError(f"Duplicate symbol id: {symbol.id}")
        self._symbols[symbol.id] = symbol
        self._out[symbol.id] = {}
        self._in[symbol.id] = {}

    def add_edge(self, edge: Edge) -> None:
        """Add an edge, merging call lines into an existing one. O(lines)."""
        if edge.caller not in self._symbols:
            raise GraphError(f"Edge caller is not a node: {edge.caller}")
        if edge.callee is not None and edge.callee not in self._symbols:
            raise GraphError(f"Edge callee is not a node: {edge.callee}")

        targets = self._out[edge.caller]
        key = (edge.callee is None, edge.target_key)
        existing = targets.get(key)
        if existing is not None:
            edge = _merge(existing, edge)
        targets[key] = edge
        if edge.callee is not None:
            self._in[edge.callee][edge.caller] = edge

    def get_symbol(self, symbol_id: str) -> Symbol | None:
        """Get symbol by ID. O(1)."""
        return self._symbols.get(symbol_id)

    def out_edges(self, symbol_id: str) -> list[Edge]:
        """Outgoing edges, resolved and unresolved. O(out-degree)."""
        return list(self._out.get(symbol_id, {}).values())

    def get_callees(self, symbol_id: str) -> list[tuple[Symbol, Edge]]:
        """Get direct resolved callees. O(out-degree)."""
        return [
            (self._symbols[edge.callee], edge)
            for edge in self._out.get(symbol_id, {}).values()
            if edge.callee is not None
        ]

    def get_callers(self, symbol_id: str) -> list[tuple[Symbol, Edge]]:
        """Get direct callers. O(in-degree)."""
        return [(self._symbols[cid], edge) for cid, edge in self._in.get(symbol_id, {}).items()]

    def in_degree(self, symbol_id: str) -> int:
        """Number of callers. O(1)."""
        return len(self._in.get(symbol_id, {}))

    def filter(self, keep: Callable[[Symbol], bool]) -> CallGraph:
        """New graph with the symbols matching ``keep`` and the edges between them.

        Unresolved edges follow their caller.
        """
        graph = CallGraph()
        for symbol in self._symbols.values():
            if keep(symbol):
                graph.add_symbol(symbol)
        for edge in self.edges:
            if edge.caller not in graph._symbols:
                continue
            if edge.callee is not None and edge.callee not in graph._symbols:
                continue
            graph.add_edge(edge)
        return graph

    @property
    def num_nodes(self) -> int:
        return len(self._symbols)

    @property
    def num_edges(self) -> int:
        return sum(len(targets) for targets in self._out.values())

    @property
    def symbols(self) -> dict[str, Symbol]:
        return self._symbols

    @property
    def edges(self) -> list[Edge]:
        """All edges, grouped by caller in node order."""
        return [edge for targets in self._out.values() for edge in targets.values()]

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._symbols

    def __repr__(self) -> str:
        return f"CallGraph(nodes={self.num_nodes}, edges={self.num_edges})"


def _merge(existing: Edge, new: Edge) -> Edge:
    lines = tuple(sorted(set(existing.call_lines) | set(new.call_lines)))
    resolution = existing.resolution
    if new.resolution is Resolution.AMBIGUOUS:
        resolution = Resolution.AMBIGUOUS
    return Edge(
        caller=existing.caller,
        callee=existing.callee,
        raw=existing.raw,
        call_lines=lines,
        type=existing.type,
        resolution=resolution,
    )


def build(symbols: Iterable[Symbol], edges: Iterable[Edge]) -> CallGraph:
    """Assemble a call graph.

    Raises:
        DuplicateSymbolError: If two symbols share an id
        GraphError: If an edge references a symbol that is not a node
    """
    graph = CallGraph()
    for symbol in symbols:
        graph.add_symbol(symbol)
    for edge in edges:
        graph.add_edge(edge)
    return graph
