"""Data models for graph operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rust_grapher.core.exceptions import GraphError

if TYPE_CHECKING:
    from rust_grapher.core.models import Edge, Symbol


@dataclass(frozen=True)
class QueryResult:
    """The nodes and edges selected by a graph query, in traversal order.

    Every edge's caller, and resolved callee, is one of the nodes.
    """

    nodes: tuple[Symbol, ...]
    edges: tuple[Edge, ...]

    def __post_init__(self) -> None:
        ids = self.node_ids
        for edge in self.edges:
            if edge.caller not in ids:
                raise GraphError(f"Edge caller {edge.caller} is not in the result")
            if edge.callee is not None and edge.callee not in ids:
                raise GraphError(f"Edge callee {edge.callee} is not in the result")

    @property
    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    @property
    def unresolved(self) -> list[Edge]:
        return [e for e in self.edges if e.callee is None]

    def __repr__(self) -> str:
        return f"QueryResult(nodes={len(self.nodes)}, edges={len(self.edges)})"
