"""Focus lookup and depth-bounded subgraph extraction."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from rust_grapher.core.exceptions import AmbiguousFocusError, FocusNotFoundError
from rust_grapher.core.graph.models import QueryResult

if TYPE_CHECKING:
    from rust_grapher.core.graph.base import CallGraph
    from rust_grapher.core.models import Edge, Symbol


def find_focus(graph: CallGraph, name: str) -> Symbol:
    """Find the symbol a user-supplied name refers to.

    Tries an exact id first, then a unique match on the simple name, the
    display name (``Type::method``) or a ``::`` suffix of the id.

    Raises:
        FocusNotFoundError: If nothing matches
        AmbiguousFocusError: If several symbols match
    """
    symbol = graph.get_symbol(name)
    if symbol is not None:
        return symbol

    suffix = f"::{name}"
    matches = [
        s
        for s in graph.symbols.values()
        if s.name == name or s.display_name == name or s.id.endswith(suffix)
    ]
    if not matches:
        raise FocusNotFoundError(f"No symbol matches '{name}'")
    if len(matches) > 1:
        raise AmbiguousFocusError(name, sorted(s.id for s in matches))
    return matches[0]


def _sorted_out(graph: CallGraph, symbol_id: str) -> list[Edge]:
    return sorted(graph.out_edges(symbol_id), key=lambda e: (e.target_key, e.callee is None))


def subgraph(
    graph: CallGraph, focus: str | None = None, max_depth: int | None = None
) -> QueryResult:
    """Select the part of the graph to render.

    Without a focus the whole graph is returned and ``max_depth`` is ignored.
    With a focus, a breadth-first search follows resolved outgoing edges,
    visiting targets in id order, and keeps nodes within ``max_depth`` hops
    (0 = the focus alone with no edges, None = unbounded). Resolved edges are
    kept when both endpoints are kept; unresolved edges when their caller lies
    below ``max_depth``.

    Raises:
        ValueError: If max_depth is negative
        FocusNotFoundError, AmbiguousFocusError: See find_focus
    """
    if focus is None:
        return QueryResult(nodes=tuple(graph.symbols.values()), edges=tuple(graph.edges))

    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    root = find_focus(graph, focus)
    depth: dict[str, int] = {root.id: 0}
    order = [root.id]
    queue = deque([root.id])
    while queue:
        current = queue.popleft()
        if max_depth is not None and depth[current] >= max_depth:
            continue
        for edge in _sorted_out(graph, current):
            if edge.callee is not None and edge.callee not in depth:
                depth[edge.callee] = depth[current] + 1
                order.append(edge.callee)
                queue.append(edge.callee)

    edges: list[Edge] = []
    for symbol_id in order:
        below_limit = max_depth is None or depth[symbol_id] < max_depth
        for edge in _sorted_out(graph, symbol_id):
            if edge.callee is None:
                if below_limit:
                    edges.append(edge)
            elif edge.callee in depth and max_depth != 0:
                # a self-call of the focus is still a hop
                edges.append(edge)

    return QueryResult(nodes=tuple(graph.symbols[i] for i in order), edges=tuple(edges))
