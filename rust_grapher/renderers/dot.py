"""Graphviz DOT output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rust_grapher.core.models import Edge, EdgeType, Resolution
from rust_grapher.renderers.options import RenderOptions, Theme, node_label

if TYPE_CHECKING:
    from rust_grapher.core.graph import QueryResult

_UNRESOLVED_PREFIX = "?"

_EDGE_STYLES = {
    EdgeType.CALL: [],
    EdgeType.METHOD_CALL: ["style=dashed"],
    EdgeType.DEPENDENCY: [],
    EdgeType.DEV_DEPENDENCY: ["style=dashed", "color=blue"],
    EdgeType.BUILD_DEPENDENCY: ["style=bold", "color=green"],
}


def quote(text: str) -> str:
    """Quote a string as a DOT identifier."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _edge_attrs(edge: Edge) -> list[str]:
    if edge.callee is None:
        return ["style=dotted"]
    attrs = list(_EDGE_STYLES[edge.type])
    if edge.resolution is Resolution.AMBIGUOUS:
        attrs = [a for a in attrs if not a.startswith("color=")] + ["color=orange"]
    return attrs


def render(result: QueryResult, options: RenderOptions) -> str:
    """Render a query result as a DOT digraph."""
    lines = [
        f"digraph {quote(options.graph_name)} {{",
        f"    rankdir={options.direction.value};",
        "    node [shape=box, style=rounded];",
    ]
    if options.theme is Theme.DARK:
        lines.append('    bgcolor="#1e1e1e";')
        lines.append("    node [fontcolor=white, color=white];")
        lines.append("    edge [color=white];")
    elif options.theme is Theme.LIGHT:
        lines.append("    bgcolor=white;")

    for symbol in result.nodes:
        attrs = [f"label={quote(node_label(symbol, options))}"]
        if options.is_highlighted(symbol):
            attrs.append('fillcolor="#ff99ff"')
            attrs.append('style="filled,rounded"')
        if symbol.is_public:
            attrs.append("penwidth=2")
        if symbol.is_async:
            attrs.append("color=blue")
        lines.append(f"    {quote(symbol.id)} [{', '.join(attrs)}];")

    unresolved: list[str] = []
    for edge in result.edges:
        if edge.callee is None and edge.raw not in unresolved:
            unresolved.append(edge.raw)
    for raw in unresolved:
        lines.append(
            f"    {quote(_UNRESOLVED_PREFIX + raw)} "
            f"[label={quote(raw)}, shape=plaintext, fontcolor=gray];"
        )

    for edge in result.edges:
        target = edge.callee if edge.callee is not None else _UNRESOLVED_PREFIX + edge.raw
        attrs = _edge_attrs(edge)
        suffix = f" [{', '.join(attrs)}]" if attrs else ""
        lines.append(f"    {quote(edge.caller)} -> {quote(target)}{suffix};")

    lines.append("}")
    return "\n".join(lines) + "\n"
