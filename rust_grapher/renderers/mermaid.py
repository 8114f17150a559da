"""Mermaid flowchart output."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from rust_grapher.core.models import EdgeType, Resolution
from rust_grapher.renderers.options import RenderOptions, Theme, node_label

if TYPE_CHECKING:
    from rust_grapher.core.graph import QueryResult

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")

_ARROWS = {
    EdgeType.CALL: "-->",
    EdgeType.METHOD_CALL: "-.->",
    EdgeType.DEPENDENCY: "-->",
    EdgeType.DEV_DEPENDENCY: "-.->",
    EdgeType.BUILD_DEPENDENCY: "==>",
}

_MERMAID_THEMES = {
    Theme.DARK: "dark",
    Theme.LIGHT: "default",
}

HIGHLIGHT_STYLE = "fill:#f9f,stroke:#333,stroke-width:4px"


def sanitize(text: str) -> str:
    """Reduce a string to the characters Mermaid accepts in node ids."""
    return _UNSAFE.sub("_", text)


def escape_label(text: str) -> str:
    return text.replace('"', "#quot;")


class _IdAllocator:
    """Hands out sanitized ids, suffixing repeats so every key stays distinct."""

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}
        self._used: set[str] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def get(self, key: str, prefix: str, text: str) -> str:
        if key in self._ids:
            return self._ids[key]
        base = f"{prefix}{sanitize(text)}"
        candidate = base
        n = 2
        while candidate in self._used:
            candidate = f"{base}_{n}"
            n += 1
        self._used.add(candidate)
        self._ids[key] = candidate
        return candidate


def render(result: QueryResult, options: RenderOptions) -> str:
    """Render a query result as a Mermaid flowchart."""
    lines: list[str] = []
    if options.fence:
        lines.append("```mermaid")
    theme = _MERMAID_THEMES.get(options.theme)
    if theme is not None:
        lines.append(f"%%{{init: {{'theme': '{theme}'}}}}%%")
    lines.append(f"flowchart {options.direction.value}")

    ids = _IdAllocator()
    highlighted: list[str] = []
    for symbol in result.nodes:
        node_id = ids.get(f"node:{symbol.id}", "f_", symbol.id)
        lines.append(f'    {node_id}["{escape_label(node_label(symbol, options))}"]')
        if options.is_highlighted(symbol):
            highlighted.append(node_id)

    has_unresolved = False
    for edge in result.edges:
        if edge.callee is None:
            key = f"raw:{edge.raw}"
            is_new = key not in ids
            node_id = ids.get(key, "x_", edge.raw)
            if is_new:
                lines.append(f'    {node_id}["{escape_label(edge.raw)}"]:::unresolved')
                has_unresolved = True

    ambiguous_links: list[int] = []
    for index, edge in enumerate(result.edges):
        source = ids.get(f"node:{edge.caller}", "f_", edge.caller)
        if edge.callee is None:
            target = ids.get(f"raw:{edge.raw}", "x_", edge.raw)
        else:
            target = ids.get(f"node:{edge.callee}", "f_", edge.callee)
        lines.append(f"    {source} {_ARROWS[edge.type]} {target}")
        if edge.resolution is Resolution.AMBIGUOUS:
            ambiguous_links.append(index)

    if has_unresolved:
        lines.append("    classDef unresolved stroke-dasharray: 5 5,color:#888")
    for index in ambiguous_links:
        lines.append(f"    linkStyle {index} stroke:orange")
    for node_id in highlighted:
        lines.append(f"    style {node_id} {HIGHLIGHT_STYLE}")

    if options.fence:
        lines.append("```")
    return "\n".join(lines) + "\n"
