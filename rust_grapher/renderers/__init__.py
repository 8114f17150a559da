"""
Graph renderers: turn a query result into Mermaid, DOT or JSON text.

Every renderer is a pure function of (QueryResult, RenderOptions); the same
input always produces byte-identical output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rust_grapher.renderers import dot, json_graph, mermaid
from rust_grapher.renderers.options import Direction, OutputFormat, RenderOptions, Theme

if TYPE_CHECKING:
    from rust_grapher.core.graph import QueryResult

_RENDERERS = {
    OutputFormat.MERMAID: mermaid.render,
    OutputFormat.DOT: dot.render,
    OutputFormat.JSON: json_graph.render,
}


def render(result: QueryResult, fmt: OutputFormat, options: RenderOptions | None = None) -> str:
    """Render a query result in the requested format."""
    return _RENDERERS[OutputFormat(fmt)](result, options or RenderOptions())


__all__ = [
    "Direction",
    "OutputFormat",
    "RenderOptions",
    "Theme",
    "render",
]
