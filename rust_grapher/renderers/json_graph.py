"""JSON output, and loading it back into a graph."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rust_grapher.core.exceptions import GraphError
from rust_grapher.core.graph import CallGraph, build
from rust_grapher.core.models import Edge, EdgeType, Resolution, Symbol, SymbolType
from rust_grapher.renderers.options import RenderOptions

if TYPE_CHECKING:
    from rust_grapher.core.graph import QueryResult


def symbol_to_dict(symbol: Symbol) -> dict[str, Any]:
    return {
        "id": symbol.id,
        "name": symbol.name,
        "display_name": symbol.display_name,
        "module_path": symbol.module_path,
        "file": str(symbol.file),
        "line": symbol.line,
        "end_line": symbol.end_line,
        "type": symbol.type.value,
        "crate": symbol.crate,
        "impl_type": symbol.impl_type,
        "trait_name": symbol.trait_name,
        "is_public": symbol.is_public,
        "is_async": symbol.is_async,
        "signature": symbol.signature,
    }


def edge_to_dict(edge: Edge) -> dict[str, Any]:
    return {
        "caller": edge.caller,
        "callee": edge.callee,
        "raw": edge.raw,
        "type": edge.type.value,
        "resolution": edge.resolution.value,
        "lines": list(edge.call_lines),
    }


def render(result: QueryResult, options: RenderOptions) -> str:
    """Render a query result as a JSON document with nodes and edges."""
    nodes = []
    for symbol in result.nodes:
        node = symbol_to_dict(symbol)
        node["highlighted"] = options.is_highlighted(symbol)
        nodes.append(node)
    document = {
        "nodes": nodes,
        "edges": [edge_to_dict(e) for e in result.edges],
    }
    return json.dumps(document, indent=2) + "\n"


def _symbol_from_dict(data: dict[str, Any]) -> Symbol:
    return Symbol(
        id=data["id"],
        name=data["name"],
        display_name=data.get("display_name", data["name"]),
        module_path=data["module_path"],
        file=Path(data.get("file", "")),
        line=data.get("line", 0),
        end_line=data.get("end_line"),
        type=SymbolType(data.get("type", SymbolType.FUNCTION.value)),
        crate=data.get("crate", ""),
        impl_type=data.get("impl_type"),
        trait_name=data.get("trait_name"),
        is_public=data.get("is_public", False),
        is_async=data.get("is_async", False),
        signature=data.get("signature"),
    )


def _edge_from_dict(data: dict[str, Any]) -> Edge:
    callee = data.get("callee")
    default_resolution = Resolution.RESOLVED if callee else Resolution.UNRESOLVED
    return Edge(
        caller=data["caller"],
        callee=callee,
        raw=data.get("raw", callee or ""),
        call_lines=tuple(data.get("lines", [])),
        type=EdgeType(data.get("type", EdgeType.CALL.value)),
        resolution=Resolution(data.get("resolution", default_resolution.value)),
    )


def load(text: str) -> CallGraph:
    """Parse a document produced by ``render`` back into a call graph.

    Raises:
        GraphError: If the document is not a valid graph
    """
    try:
        document = json.loads(text)
        symbols = [_symbol_from_dict(n) for n in document["nodes"]]
        edges = [_edge_from_dict(e) for e in document["edges"]]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise GraphError(f"Invalid graph document: {e}") from e
    return build(symbols, edges)
