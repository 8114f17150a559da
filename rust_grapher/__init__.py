"""
rust-grapher: Call graphs and dependency graphs for Rust codebases.

rust-grapher parses Rust sources with tree-sitter to build a function call
graph, enabling you to:
- Render the whole graph, or the calls reachable from one function
- Bound the graph by call depth
- Draw crate dependency graphs from Cargo manifests

Usage:
    from pathlib import Path

    from rust_grapher.core.indexer import Indexer
    from rust_grapher.core.graph import subgraph
    from rust_grapher.renderers import OutputFormat, render

    graph, stats = Indexer().index_directory(Path("."))
    print(render(subgraph(graph, focus="main", max_depth=2), OutputFormat.MERMAID))
"""

__version__ = "0.1.0"
