"""
Call graph data structures and queries.

This module provides in-memory graph operations over resolved calls:

Data Structures:
    - CallGraph: Adjacency map representation with O(1) lookups
    - QueryResult: The nodes and edges selected for rendering

Algorithms:
    - build(): Assemble a graph, enforcing unique ids and known callers
    - find_focus(): Map a user-supplied name onto one symbol
    - subgraph(): Whole graph, or a depth-bounded BFS from a focus
"""

from rust_grapher.core.graph.base import CallGraph, build
from rust_grapher.core.graph.models import QueryResult
from rust_grapher.core.graph.query import find_focus, subgraph

__all__ = [
    "CallGraph",
    "QueryResult",
    "build",
    "find_focus",
    "subgraph",
]
