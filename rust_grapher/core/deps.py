"""Crate dependency graphs built from Cargo manifests."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from rust_grapher.core.graph import CallGraph
from rust_grapher.core.manifest import CrateManifest, DependencySpec, load_project
from rust_grapher.core.models import Edge, EdgeType, Symbol, SymbolType

logger = logging.getLogger(__name__)


def _crate_symbol(crate: CrateManifest) -> Symbol:
    return Symbol(
        id=crate.name,
        name=crate.name,
        display_name=crate.name,
        module_path=crate.crate_ident,
        file=crate.manifest_path,
        line=1,
        end_line=None,
        type=SymbolType.CRATE,
        crate=crate.crate_ident,
        is_public=crate.is_workspace_member,
        signature=crate.version,
    )


def _external_symbol(dep: DependencySpec) -> Symbol:
    return Symbol(
        id=dep.name,
        name=dep.name,
        display_name=dep.name,
        module_path=dep.name.replace("-", "_"),
        file=Path(),
        line=0,
        end_line=None,
        type=SymbolType.CRATE,
        crate=dep.name.replace("-", "_"),
        signature=dep.version,
    )


def build_dependency_graph(
    root: Path,
    workspace_only: bool = False,
    include_dev: bool = True,
    include_build: bool = True,
    exclude_patterns: list[str] | None = None,
) -> CallGraph:
    """Graph of the local crates of a project and the crates they depend on.

    Args:
        root: Directory holding the root Cargo.toml
        workspace_only: Keep workspace members only (no path or external crates)
        include_dev: Include dev-dependencies
        include_build: Include build-dependencies
        exclude_patterns: fnmatch patterns of crate names to leave out

    Raises:
        TargetNotFoundError: If root has no Cargo.toml
        ManifestError: If a manifest cannot be read
    """
    project = load_project(root)
    patterns = exclude_patterns or []

    def excluded(name: str) -> bool:
        return any(fnmatch.fnmatch(name, p) for p in patterns)

    kinds = {EdgeType.DEPENDENCY}
    if include_dev:
        kinds.add(EdgeType.DEV_DEPENDENCY)
    if include_build:
        kinds.add(EdgeType.BUILD_DEPENDENCY)

    local = [c for c in project.crates(workspace_only) if not excluded(c.name)]
    by_directory = {c.directory: c for c in project.crates()}

    graph = CallGraph()
    for crate in local:
        graph.add_symbol(_crate_symbol(crate))

    externals: dict[str, DependencySpec] = {}
    edges: list[Edge] = []
    for crate in local:
        for dep in crate.dependencies:
            if dep.kind not in kinds:
                continue
            target = dep.name
            if dep.path is not None and dep.path in by_directory:
                target = by_directory[dep.path].name
            elif not workspace_only:
                externals.setdefault(target, dep)
            if excluded(target):
                continue
            edges.append(Edge(caller=crate.name, callee=target, raw=dep.name, type=dep.kind))

    for name in sorted(externals):
        if name not in graph and not excluded(name):
            graph.add_symbol(_external_symbol(externals[name]))

    for edge in edges:
        # Targets outside the selected scope are not drawn
        if edge.callee in graph:
            graph.add_edge(edge)

    logger.debug("Dependency graph: %r", graph)
    return graph
