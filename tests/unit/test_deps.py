"""Tests for crate dependency graphs."""

from pathlib import Path

import pytest

from rust_grapher.core.deps import build_dependency_graph
from rust_grapher.core.exceptions import TargetNotFoundError
from rust_grapher.core.models import EdgeType, SymbolType


@pytest.fixture
def project(temp_dir: Path, make_crate) -> Path:
    (temp_dir / "Cargo.toml").write_text('[workspace]\nmembers = ["app", "lib-a"]\n')
    make_crate(
        "app",
        {"src/main.rs": "fn main() {}\n"},
        subdir="app",
        manifest_extra=(
            "\n[dependencies]\n"
            'lib-a = { path = "../lib-a" }\n'
            'outside = { path = "../outside" }\n'
            'serde = "1.0"\n'
            "\n[dev-dependencies]\n"
            'tempfile = "3"\n'
            "\n[build-dependencies]\n"
            'cc = "1"\n'
        ),
    )
    make_crate(
        "lib-a",
        {"src/lib.rs": ""},
        subdir="lib-a",
        manifest_extra='\n[dependencies]\nserde = { version = "1.0", features = ["derive"] }\n',
    )
    make_crate("outside", {"src/lib.rs": ""}, subdir="outside")
    return temp_dir


def edge_set(graph) -> set[tuple[str, str, EdgeType]]:
    return {(e.caller, e.callee, e.type) for e in graph.edges}


class TestDependencyGraph:
    """Tests for build_dependency_graph."""

    def test_full_graph(self, project: Path) -> None:
        graph = build_dependency_graph(project)

        assert list(graph.symbols) == ["app", "lib-a", "outside", "cc", "serde", "tempfile"]
        assert edge_set(graph) == {
            ("app", "lib-a", EdgeType.DEPENDENCY),
            ("app", "outside", EdgeType.DEPENDENCY),
            ("app", "serde", EdgeType.DEPENDENCY),
            ("app", "tempfile", EdgeType.DEV_DEPENDENCY),
            ("app", "cc", EdgeType.BUILD_DEPENDENCY),
            ("lib-a", "serde", EdgeType.DEPENDENCY),
        }

    def test_crate_nodes(self, project: Path) -> None:
        graph = build_dependency_graph(project)

        app = graph.get_symbol("app")
        assert app.type == SymbolType.CRATE
        assert app.is_public
        assert app.signature == "0.1.0"
        assert not graph.get_symbol("outside").is_public
        serde = graph.get_symbol("serde")
        assert serde.line == 0
        assert serde.signature == "1.0"

    def test_without_dev_and_build(self, project: Path) -> None:
        graph = build_dependency_graph(project, include_dev=False, include_build=False)

        assert "tempfile" not in graph
        assert "cc" not in graph
        assert ("app", "serde", EdgeType.DEPENDENCY) in edge_set(graph)

    def test_workspace_only(self, project: Path) -> None:
        graph = build_dependency_graph(project, workspace_only=True)

        assert list(graph.symbols) == ["app", "lib-a"]
        assert edge_set(graph) == {("app", "lib-a", EdgeType.DEPENDENCY)}

    def test_exclude_patterns(self, project: Path) -> None:
        graph = build_dependency_graph(project, exclude_patterns=["lib-*", "serde"])

        assert "lib-a" not in graph
        assert "serde" not in graph
        assert all(e.callee not in ("lib-a", "serde") for e in graph.edges)

    def test_missing_manifest(self, temp_dir: Path) -> None:
        with pytest.raises(TargetNotFoundError):
            build_dependency_graph(temp_dir)
