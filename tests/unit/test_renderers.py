"""Tests for the Mermaid, DOT and JSON renderers."""

import json
from pathlib import Path

import pytest

from rust_grapher.core.exceptions import GraphError
from rust_grapher.core.graph import QueryResult, subgraph
from rust_grapher.core.models import Edge, EdgeType, Resolution, Symbol, SymbolType
from rust_grapher.renderers import Direction, OutputFormat, RenderOptions, Theme, render
from rust_grapher.renderers import json_graph
from rust_grapher.renderers.mermaid import sanitize


def make_symbol(name: str, **kwargs) -> Symbol:
    return Symbol(
        id=f"app::{name}",
        name=name,
        display_name=kwargs.pop("display_name", name),
        module_path="app",
        file=Path("src/lib.rs"),
        line=kwargs.pop("line", 1),
        end_line=None,
        type=kwargs.pop("type", SymbolType.FUNCTION),
        crate="app",
        **kwargs,
    )


@pytest.fixture
def simple_result() -> QueryResult:
    """a -> b, b -> ext::f (unresolved)."""
    return QueryResult(
        nodes=(make_symbol("a"), make_symbol("b")),
        edges=(
            Edge(caller="app::a", callee="app::b", raw="b", call_lines=(2,)),
            Edge(
                caller="app::b",
                callee=None,
                raw="ext::f",
                call_lines=(5,),
                resolution=Resolution.UNRESOLVED,
            ),
        ),
    )


class TestDot:
    """Tests for Graphviz output."""

    def test_exact_output(self, simple_result: QueryResult) -> None:
        assert render(simple_result, OutputFormat.DOT) == (
            'digraph "call_graph" {\n'
            "    rankdir=LR;\n"
            "    node [shape=box, style=rounded];\n"
            '    "app::a" [label="a"];\n'
            '    "app::b" [label="b"];\n'
            '    "?ext::f" [label="ext::f", shape=plaintext, fontcolor=gray];\n'
            '    "app::a" -> "app::b";\n'
            '    "app::b" -> "?ext::f" [style=dotted];\n'
            "}\n"
        )

    def test_direction_and_name(self, simple_result: QueryResult) -> None:
        options = RenderOptions(direction=Direction.TB, graph_name="dependencies")
        output = render(simple_result, OutputFormat.DOT, options)

        assert output.startswith('digraph "dependencies" {\n    rankdir=TB;\n')

    def test_dark_theme(self, simple_result: QueryResult) -> None:
        output = render(simple_result, OutputFormat.DOT, RenderOptions(theme=Theme.DARK))

        assert 'bgcolor="#1e1e1e";' in output
        assert "edge [color=white];" in output

    def test_highlight(self, simple_result: QueryResult) -> None:
        output = render(simple_result, OutputFormat.DOT, RenderOptions(highlight=("b",)))

        assert '"app::b" [label="b", fillcolor="#ff99ff", style="filled,rounded"];' in output
        assert '"app::a" [label="a"];' in output

    def test_node_attributes(self) -> None:
        result = QueryResult(
            nodes=(make_symbol("serve", is_public=True, is_async=True),),
            edges=(),
        )

        output = render(result, OutputFormat.DOT)

        assert '"app::serve" [label="serve", penwidth=2, color=blue];' in output

    def test_edge_styles(self) -> None:
        a, b, c = make_symbol("a"), make_symbol("b"), make_symbol("c")
        result = QueryResult(
            nodes=(a, b, c),
            edges=(
                Edge(caller=a.id, callee=b.id, raw="x.b", type=EdgeType.METHOD_CALL),
                Edge(caller=a.id, callee=c.id, raw="c", resolution=Resolution.AMBIGUOUS),
            ),
        )

        output = render(result, OutputFormat.DOT)

        assert '"app::a" -> "app::b" [style=dashed];' in output
        assert '"app::a" -> "app::c" [color=orange];' in output

    def test_quotes_are_escaped(self) -> None:
        symbol = make_symbol("f", signature='fn f(s: &str) -> &str { "x" }')

        output = render(
            QueryResult(nodes=(symbol,), edges=()),
            OutputFormat.DOT,
            RenderOptions(show_signatures=True),
        )

        assert 'label="fn f(s: &str) -> &str { \\"x\\" }"' in output

    def test_unresolved_target_differs_from_crate_named_unresolved(self) -> None:
        local = Symbol(
            id="unresolved::f",
            name="f",
            display_name="f",
            module_path="unresolved",
            file=Path("src/lib.rs"),
            line=1,
            end_line=None,
            type=SymbolType.FUNCTION,
            crate="unresolved",
        )
        result = QueryResult(
            nodes=(local,),
            edges=(
                Edge(
                    caller=local.id,
                    callee=None,
                    raw="f",
                    resolution=Resolution.UNRESOLVED,
                ),
            ),
        )

        output = render(result, OutputFormat.DOT)

        assert '"unresolved::f" -> "?f" [style=dotted];' in output
        assert output.count('"unresolved::f" [') == 1


class TestMermaid:
    """Tests for Mermaid output."""

    def test_exact_output(self, simple_result: QueryResult) -> None:
        assert render(simple_result, OutputFormat.MERMAID) == (
            "```mermaid\n"
            "flowchart LR\n"
            '    f_app__a["a"]\n'
            '    f_app__b["b"]\n'
            '    x_ext__f["ext::f"]:::unresolved\n'
            "    f_app__a --> f_app__b\n"
            "    f_app__b --> x_ext__f\n"
            "    classDef unresolved stroke-dasharray: 5 5,color:#888\n"
            "```\n"
        )

    def test_no_fence(self, simple_result: QueryResult) -> None:
        output = render(simple_result, OutputFormat.MERMAID, RenderOptions(fence=False))

        assert output.startswith("flowchart LR\n")
        assert "```" not in output

    def test_theme_directive(self, simple_result: QueryResult) -> None:
        output = render(simple_result, OutputFormat.MERMAID, RenderOptions(theme=Theme.DARK))

        assert output.splitlines()[1] == "%%{init: {'theme': 'dark'}}%%"

    def test_highlight_and_ambiguous_link(self) -> None:
        a, b = make_symbol("a"), make_symbol("b")
        result = QueryResult(
            nodes=(a, b),
            edges=(Edge(caller=a.id, callee=b.id, raw="b", resolution=Resolution.AMBIGUOUS),),
        )

        output = render(result, OutputFormat.MERMAID, RenderOptions(highlight=("app::a",)))

        assert "    linkStyle 0 stroke:orange\n" in output
        assert "    style f_app__a fill:#f9f,stroke:#333,stroke-width:4px\n" in output

    def test_arrows_by_edge_type(self) -> None:
        a, b, c = make_symbol("a"), make_symbol("b"), make_symbol("c")
        result = QueryResult(
            nodes=(a, b, c),
            edges=(
                Edge(caller=a.id, callee=b.id, raw="b", type=EdgeType.DEV_DEPENDENCY),
                Edge(caller=a.id, callee=c.id, raw="c", type=EdgeType.BUILD_DEPENDENCY),
            ),
        )

        output = render(result, OutputFormat.MERMAID)

        assert "f_app__a -.-> f_app__b" in output
        assert "f_app__a ==> f_app__c" in output

    def test_colliding_ids_stay_distinct(self) -> None:
        first = make_symbol("a_b")
        second = make_symbol("a-b")

        output = render(QueryResult(nodes=(first, second), edges=()), OutputFormat.MERMAID)

        assert '    f_app__a_b["a_b"]' in output
        assert '    f_app__a_b_2["a-b"]' in output

    def test_label_quotes_escaped(self) -> None:
        symbol = make_symbol("f", display_name='say"hi"')

        output = render(QueryResult(nodes=(symbol,), edges=()), OutputFormat.MERMAID)

        assert 'f_app__f["say#quot;hi#quot;"]' in output

    def test_sanitize(self) -> None:
        assert sanitize("app::<T as Tr>::m#2") == "app___T_as_Tr___m_2"


class TestJson:
    """Tests for JSON output and loading."""

    def test_document_shape(self, simple_result: QueryResult) -> None:
        document = json.loads(render(simple_result, OutputFormat.JSON))

        assert [n["id"] for n in document["nodes"]] == ["app::a", "app::b"]
        assert document["nodes"][0]["highlighted"] is False
        assert document["edges"][1] == {
            "caller": "app::b",
            "callee": None,
            "raw": "ext::f",
            "type": "call",
            "resolution": "unresolved",
            "lines": [5],
        }

    def test_load_restores_graph(self, simple_result: QueryResult) -> None:
        graph = json_graph.load(render(simple_result, OutputFormat.JSON))

        assert list(graph.symbols) == ["app::a", "app::b"]
        restored = subgraph(graph)
        assert restored.edges == simple_result.edges
        assert restored.nodes == simple_result.nodes

    @pytest.mark.parametrize("text", ["not json", "{}", '{"nodes": [{"id": "x"}], "edges": []}'])
    def test_load_rejects_invalid_documents(self, text: str) -> None:
        with pytest.raises(GraphError):
            json_graph.load(text)


class TestDeterminism:
    """Rendering the same result twice gives identical bytes."""

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_repeatable(self, simple_result: QueryResult, fmt: OutputFormat) -> None:
        options = RenderOptions(theme=Theme.DARK, highlight=("a",))
        assert render(simple_result, fmt, options) == render(simple_result, fmt, options)
