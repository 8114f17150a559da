"""CLI entry point for rust-grapher."""

import fnmatch
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from rust_grapher.core.deps import build_dependency_graph
from rust_grapher.core.exceptions import GrapherError
from rust_grapher.core.graph import QueryResult, subgraph
from rust_grapher.core.indexer import Indexer
from rust_grapher.core.models import AnalysisStats, Symbol
from rust_grapher.renderers import Direction, OutputFormat, RenderOptions, Theme, render

app = typer.Typer(
    name="rust-grapher",
    help="Call graphs and crate dependency graphs for Rust codebases.",
    no_args_is_help=True,
)
# stdout carries only the rendered graph
console = Console(stderr=True)

_MAX_SKIPPED_DISPLAY = 10


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def fail(error: Exception) -> typer.Exit:
    """Report a fatal error and build the exit to raise."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    return typer.Exit(code=1)


def emit(text: str, output: Path | None) -> None:
    """Write the rendered graph to stdout, or to a file once it is complete."""
    if output is None:
        typer.echo(text, nl=False)
        return
    try:
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        raise fail(e) from e
    console.print(f"[green]Wrote[/green] {escape(str(output))}")


def matches_any(symbol: Symbol, patterns: list[str]) -> bool:
    names = (symbol.name, symbol.display_name, symbol.id)
    return any(fnmatch.fnmatch(n, p) for n in names for p in patterns)


def print_summary(stats: AnalysisStats, result: QueryResult) -> None:
    console.print(
        f"[dim]{stats.files} files, {stats.symbols} functions, {stats.edges} edges "
        f"({stats.unresolved} unresolved); rendered {len(result.nodes)} nodes, "
        f"{len(result.edges)} edges[/]"
    )
    skipped = stats.skipped_files
    if skipped:
        console.print(f"[yellow]Skipped {len(skipped)} file(s):[/yellow]")
        for diagnostic in skipped[:_MAX_SKIPPED_DISPLAY]:
            console.print(f"  {escape(str(diagnostic))}")
        if len(skipped) > _MAX_SKIPPED_DISPLAY:
            console.print(f"  [dim]... and {len(skipped) - _MAX_SKIPPED_DISPLAY} more[/]")
    if stats.ambiguous_calls:
        console.print(f"[dim]Ambiguous calls: {len(stats.ambiguous_calls)}[/]")


@app.command("fn-graph")
def fn_graph(
    path: Annotated[Path, typer.Argument(help="Cargo project root")] = Path("."),
    focus: Annotated[
        str | None, typer.Option("--focus", help="Start from this function (name or id)")
    ] = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", min=0, help="Maximum call depth from the focus (0 = focus only)"),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.MERMAID,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write to file")] = None,
    workspace_only: Annotated[
        bool,
        typer.Option("--workspace-only", help="Ignore path dependencies outside the workspace"),
    ] = False,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-e", help="Skip files and functions matching a pattern"),
    ] = None,
    public_only: Annotated[
        bool, typer.Option("--public-only", help="Only show public functions")
    ] = False,
    show_signatures: Annotated[
        bool, typer.Option("--show-signatures", help="Label nodes with signatures")
    ] = False,
    highlight: Annotated[
        list[str] | None, typer.Option("--highlight", "-H", help="Functions to highlight")
    ] = None,
    theme: Annotated[Theme, typer.Option("--theme", help="Color theme")] = Theme.DEFAULT,
    direction: Annotated[
        Direction, typer.Option("--direction", "-d", help="Graph direction")
    ] = Direction.LR,
    no_fence: Annotated[
        bool, typer.Option("--no-fence", help="Omit the ```mermaid code fence")
    ] = False,
    jobs: Annotated[int, typer.Option("--jobs", "-j", min=1, help="Parser threads")] = 1,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Generate a function call graph from Rust sources."""
    configure_logging(verbose)
    path = path.resolve()
    patterns = exclude or []

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Parsing [cyan]{path.name}[/]", total=None)

            def on_progress(file: Path, current: int, total: int) -> None:
                progress.update(task, total=total, completed=current)
                try:
                    rel_path: Path | str = file.relative_to(path)
                except ValueError:
                    rel_path = file.name
                progress.update(task, description=f"[cyan]{rel_path}[/]")

            graph, stats = Indexer(jobs=jobs).index_directory(
                path,
                workspace_only=workspace_only,
                exclude_patterns=patterns,
                on_progress=on_progress,
            )

        if patterns:
            graph = graph.filter(lambda s: not matches_any(s, patterns))
        if public_only:
            graph = graph.filter(lambda s: s.is_public)

        result = subgraph(graph, focus=focus, max_depth=depth)
        options = RenderOptions(
            direction=direction,
            fence=not no_fence,
            theme=theme,
            highlight=tuple(highlight or []),
            show_signatures=show_signatures,
            graph_name="call_graph",
        )
        text = render(result, output_format, options)
    except GrapherError as e:
        raise fail(e) from e

    emit(text, output)
    print_summary(stats, result)


@app.command()
def deps(
    path: Annotated[Path, typer.Argument(help="Cargo project root")] = Path("."),
    focus: Annotated[
        str | None, typer.Option("--focus", help="Start from this crate")
    ] = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", min=0, help="Maximum dependency depth from the focus"),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.MERMAID,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write to file")] = None,
    workspace_only: Annotated[
        bool, typer.Option("--workspace-only", help="Only show workspace members")
    ] = False,
    no_dev: Annotated[bool, typer.Option("--no-dev", help="Exclude dev-dependencies")] = False,
    no_build: Annotated[
        bool, typer.Option("--no-build", help="Exclude build-dependencies")
    ] = False,
    exclude: Annotated[
        list[str] | None, typer.Option("--exclude", "-e", help="Crates to exclude (patterns)")
    ] = None,
    show_versions: Annotated[
        bool, typer.Option("--show-versions", help="Label crates with their versions")
    ] = False,
    highlight: Annotated[
        list[str] | None, typer.Option("--highlight", "-H", help="Crates to highlight")
    ] = None,
    theme: Annotated[Theme, typer.Option("--theme", help="Color theme")] = Theme.DEFAULT,
    direction: Annotated[
        Direction, typer.Option("--direction", "-d", help="Graph direction")
    ] = Direction.LR,
    no_fence: Annotated[
        bool, typer.Option("--no-fence", help="Omit the ```mermaid code fence")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Generate a crate dependency graph from Cargo manifests."""
    configure_logging(verbose)
    path = path.resolve()

    try:
        graph = build_dependency_graph(
            path,
            workspace_only=workspace_only,
            include_dev=not no_dev,
            include_build=not no_build,
            exclude_patterns=exclude or [],
        )
        result = subgraph(graph, focus=focus, max_depth=depth)
        options = RenderOptions(
            direction=direction,
            fence=not no_fence,
            theme=theme,
            highlight=tuple(highlight or []),
            show_signatures=show_versions,
            graph_name="dependencies",
        )
        text = render(result, output_format, options)
    except GrapherError as e:
        raise fail(e) from e

    emit(text, output)
    console.print(f"[dim]{len(result.nodes)} crates, {len(result.edges)} dependencies[/]")


if __name__ == "__main__":
    app()
