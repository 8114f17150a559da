"""Rendering options shared by all output formats."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rust_grapher.core.models import Symbol, SymbolType


class OutputFormat(str, Enum):
    MERMAID = "mermaid"
    DOT = "dot"
    JSON = "json"


class Theme(str, Enum):
    DEFAULT = "default"
    LIGHT = "light"
    DARK = "dark"


class Direction(str, Enum):
    LR = "LR"
    TB = "TB"


@dataclass(frozen=True)
class RenderOptions:
    """Presentation settings; none of them change which nodes are drawn."""

    direction: Direction = Direction.LR
    fence: bool = True
    theme: Theme = Theme.DEFAULT
    highlight: tuple[str, ...] = ()
    show_signatures: bool = False
    graph_name: str = "call_graph"

    def is_highlighted(self, symbol: Symbol) -> bool:
        return any(h in (symbol.id, symbol.name, symbol.display_name) for h in self.highlight)


def node_label(symbol: Symbol, options: RenderOptions) -> str:
    """Human readable label: display name, or signature / crate version."""
    if options.show_signatures and symbol.signature:
        if symbol.type is SymbolType.CRATE:
            return f"{symbol.display_name} {symbol.signature}"
        return symbol.signature
    return symbol.display_name
