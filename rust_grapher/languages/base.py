"""Protocol for language parsers."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rust_grapher.languages.models import ParseResult


class LanguageParser(Protocol):
    """Protocol for language parsers."""

    def parse(self, file: Path, module_path: str, crate: str) -> ParseResult:
        """Parse a file defining ``module_path`` and extract its functions."""
        ...
