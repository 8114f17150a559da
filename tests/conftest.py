"""Shared fixtures: throwaway Cargo projects."""

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

CrateFactory = Callable[..., Path]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def make_crate(temp_dir: Path) -> CrateFactory:
    """Factory writing a crate (Cargo.toml plus source files) under temp_dir.

    Usage: make_crate("app", {"src/lib.rs": "..."}, subdir="crates/app", manifest_extra="...")
    """

    def factory(
        name: str,
        files: dict[str, str],
        subdir: str = "",
        manifest_extra: str = "",
    ) -> Path:
        crate_dir = temp_dir / subdir if subdir else temp_dir
        crate_dir.mkdir(parents=True, exist_ok=True)
        manifest = f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n'
        (crate_dir / "Cargo.toml").write_text(manifest + manifest_extra)
        for relative, content in files.items():
            path = crate_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return crate_dir

    return factory
