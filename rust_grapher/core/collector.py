"""Source collection for Cargo projects."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path

from rust_grapher.core.manifest import CrateManifest, Project, load_project

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = [
    "target",
]

_CRATE_ROOTS = ("lib.rs", "main.rs")


@dataclass(frozen=True)
class SourceFile:
    """A Rust source file and the module it defines."""

    path: Path
    crate: str
    module_path: str


def collect_sources(
    root: Path,
    workspace_only: bool = False,
    exclude_patterns: list[str] | None = None,
    project: Project | None = None,
) -> list[SourceFile]:
    """Collect the Rust sources of every crate in scope, sorted by path.

    Args:
        root: Directory holding the root Cargo.toml
        workspace_only: Skip local path dependencies outside the workspace
        exclude_patterns: Additional fnmatch patterns to exclude (e.g. "tests/*")
        project: An already loaded project, to avoid reading manifests twice

    Raises:
        TargetNotFoundError: If root has no Cargo.toml
    """
    if project is None:
        project = load_project(root)
    all_excludes = DEFAULT_EXCLUDES + (exclude_patterns or [])

    sources: dict[Path, SourceFile] = {}
    for crate in project.crates(workspace_only):
        for source in _collect_crate(crate, all_excludes):
            # A file reachable from two crates keeps its first owner
            sources.setdefault(source.path, source)

    result = sorted(sources.values(), key=lambda s: str(s.path))
    logger.debug("Collected %d source files from %s", len(result), root)
    return result


def _collect_crate(crate: CrateManifest, patterns: list[str]) -> list[SourceFile]:
    src_dir = crate.source_dir
    if not src_dir.is_dir():
        logger.warning("Crate %s has no src directory", crate.name)
        return []

    has_library = (src_dir / "lib.rs").is_file()
    files: list[SourceFile] = []
    for file in src_dir.rglob("*.rs"):
        relative = file.relative_to(crate.directory)
        if _should_exclude(relative, patterns):
            continue
        module_path = module_path_for(file.relative_to(src_dir), crate.crate_ident, has_library)
        files.append(SourceFile(path=file, crate=crate.crate_ident, module_path=module_path))
    return files


def _should_exclude(path: Path, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern.

    Excludes:
    - Any path component starting with '.' (hidden files/directories)
    - Any path component, or the whole relative path, matching a pattern
    """
    for part in path.parts:
        if part.startswith("."):
            return True
        for pattern in patterns:
            if fnmatch.fnmatch(part, pattern):
                return True
    return any(fnmatch.fnmatch(path.as_posix(), pattern) for pattern in patterns)


def module_path_for(relative: Path, crate: str, has_library: bool = False) -> str:
    """Map a path relative to ``src/`` onto its module path.

    ``lib.rs`` is the crate root, and so is ``main.rs`` unless the package also
    has a library, in which case it is the default binary ``bin::<crate>``.
    ``a/mod.rs`` is ``a`` and ``bin/x/main.rs`` is the binary ``bin::x``.
    """
    parts = list(relative.with_suffix("").parts)
    if len(parts) == 1 and relative.name in _CRATE_ROOTS:
        if relative.name == "main.rs" and has_library:
            return f"{crate}::bin::{crate}"
        return crate
    if parts and parts[-1] == "mod":
        parts = parts[:-1]
    elif len(parts) == 3 and parts[0] == "bin" and parts[-1] == "main":
        parts = parts[:-1]
    return "::".join([crate, *parts])
