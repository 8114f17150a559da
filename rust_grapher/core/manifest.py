"""Cargo.toml readers for crates and workspaces."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from rust_grapher.core.exceptions import ManifestError, TargetNotFoundError
from rust_grapher.core.models import EdgeType

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "Cargo.toml"

_DEPENDENCY_TABLES = {
    "dependencies": EdgeType.DEPENDENCY,
    "dev-dependencies": EdgeType.DEV_DEPENDENCY,
    "build-dependencies": EdgeType.BUILD_DEPENDENCY,
}


@dataclass
class DependencySpec:
    """A dependency declared in a manifest."""

    name: str
    kind: EdgeType
    version: str | None = None
    path: Path | None = None


@dataclass
class CrateManifest:
    """A package described by a Cargo.toml."""

    name: str
    directory: Path
    manifest_path: Path
    version: str | None = None
    dependencies: list[DependencySpec] = field(default_factory=list)
    is_workspace_member: bool = False

    @property
    def source_dir(self) -> Path:
        return self.directory / "src"

    @property
    def crate_ident(self) -> str:
        """Crate name as it appears in Rust paths."""
        return self.name.replace("-", "_")


@dataclass
class WorkspaceInfo:
    """The ``[workspace]`` table of a root manifest."""

    root: Path
    members: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    dependencies: dict[str, DependencySpec] = field(default_factory=dict)


@dataclass
class Project:
    """All local crates of an analysis target."""

    root: Path
    workspace: WorkspaceInfo | None = None
    members: list[CrateManifest] = field(default_factory=list)
    path_dependencies: list[CrateManifest] = field(default_factory=list)

    def crates(self, workspace_only: bool = False) -> list[CrateManifest]:
        if workspace_only:
            return list(self.members)
        return list(self.members) + list(self.path_dependencies)


def _load_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e


def _parse_dependencies(
    data: dict, directory: Path, workspace_deps: dict[str, DependencySpec]
) -> list[DependencySpec]:
    deps: list[DependencySpec] = []
    for table, kind in _DEPENDENCY_TABLES.items():
        for name, spec in data.get(table, {}).items():
            deps.append(_parse_dependency(name, spec, kind, directory, workspace_deps))
    return deps


def _parse_dependency(
    name: str,
    spec: object,
    kind: EdgeType,
    directory: Path,
    workspace_deps: dict[str, DependencySpec],
) -> DependencySpec:
    """Parse one dependency entry (string version or inline table)."""
    if isinstance(spec, str):
        return DependencySpec(name=name, kind=kind, version=spec)
    if not isinstance(spec, dict):
        return DependencySpec(name=name, kind=kind)

    # `package = "real-name"` renames the dependency
    real_name = spec.get("package", name)

    if spec.get("workspace") is True and name in workspace_deps:
        inherited = workspace_deps[name]
        return DependencySpec(
            name=inherited.name, kind=kind, version=inherited.version, path=inherited.path
        )

    path = None
    if "path" in spec:
        path = (directory / spec["path"]).resolve()
    return DependencySpec(name=real_name, kind=kind, version=spec.get("version"), path=path)


def read_manifest(
    manifest_path: Path, workspace_deps: dict[str, DependencySpec] | None = None
) -> CrateManifest | None:
    """Read a package manifest. Returns None for a virtual workspace manifest."""
    data = _load_toml(manifest_path)
    package = data.get("package")
    if package is None:
        return None
    directory = manifest_path.parent.resolve()
    name = package.get("name")
    if not isinstance(name, str):
        raise ManifestError(f"{manifest_path} has no package name")
    version = package.get("version")
    return CrateManifest(
        name=name,
        directory=directory,
        manifest_path=manifest_path,
        version=version if isinstance(version, str) else None,
        dependencies=_parse_dependencies(data, directory, workspace_deps or {}),
    )


def read_workspace(manifest_path: Path) -> WorkspaceInfo | None:
    """Read the ``[workspace]`` table of a manifest, if it has one."""
    data = _load_toml(manifest_path)
    table = data.get("workspace")
    if not isinstance(table, dict):
        return None
    root = manifest_path.parent.resolve()
    dependencies = {
        name: _parse_dependency(name, spec, EdgeType.DEPENDENCY, root, {})
        for name, spec in table.get("dependencies", {}).items()
    }
    return WorkspaceInfo(
        root=root,
        members=list(table.get("members", [])),
        exclude=list(table.get("exclude", [])),
        dependencies=dependencies,
    )


def _member_directories(workspace: WorkspaceInfo) -> list[Path]:
    root = workspace.root
    excluded = {(root / e).resolve() for e in workspace.exclude}
    directories: list[Path] = []
    for member_glob in workspace.members:
        for member_dir in sorted(root.glob(member_glob)):
            member_dir = member_dir.resolve()
            if member_dir in excluded or member_dir in directories:
                continue
            if (member_dir / MANIFEST_FILENAME).is_file():
                directories.append(member_dir)
            else:
                logger.warning("Workspace member %s has no %s", member_dir, MANIFEST_FILENAME)
    return directories


def load_project(root: Path) -> Project:
    """Read the root manifest, its workspace members and local path dependencies."""
    root = root.resolve()
    manifest_path = root / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise TargetNotFoundError(f"No {MANIFEST_FILENAME} found in {root}")

    workspace = read_workspace(manifest_path)
    workspace_deps = workspace.dependencies if workspace else {}

    project = Project(root=root, workspace=workspace)
    seen: set[Path] = set()

    root_crate = read_manifest(manifest_path, workspace_deps)
    if root_crate is not None:
        root_crate.is_workspace_member = True
        project.members.append(root_crate)
        seen.add(root_crate.directory)

    member_dirs = _member_directories(workspace) if workspace else []
    for member_dir in member_dirs:
        if member_dir in seen:
            continue
        member = read_manifest(member_dir / MANIFEST_FILENAME, workspace_deps)
        if member is None:
            continue
        member.is_workspace_member = True
        project.members.append(member)
        seen.add(member_dir)

    # Walk local path dependencies transitively
    pending = [dep for crate in project.members for dep in crate.dependencies]
    while pending:
        dep = pending.pop(0)
        if dep.path is None or dep.path in seen:
            continue
        seen.add(dep.path)
        dep_manifest = dep.path / MANIFEST_FILENAME
        if not dep_manifest.is_file():
            logger.warning("Path dependency %s has no %s", dep.path, MANIFEST_FILENAME)
            continue
        crate = read_manifest(dep_manifest, workspace_deps)
        if crate is None:
            continue
        project.path_dependencies.append(crate)
        pending.extend(crate.dependencies)

    logger.debug(
        "Loaded %d workspace crate(s) and %d path dependencies from %s",
        len(project.members),
        len(project.path_dependencies),
        root,
    )
    return project
