"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from cargodrift.errors import UpdateFailed
from cargodrift.manifest import load_manifest
from cargodrift.resolvers.base import BaseResolutionDriver
from cargodrift.structures import (
    DependencyEdge,
    FeatureSelection,
    PackageNode,
    ResolvedGraph,
    WorkspaceLayout,
    WorkspaceMember,
)
from cargodrift.utils.constants import WILDCARD_VERSION

CRATES_IO = "registry+https://github.com/rust-lang/crates.io-index"


def make_graph(
    edges: dict[str, list[str]],
    root: str | None = None,
    members: list[str] | None = None,
) -> ResolvedGraph:
    """Build a ResolvedGraph from ``{"name version": ["name version", ...]}``.

    Members (and the root) get no source, everything else comes from crates.io.
    An entry written as ``"name version source"`` overrides the source.
    """
    members = list(members or ([root] if root else []))
    packages = {}

    def node(pid: str) -> PackageNode:
        parts = pid.split(" ", 2)
        name, version = parts[0], parts[1]
        if len(parts) == 3:
            source = parts[2]
        else:
            source = None if pid in members else CRATES_IO
        return PackageNode(id=pid, name=name, version=version, source=source)

    for parent, children in edges.items():
        packages.setdefault(parent, node(parent))
        for child in children:
            packages.setdefault(child, node(child))

    return ResolvedGraph(
        packages=packages,
        edges={parent: [DependencyEdge(package_id=c) for c in children] for parent, children in edges.items()},
        root=root,
        workspace_members=members,
    )


def _has_wildcard(manifest_dir: Path) -> bool:
    for path in manifest_dir.rglob("Cargo.toml"):
        manifest = load_manifest(path)
        for _section, table in manifest.dependency_groups():
            for spec in table.values():
                version = spec if isinstance(spec, str) else spec.get("version")
                if version == WILDCARD_VERSION:
                    return True
    return False


class FakeResolutionDriver(BaseResolutionDriver):
    """In-memory driver that hands out canned graphs per branch.

    The branch is recognised from the materialized copy itself: a copy
    with "*" requirements is the latest branch, a copy whose lock was
    refreshed is the compatible branch, anything else is current.
    """

    def __init__(
        self,
        layout: WorkspaceLayout,
        current: ResolvedGraph,
        compatible: ResolvedGraph,
        latest: ResolvedGraph,
        fail_refresh: str | None = None,
    ):
        self.layout = layout
        self.graphs = {"current": current, "compatible": compatible, "latest": latest}
        self.fail_refresh = fail_refresh
        self.refreshed: set[Path] = set()
        self.resolved: list[tuple[str, Path, FeatureSelection]] = []
        self.scratch_dirs: list[Path] = []

    @property
    def driver_name(self) -> str:
        return "fake"

    @property
    def manifest_name(self) -> str:
        return "Cargo.toml"

    @property
    def lock_name(self) -> str:
        return "Cargo.lock"

    def locate_workspace(self, manifest_path: Path) -> WorkspaceLayout:
        return self.layout

    def _branch(self, manifest_path: Path) -> str:
        if _has_wildcard(manifest_path.parent):
            return "latest"
        if manifest_path in self.refreshed:
            return "compatible"
        return "current"

    def refresh_lock(self, manifest_path: Path) -> None:
        branch = "latest" if _has_wildcard(manifest_path.parent) else "compatible"
        if self.fail_refresh == branch:
            raise UpdateFailed(["cargo", "update"], f"error: failed to select a version ({branch})", 101)
        self.refreshed.add(manifest_path)

    def resolve(self, manifest_path: Path, features: FeatureSelection) -> ResolvedGraph:
        branch = self._branch(manifest_path)
        self.resolved.append((branch, manifest_path, features))
        self.scratch_dirs.append(manifest_path.parent)
        return self.graphs[branch]


def write_crate(directory: Path, name: str, deps: str = "", extra: str = "") -> Path:
    """Write a minimal Cargo.toml and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    manifest = directory / "Cargo.toml"
    manifest.write_text(
        f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n\n'
        f"[dependencies]\n{deps}\n{extra}",
        encoding="utf-8",
    )
    return manifest


@pytest.fixture
def single_crate(tmp_path):
    """A one-package project depending on foo 1.0.0 with a lock file."""
    project = tmp_path / "app"
    write_crate(project, "app", 'foo = "1.0.0"\n')
    (project / "Cargo.lock").write_text("# locked\n", encoding="utf-8")
    layout = WorkspaceLayout(
        root=project,
        members=[WorkspaceMember(name="app", manifest_dir=project)],
        current_package="app",
    )
    return layout


@pytest.fixture
def scenario_a(single_crate):
    """foo locked at 1.0.0, 1.2.0 satisfies the requirement, 2.0.0 does not."""
    return FakeResolutionDriver(
        single_crate,
        current=make_graph({"app 0.1.0": ["foo 1.0.0"], "foo 1.0.0": []}, root="app 0.1.0"),
        compatible=make_graph({"app 0.1.0": ["foo 1.2.0"], "foo 1.2.0": []}, root="app 0.1.0"),
        latest=make_graph({"app 0.1.0": ["foo 2.0.0"], "foo 2.0.0": []}, root="app 0.1.0"),
    )


@pytest.fixture
def up_to_date(single_crate):
    """Three identical resolutions."""
    graph = make_graph({"app 0.1.0": ["foo 1.0.0"], "foo 1.0.0": []}, root="app 0.1.0")
    return FakeResolutionDriver(single_crate, current=graph, compatible=graph, latest=graph)
