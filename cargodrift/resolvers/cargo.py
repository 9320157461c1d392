"""Cargo resolution driver.

Drives the ``cargo`` binary:
- ``cargo metadata --no-deps`` to find workspace members (never touches
  Cargo.lock)
- ``cargo metadata`` to obtain the resolved dependency graph
- ``cargo update`` to refresh the lock file of a materialized project
"""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Any

from cargodrift.errors import IoFailure, UpdateFailed
from cargodrift.manifest import load_manifest
from cargodrift.structures import (
    DependencyEdge,
    FeatureSelection,
    PackageNode,
    ResolvedGraph,
    WorkspaceLayout,
    WorkspaceMember,
)
from cargodrift.utils.constants import (
    DEFAULT_CARGO_BINARY,
    ENV_CARGO,
    ENV_CARGO_BINARY,
    LOCK_FILE,
    MANIFEST_FILE,
)
from cargodrift.utils.logging import logger

from .base import BaseResolutionDriver

_KIND_NAMES = {None: "normal", "normal": "normal", "dev": "dev", "build": "build"}


def find_root_manifest(start: Path | str) -> Path:
    """Find the nearest Cargo.toml at or above ``start``.

    Raises:
        IoFailure: No Cargo.toml up to the filesystem root
    """
    start = Path(start).resolve()
    if start.is_file():
        return start
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_FILE
        if candidate.is_file():
            return candidate
    raise IoFailure(f"Could not find {MANIFEST_FILE} in this directory or any parent", start)


def feature_args(features: FeatureSelection) -> list[str]:
    """Translate a FeatureSelection into cargo command-line flags."""
    if features.all_features:
        return ["--all-features"]
    if features.no_default_features:
        return ["--no-default-features"]
    if features.features:
        return ["--features", ",".join(features.features)]
    return []


def _edges_from_node(node: dict[str, Any]) -> list[DependencyEdge]:
    if "deps" not in node:
        # cargo < 1.41 only reports plain ids
        return [DependencyEdge(package_id=pid) for pid in node.get("dependencies", [])]

    edges = []
    for dep in node["deps"]:
        kinds = tuple(
            (_KIND_NAMES.get(k.get("kind"), k.get("kind") or "normal"), k.get("target"))
            for k in dep.get("dep_kinds", [])
        ) or (("normal", None),)
        edges.append(DependencyEdge(package_id=dep["pkg"], kinds=kinds))
    return edges


def graph_from_metadata(metadata: dict[str, Any]) -> ResolvedGraph:
    """Build a ResolvedGraph from ``cargo metadata --format-version 1`` output."""
    packages = {
        pkg["id"]: PackageNode(
            id=pkg["id"],
            name=pkg["name"],
            version=pkg["version"],
            source=pkg.get("source"),
        )
        for pkg in metadata.get("packages", [])
    }

    resolve = metadata.get("resolve") or {}
    edges = {node["id"]: _edges_from_node(node) for node in resolve.get("nodes", [])}

    return ResolvedGraph(
        packages=packages,
        edges=edges,
        root=resolve.get("root"),
        workspace_members=list(metadata.get("workspace_members", [])),
    )


class CargoResolutionDriver(BaseResolutionDriver):
    """Resolution driver backed by the cargo command-line tool."""

    def __init__(self, cargo: str | None = None):
        self.cargo = (
            cargo
            or os.environ.get(ENV_CARGO_BINARY)
            or os.environ.get(ENV_CARGO)
            or DEFAULT_CARGO_BINARY
        )

    @property
    def driver_name(self) -> str:
        return "cargo"

    @property
    def manifest_name(self) -> str:
        return MANIFEST_FILE

    @property
    def lock_name(self) -> str:
        return LOCK_FILE

    def _run(self, args: list[str]) -> str:
        """Run cargo and return its stdout.

        Raises:
            UpdateFailed: cargo could not be started or exited non-zero
        """
        command = [self.cargo, *args]
        logger.debug(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                shell=False,
            )
        except OSError as e:
            raise UpdateFailed(command, str(e)) from e

        if result.returncode != 0:
            logger.debug(f"cargo exited with {result.returncode}:\n{result.stderr}")
            raise UpdateFailed(command, result.stderr, result.returncode)

        return result.stdout

    def _metadata(self, args: list[str]) -> dict[str, Any]:
        stdout = self._run(["metadata", "--format-version", "1", *args])
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise UpdateFailed(
                [self.cargo, "metadata", *args], f"cargo metadata produced invalid JSON: {e}", 0
            ) from e

    def locate_workspace(self, manifest_path: Path) -> WorkspaceLayout:
        """Find workspace root and members, plus local path packages under the root."""
        manifest_path = Path(manifest_path).resolve()
        metadata = self._metadata(["--no-deps", "--manifest-path", str(manifest_path)])

        root = Path(metadata["workspace_root"])
        member_ids = set(metadata.get("workspace_members", []))

        members = []
        for pkg in metadata.get("packages", []):
            if pkg["id"] not in member_ids:
                continue
            members.append(
                WorkspaceMember(name=pkg["name"], manifest_dir=Path(pkg["manifest_path"]).parent)
            )

        members.extend(self._local_path_packages(root, members))

        current = load_manifest(manifest_path)
        layout = WorkspaceLayout(root=root, members=members, current_package=current.name)
        logger.info(
            f"Workspace at {root}: {sum(1 for m in members if m.is_member)} member(s), "
            f"{sum(1 for m in members if not m.is_member)} local path package(s)"
        )
        return layout

    def _local_path_packages(
        self, root: Path, members: list[WorkspaceMember]
    ) -> list[WorkspaceMember]:
        """Follow ``path =`` dependencies that stay inside the workspace root.

        Such packages are not members but the materialized copy still needs
        their manifests for resolution to succeed.
        """
        known = {m.manifest_dir.resolve() for m in members} | {root.resolve()}
        found: list[WorkspaceMember] = []
        queue = [m.manifest_dir for m in members]
        if (root / MANIFEST_FILE).is_file():
            queue.append(root)

        while queue:
            directory = queue.pop(0)
            manifest = load_manifest(directory / MANIFEST_FILE)

            tables = [table for _section, table in manifest.dependency_groups()]
            for overrides in (manifest.target or {}).values():
                tables.extend(t for t in overrides.values() if isinstance(t, dict))
            if manifest.workspace and isinstance(manifest.workspace.get("dependencies"), dict):
                tables.append(manifest.workspace["dependencies"])

            for table in tables:
                for spec in table.values():
                    if not isinstance(spec, dict) or not isinstance(spec.get("path"), str):
                        continue
                    dep_dir = (directory / spec["path"]).resolve()
                    if dep_dir in known or not (dep_dir / MANIFEST_FILE).is_file():
                        continue
                    if not dep_dir.is_relative_to(root.resolve()):
                        logger.warning(
                            f"Path dependency {dep_dir} is outside the workspace and will not be copied"
                        )
                        known.add(dep_dir)
                        continue
                    known.add(dep_dir)
                    dep_manifest = load_manifest(dep_dir / MANIFEST_FILE)
                    found.append(
                        WorkspaceMember(
                            name=dep_manifest.name or dep_dir.name,
                            manifest_dir=dep_dir,
                            is_member=False,
                        )
                    )
                    queue.append(dep_dir)

        return found

    def resolve(self, manifest_path: Path, features: FeatureSelection) -> ResolvedGraph:
        metadata = self._metadata(
            ["--manifest-path", str(manifest_path), *feature_args(features)]
        )
        graph = graph_from_metadata(metadata)
        logger.debug(f"Resolved {len(graph.packages)} package(s) for {manifest_path}")
        return graph

    def refresh_lock(self, manifest_path: Path) -> None:
        logger.info(f"Updating lock file for {manifest_path}")
        self._run(["update", "--manifest-path", str(manifest_path)])
