"""Isolated scratch copies of a workspace.

Every comparison branch gets its own MaterializedProject: a fresh temporary
directory holding the workspace's manifests (and lock files) at their
original relative paths. Rewrites and lock refreshes happen there, never in
the user's project. The directory lives exactly as long as the object; use
it as a context manager so it is removed on success and on failure.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

from cargodrift.errors import IoFailure
from cargodrift.manifest import load_manifest, write_manifest
from cargodrift.resolvers.base import BaseResolutionDriver
from cargodrift.rewriter import VersionPolicy, rewrite_manifest
from cargodrift.structures import FeatureSelection, ResolvedGraph, WorkspaceLayout
from cargodrift.utils.constants import TEMP_DIR_PREFIX
from cargodrift.utils.logging import logger


class MaterializedProject:
    """A scratch copy of a workspace's manifests and lock state."""

    def __init__(self, temp_dir: Path, layout: WorkspaceLayout, driver: BaseResolutionDriver):
        self.temp_dir = temp_dir
        self.layout = layout
        self.driver = driver
        self.policy: VersionPolicy | None = None
        self._closed = False

    @classmethod
    def create(
        cls, layout: WorkspaceLayout, driver: BaseResolutionDriver
    ) -> MaterializedProject:
        """Allocate a scratch directory and copy every manifest into it.

        Raises:
            IoFailure: A directory could not be created or a file copied. The
                partial scratch directory is removed before raising.
        """
        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
        except OSError as e:
            raise IoFailure(f"Could not create scratch directory ({e.strerror})") from e

        project = cls(temp_dir, layout, driver)
        try:
            project._copy_manifests()
        except BaseException:
            project.close()
            raise

        logger.debug(f"Materialized {len(layout.members)} package(s) into {temp_dir}")
        return project

    def _destination(self, source_dir: Path) -> Path:
        try:
            relative = source_dir.resolve().relative_to(self.layout.root.resolve())
        except ValueError as e:
            raise IoFailure("Package lies outside the workspace root", source_dir) from e
        return self.temp_dir / relative

    def _source_dirs(self) -> list[Path]:
        dirs = [self.layout.root]
        for member in self.layout.members:
            if member.manifest_dir.resolve() != self.layout.root.resolve():
                dirs.append(member.manifest_dir)
        return dirs

    def _copy_manifests(self) -> None:
        manifest_name = self.driver.manifest_name
        lock_name = self.driver.lock_name

        for source_dir in self._source_dirs():
            source_manifest = source_dir / manifest_name
            if not source_manifest.is_file():
                # Root of a workspace whose members are elsewhere
                if source_dir == self.layout.root:
                    continue
                raise IoFailure("Manifest not found", source_manifest)

            destination = self._destination(source_dir)
            try:
                destination.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_manifest, destination / manifest_name)
                lockfile = source_dir / lock_name
                if lockfile.is_file():
                    shutil.copyfile(lockfile, destination / lock_name)
            except OSError as e:
                raise IoFailure(f"Could not copy package ({e.strerror})", source_dir) from e

    @property
    def manifest_path(self) -> Path:
        """Root manifest of the copy, derived from the scratch root."""
        return self.temp_dir / self.driver.manifest_name

    def manifest_paths(self) -> list[Path]:
        """Every copied manifest, root first."""
        paths = []
        for source_dir in self._source_dirs():
            path = self._destination(source_dir) / self.driver.manifest_name
            if path.is_file() and path not in paths:
                paths.append(path)
        return paths

    def apply_policy(self, policy: VersionPolicy) -> None:
        """Rewrite every copied manifest under ``policy``."""
        for path in self.manifest_paths():
            manifest = load_manifest(path)
            write_manifest(rewrite_manifest(manifest, policy), path)
        self.policy = policy
        logger.debug(f"Applied {policy.value} policy to {self.temp_dir}")

    def refresh_lock(self) -> None:
        """Re-derive the lock file from the rewritten manifests."""
        self.driver.refresh_lock(self.manifest_path)

    def resolve(self, features: FeatureSelection) -> ResolvedGraph:
        return self.driver.resolve(self.manifest_path, features)

    def close(self) -> None:
        """Remove the scratch directory. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        logger.debug(f"Removed scratch directory {self.temp_dir}")

    def __enter__(self) -> MaterializedProject:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        policy = self.policy.value if self.policy else "none"
        return f"<MaterializedProject {self.temp_dir} policy={policy}>"
