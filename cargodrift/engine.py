"""Orchestration of one comparison run.

locate workspace -> materialize current/compatible/latest copies ->
rewrite -> refresh lock files -> resolve -> align.

The current branch is resolved from a scratch copy as well (placeholder
targets, no lock refresh) so that resolving it never creates or rewrites
the user's own Cargo.lock.
"""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path

from cargodrift.differ import compare_versions
from cargodrift.errors import IoFailure
from cargodrift.materializer import MaterializedProject
from cargodrift.resolvers.base import BaseResolutionDriver
from cargodrift.resolvers.cargo import find_root_manifest
from cargodrift.rewriter import VersionPolicy
from cargodrift.structures import DriftOptions, DriftRecord, ResolvedGraph, WorkspaceLayout
from cargodrift.utils.logging import logger


def _resolve_branch(
    stack: ExitStack,
    layout: WorkspaceLayout,
    driver: BaseResolutionDriver,
    options: DriftOptions,
    policy: VersionPolicy,
    refresh: bool,
    label: str,
) -> ResolvedGraph:
    project = stack.enter_context(MaterializedProject.create(layout, driver))
    project.apply_policy(policy)
    if refresh:
        logger.info(f"Refreshing {label} lock state")
        project.refresh_lock()
    graph = project.resolve(options.features)
    logger.info(f"Resolved {label} graph: {len(graph.packages)} package(s)")
    return graph


def run_comparison(
    options: DriftOptions,
    driver: BaseResolutionDriver,
    cwd: Path | str | None = None,
) -> list[DriftRecord]:
    """Run the full three-way comparison and return the drift records.

    The records are collected before returning, so a failure anywhere in
    resolution or alignment surfaces before anything is rendered.

    Args:
        options: Run options (manifest path, features, filters, depth)
        driver: Resolution driver to use
        cwd: Where to start looking for Cargo.toml when no manifest path is given

    Raises:
        MalformedManifest, IoFailure, UpdateFailed, PackageNotFound
    """
    if options.manifest_path is not None:
        manifest_path = Path(options.manifest_path)
        if not manifest_path.is_file():
            raise IoFailure("Manifest not found", manifest_path)
    else:
        manifest_path = find_root_manifest(cwd or Path.cwd())
    layout = driver.locate_workspace(manifest_path)

    with ExitStack() as stack:
        current = _resolve_branch(
            stack, layout, driver, options, VersionPolicy.COMPATIBLE, False, "current"
        )
        compatible = _resolve_branch(
            stack, layout, driver, options, VersionPolicy.COMPATIBLE, True, "compatible"
        )
        latest = _resolve_branch(
            stack, layout, driver, options, VersionPolicy.LATEST, True, "latest"
        )

        records = list(
            compare_versions(
                current,
                compatible,
                latest,
                root=options.root,
                default_root=layout.current_package,
                depth=options.depth,
                packages=options.packages,
            )
        )

    logger.info(f"{len(records)} outdated dependency record(s)")
    return records
