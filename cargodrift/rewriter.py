"""Version-policy rewrites applied to materialized manifests.

Two policies:
- COMPATIBLE: make the manifest buildable without sources (placeholder
  bin/lib targets) and leave every version requirement alone, so a lock
  refresh stays inside the declared semver ranges.
- LATEST: the same, plus every explicit version requirement becomes "*".
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from cargodrift.manifest import Manifest
from cargodrift.utils.constants import (
    DEPENDENCY_SECTIONS,
    LEGACY_SECTION_NAMES,
    PLACEHOLDER_BIN_NAME,
    PLACEHOLDER_BIN_PATH,
    PLACEHOLDER_LIB_PATH,
    WILDCARD_VERSION,
)
from cargodrift.utils.logging import logger


class VersionPolicy(Enum):
    """How a materialized copy is allowed to resolve."""

    COMPATIBLE = "compatible"
    LATEST = "latest"


def placeholder_bin() -> dict[str, str]:
    return {"name": PLACEHOLDER_BIN_NAME, "path": PLACEHOLDER_BIN_PATH}


def replace_version_with_wildcard(dependencies: dict[str, Any]) -> int:
    """Replace every explicit version requirement in a grouping with "*".

    Bare strings are replaced whole. Tables only get their ``version``
    entry replaced, and only when it exists; path, git, features, optional
    and the rest pass through. Applying it twice is a no-op.

    Args:
        dependencies: Grouping to rewrite in place

    Returns:
        Number of entries whose requirement changed
    """
    changed = 0
    for name in list(dependencies):
        spec = dependencies[name]
        if isinstance(spec, str):
            if spec != WILDCARD_VERSION:
                changed += 1
            dependencies[name] = WILDCARD_VERSION
        elif isinstance(spec, dict):
            if "version" in spec:
                if spec["version"] != WILDCARD_VERSION:
                    changed += 1
                replaced = dict(spec)
                replaced["version"] = WILDCARD_VERSION
                dependencies[name] = replaced
        # Anything else was rejected by parse_manifest
    return changed


def _rewrite_targets(manifest: Manifest) -> None:
    if manifest.is_virtual:
        return
    manifest.bin = [placeholder_bin()]
    if manifest.lib is not None:
        manifest.lib["path"] = PLACEHOLDER_LIB_PATH


def _wildcard_all(manifest: Manifest) -> int:
    changed = 0
    for _section, table in manifest.dependency_groups():
        changed += replace_version_with_wildcard(table)

    for overrides in (manifest.target or {}).values():
        if not isinstance(overrides, dict):
            continue
        for key, table in overrides.items():
            if (key in DEPENDENCY_SECTIONS or key in LEGACY_SECTION_NAMES) and isinstance(table, dict):
                changed += replace_version_with_wildcard(table)

    if manifest.workspace is not None and isinstance(manifest.workspace.get("dependencies"), dict):
        changed += replace_version_with_wildcard(manifest.workspace["dependencies"])

    return changed


def rewrite_manifest(manifest: Manifest, policy: VersionPolicy) -> Manifest:
    """Return a rewritten copy of ``manifest``; the argument is not mutated."""
    rewritten = manifest.copy()
    _rewrite_targets(rewritten)

    if policy is VersionPolicy.LATEST:
        changed = _wildcard_all(rewritten)
        logger.debug(
            f"{rewritten.name or 'virtual manifest'}: {changed} version requirement(s) set to '*'"
        )

    return rewritten
