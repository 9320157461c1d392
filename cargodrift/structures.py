"""Data contracts shared by the resolver drivers, the differ and the report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from cargodrift.utils.constants import MANIFEST_FILE


@dataclass(frozen=True)
class PackageNode:
    """A resolved package: exact name, version and source."""

    id: str
    name: str
    version: str
    source: str | None = None


@dataclass(frozen=True)
class DependencyEdge:
    """A "depends on" edge to ``package_id``.

    ``kinds`` holds (kind, platform) pairs as reported by the resolver,
    kind being "normal", "dev" or "build" and platform a cfg expression or
    None when the edge applies everywhere.
    """

    package_id: str
    kinds: tuple[tuple[str, str | None], ...] = (("normal", None),)


@dataclass
class ResolvedGraph:
    """Output of one resolution: packages and their dependency edges.

    Treated as read-only once built.
    """

    packages: dict[str, PackageNode]
    edges: dict[str, list[DependencyEdge]]
    root: str | None = None
    workspace_members: list[str] = field(default_factory=list)

    def get(self, package_id: str) -> PackageNode:
        return self.packages[package_id]

    def deps(self, package_id: str) -> list[tuple[PackageNode, DependencyEdge]]:
        """Direct dependencies of a package, sorted by name then version."""
        seen = set()
        result = []
        for edge in self.edges.get(package_id, []):
            if edge.package_id in seen:
                continue
            seen.add(edge.package_id)
            result.append((self.packages[edge.package_id], edge))
        result.sort(key=lambda pair: (pair[0].name, pair[0].version))
        return result

    def members(self) -> list[PackageNode]:
        """Workspace member packages, sorted by name."""
        return sorted(
            (self.packages[pid] for pid in self.workspace_members if pid in self.packages),
            key=lambda node: node.name,
        )

    def member_by_name(self, name: str) -> PackageNode | None:
        for node in self.members():
            if node.name == name:
                return node
        return None


@dataclass
class DriftRecord:
    """Version drift of one node on one traversal path.

    ``compatible`` / ``latest`` hold the version found in that resolution,
    or None when the package disappeared from it.
    """

    name: str
    current: str
    compatible: str | None
    latest: str | None
    parents: tuple[str, ...] = ()
    kind: str | None = None
    platform: str | None = None

    @property
    def depth(self) -> int:
        return len(self.parents)

    @property
    def compatible_changed(self) -> bool:
        return self.compatible != self.current

    @property
    def latest_changed(self) -> bool:
        return self.latest != self.current

    @property
    def has_drift(self) -> bool:
        return self.compatible_changed or self.latest_changed

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        d = asdict(self)
        d["parents"] = list(self.parents)
        d["compatible_removed"] = self.compatible is None
        d["latest_removed"] = self.latest is None
        return d


@dataclass(frozen=True)
class FeatureSelection:
    """Feature flags forwarded to the resolver. The three modes are exclusive."""

    features: tuple[str, ...] = ()
    all_features: bool = False
    no_default_features: bool = False

    def __post_init__(self):
        chosen = sum([bool(self.features), self.all_features, self.no_default_features])
        if chosen > 1:
            raise ValueError(
                "features, all_features and no_default_features are mutually exclusive"
            )


@dataclass(frozen=True)
class WorkspaceMember:
    """A package whose manifest gets copied into a materialized project."""

    name: str
    manifest_dir: Path
    is_member: bool = True


@dataclass
class WorkspaceLayout:
    """Where a workspace lives and which manifests make it up.

    ``current_package`` names the package whose manifest the user pointed
    at, None when that manifest is a virtual workspace root.
    """

    root: Path
    members: list[WorkspaceMember]
    current_package: str | None = None

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_FILE


@dataclass
class DriftOptions:
    """Options for one comparison run.

    Encapsulates configuration that flows from the CLI through the engine.
    """

    manifest_path: Path | None = None
    features: FeatureSelection = field(default_factory=FeatureSelection)
    packages: tuple[str, ...] = ()
    root: str | None = None
    depth: int | None = None
    exit_code: int = 0
    color: str = "auto"
    output_format: str = "table"
