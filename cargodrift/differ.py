"""Three-way alignment of resolved dependency graphs.

The current graph drives a depth-first walk. At every step the compatible
and latest graphs follow along by structural correspondence: a child of the
current node is matched to the child of the aligned compatible (or latest)
node that carries the same package name. Once a branch loses the trail
(package missing in that resolution) it stays None for the whole subtree
and every node below is reported as removed for that branch.

Nodes whose three versions agree are not reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from cargodrift.errors import PackageNotFound
from cargodrift.structures import DependencyEdge, DriftRecord, PackageNode, ResolvedGraph
from cargodrift.utils.logging import logger

_KIND_LABELS = {"normal": "Normal", "dev": "Development", "build": "Build"}


def semver_line(version: str) -> str:
    """Compatibility line of a version as Cargo's caret rule sees it.

    ``1.2.3`` -> ``1``, ``0.3.1`` -> ``0.3``, ``0.0.4`` -> ``0.0.4``.
    """
    parts = version.split("+", 1)[0].split("-", 1)[0].split(".")
    for index, part in enumerate(parts):
        if part != "0":
            return ".".join(parts[: index + 1])
    return ".".join(parts)


def find_dep_by_name(
    graph: ResolvedGraph,
    parent_id: str,
    name: str,
    source: str | None = None,
    version: str | None = None,
) -> PackageNode | None:
    """Find the direct dependency of ``parent_id`` called ``name``.

    Linear scan over the parent's edges. When several edges share the name
    (two major versions, renames) they are ranked by: same source, then the
    exact ``version``, then the same semver line as ``version``. Ties go to
    the first in (name, version) order.
    """
    best = None
    best_rank = None
    for dep, _edge in graph.deps(parent_id):
        if dep.name != name:
            continue
        rank = (
            source is not None and dep.source == source,
            version is not None and dep.version == version,
            version is not None and semver_line(dep.version) == semver_line(version),
        )
        if best_rank is None or rank > best_rank:
            best, best_rank = dep, rank
    return best


def _match_root(graph: ResolvedGraph | None, node: PackageNode) -> PackageNode | None:
    if graph is None:
        return None
    member = graph.member_by_name(node.name)
    if member is not None:
        return member
    if graph.root is not None and graph.get(graph.root).name == node.name:
        return graph.get(graph.root)
    return None


def select_roots(
    current: ResolvedGraph,
    root: str | None = None,
    default: str | None = None,
) -> list[PackageNode]:
    """Pick the packages the walk starts from.

    Args:
        current: The current resolution
        root: Explicitly requested root package (must be a member)
        default: Package the user's manifest belongs to, if any

    Returns:
        ``root`` if given, else ``default``, else the graph's root package,
        else every workspace member in name order (virtual workspace).

    Raises:
        PackageNotFound: ``root`` is not a workspace member
    """
    if root is not None:
        node = current.member_by_name(root)
        if node is None:
            raise PackageNotFound(root, [m.name for m in current.members()])
        return [node]

    if default is not None:
        node = current.member_by_name(default)
        if node is not None:
            return [node]

    if current.root is not None:
        return [current.get(current.root)]

    return current.members()


def _describe_edge(edge: DependencyEdge | None) -> tuple[str | None, str | None]:
    if edge is None:
        return None, None
    kinds = []
    for kind, _platform in edge.kinds:
        label = _KIND_LABELS.get(kind, kind.title())
        if label not in kinds:
            kinds.append(label)
    platforms = sorted({p for _kind, p in edge.kinds if p is not None})
    return ", ".join(kinds), ", ".join(platforms) or None


def _branch_version(node: PackageNode | None) -> str | None:
    return node.version if node is not None else None


def _walk(
    current: ResolvedGraph,
    compatible: ResolvedGraph | None,
    latest: ResolvedGraph | None,
    curr_node: PackageNode,
    compat_node: PackageNode | None,
    latest_node: PackageNode | None,
    edge: DependencyEdge | None,
    parents: tuple[str, ...],
    max_depth: int | None,
    on_path: set[str],
) -> Iterator[DriftRecord]:
    kind, platform = _describe_edge(edge)
    record = DriftRecord(
        name=curr_node.name,
        current=curr_node.version,
        compatible=_branch_version(compat_node),
        latest=_branch_version(latest_node),
        parents=parents,
        kind=kind,
        platform=platform,
    )
    if record.has_drift:
        yield record

    if max_depth is not None and len(parents) >= max_depth:
        return

    on_path.add(curr_node.id)
    child_parents = parents + (curr_node.name,)

    for dep, dep_edge in current.deps(curr_node.id):
        if dep.id in on_path:
            logger.warning(f"Dependency cycle through {dep.id}, not descending again")
            continue

        next_compat = (
            find_dep_by_name(compatible, compat_node.id, dep.name, dep.source, dep.version)
            if compatible is not None and compat_node is not None
            else None
        )
        next_latest = (
            find_dep_by_name(latest, latest_node.id, dep.name, dep.source, dep.version)
            if latest is not None and latest_node is not None
            else None
        )

        yield from _walk(
            current,
            compatible,
            latest,
            dep,
            next_compat,
            next_latest,
            dep_edge,
            child_parents,
            max_depth,
            on_path,
        )

    on_path.discard(curr_node.id)


def compare_versions(
    current: ResolvedGraph,
    compatible: ResolvedGraph | None,
    latest: ResolvedGraph | None,
    *,
    root: str | None = None,
    default_root: str | None = None,
    depth: int | None = None,
    packages: Iterable[str] = (),
) -> Iterator[DriftRecord]:
    """Walk the three graphs and yield a DriftRecord per drifted node.

    Records come in pre-order. The same package reached through two paths
    is reported once per path.

    Args:
        current: Resolution of the project as locked today
        compatible: Resolution within declared requirements (None = unavailable)
        latest: Resolution with requirements removed (None = unavailable)
        root: Only walk from this workspace member
        default_root: Preferred root when ``root`` is not given
        depth: Maximum depth below the root (1 = direct dependencies only)
        packages: Only report these package names (the walk is unaffected)

    Raises:
        PackageNotFound: ``root`` is not a workspace member
    """
    wanted = set(packages)

    for root_node in select_roots(current, root, default_root):
        logger.debug(f"Comparing dependency tree of {root_node.name} {root_node.version}")
        records = _walk(
            current,
            compatible,
            latest,
            root_node,
            _match_root(compatible, root_node),
            _match_root(latest, root_node),
            None,
            (),
            depth,
            set(),
        )
        for record in records:
            if wanted and record.name not in wanted:
                continue
            yield record
