"""Typed view over a Cargo.toml manifest.

The model splits the keys cargo-drift needs to read or rewrite (package
identity, the dependency groupings, targets, workspace, per-target
overrides) from everything else, which is kept verbatim in ``extra`` so a
parse/serialize cycle never loses an attribute the tool does not know about.

Reading uses the standard library ``tomllib``; writing uses the ``toml``
package because ``tomllib`` is read-only.
"""

from __future__ import annotations

import copy
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import toml

from cargodrift.errors import InvalidPackageSpec, IoFailure, MalformedManifest
from cargodrift.utils.constants import DEPENDENCY_SECTIONS, LEGACY_SECTION_NAMES
from cargodrift.utils.logging import logger

# Dataclass attribute -> canonical Cargo.toml key
_GROUP_FIELDS = {
    "dependencies": "dependencies",
    "dev_dependencies": "dev-dependencies",
    "build_dependencies": "build-dependencies",
}
_CANONICAL_TO_FIELD = {key: attr for attr, key in _GROUP_FIELDS.items()}

_MODELLED_KEYS = {"package", "lib", "bin", "workspace", "target"}


@dataclass
class Manifest:
    """A parsed Cargo.toml.

    ``section_names`` remembers which spelling (``dev-dependencies`` or the
    legacy ``dev_dependencies``) a grouping was read with, so it is written
    back the same way. It and ``path`` do not take part in equality.
    """

    package: dict[str, Any] | None = None
    dependencies: dict[str, Any] | None = None
    dev_dependencies: dict[str, Any] | None = None
    build_dependencies: dict[str, Any] | None = None
    lib: dict[str, Any] | None = None
    bin: list[dict[str, Any]] | None = None
    workspace: dict[str, Any] | None = None
    target: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    section_names: dict[str, str] = field(default_factory=dict, compare=False)
    path: Path | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str | None:
        """Package name, None for a virtual manifest."""
        if self.package is None:
            return None
        return self.package.get("name")

    @property
    def is_virtual(self) -> bool:
        """True for a workspace root without a [package] table."""
        return self.package is None and self.workspace is not None

    def dependency_groups(self) -> list[tuple[str, dict[str, Any]]]:
        """Return (canonical section name, table) for every present top-level grouping."""
        groups = []
        for attr, key in _GROUP_FIELDS.items():
            table = getattr(self, attr)
            if table is not None:
                groups.append((key, table))
        return groups

    def copy(self) -> Manifest:
        """Deep copy, so a rewrite never touches the original."""
        return copy.deepcopy(self)

    def to_document(self) -> dict[str, Any]:
        """Build the plain dict that serializes back to Cargo.toml.

        Plain top-level values (``cargo-features``) come first; TOML does not
        allow a bare key after a table header at the same level.
        """
        doc: dict[str, Any] = {}
        tables: dict[str, Any] = {}

        for key, value in self.extra.items():
            if _is_table_like(value):
                tables[key] = value
            else:
                doc[key] = value

        if self.package is not None:
            doc["package"] = self.package
        if self.lib is not None:
            doc["lib"] = self.lib
        if self.bin is not None:
            doc["bin"] = self.bin

        for attr, canonical in _GROUP_FIELDS.items():
            table = getattr(self, attr)
            if table is not None:
                doc[self.section_names.get(attr, canonical)] = tables_last(table)

        if self.target is not None:
            doc["target"] = {
                name: _target_tables_last(overrides) for name, overrides in self.target.items()
            }
        if self.workspace is not None:
            workspace = dict(self.workspace)
            if isinstance(workspace.get("dependencies"), dict):
                workspace["dependencies"] = tables_last(workspace["dependencies"])
            doc["workspace"] = tables_last(workspace)

        doc.update(tables)
        return doc


def _is_table_like(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def tables_last(table: dict[str, Any]) -> dict[str, Any]:
    """Reorder a table so that non-table values precede table values.

    A dependency grouping mixing ``rand = "0.8"`` and ``serde = {...}`` is
    written as ``[dependencies]`` plain keys followed by
    ``[dependencies.serde]`` sub-tables. Emitting a plain key after a
    sub-table header would attach it to the sub-table on re-parse.
    Relative order inside each class is preserved.
    """
    plain = {k: v for k, v in table.items() if not _is_table_like(v)}
    nested = {k: v for k, v in table.items() if _is_table_like(v)}
    return {**plain, **nested}


def _target_tables_last(overrides: Any) -> Any:
    if not isinstance(overrides, dict):
        return overrides
    ordered = {}
    for key, value in overrides.items():
        if key in DEPENDENCY_SECTIONS or key in LEGACY_SECTION_NAMES:
            ordered[key] = tables_last(value) if isinstance(value, dict) else value
        else:
            ordered[key] = value
    return tables_last(ordered)


def _check_dependencies(table: Any, section: str, path: Path | None) -> dict[str, Any]:
    if not isinstance(table, dict):
        raise MalformedManifest(f"[{section}] must be a table", path)
    for dep_name, spec in table.items():
        if not isinstance(spec, (str, dict)):
            raise InvalidPackageSpec(dep_name, spec, path)
    return table


def _check_target(target: Any, path: Path | None) -> dict[str, Any]:
    if not isinstance(target, dict):
        raise MalformedManifest("[target] must be a table", path)
    for target_name, overrides in target.items():
        if not isinstance(overrides, dict):
            raise MalformedManifest(f"[target.{target_name}] must be a table", path)
        for key, table in overrides.items():
            if key in DEPENDENCY_SECTIONS or key in LEGACY_SECTION_NAMES:
                _check_dependencies(table, f"target.{target_name}.{key}", path)
    return target


def parse_manifest(text: str, path: Path | str | None = None) -> Manifest:
    """Parse Cargo.toml text into a Manifest.

    Args:
        text: TOML document
        path: Where it came from, used in error messages

    Returns:
        The parsed Manifest

    Raises:
        MalformedManifest: TOML syntax error, missing [package] name, or a
            modelled key with the wrong type
        InvalidPackageSpec: A dependency that is neither string nor table
    """
    source = Path(path) if path is not None else None

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise MalformedManifest(str(e), source) from e

    manifest = Manifest(path=source)

    for key, value in data.items():
        canonical = LEGACY_SECTION_NAMES.get(key, key)
        if canonical in _CANONICAL_TO_FIELD:
            attr = _CANONICAL_TO_FIELD[canonical]
            if getattr(manifest, attr) is not None:
                raise MalformedManifest(
                    f"both [{canonical}] and its legacy spelling [{key}] are present", source
                )
            setattr(manifest, attr, _check_dependencies(value, key, source))
            if key != canonical:
                manifest.section_names[attr] = key
        elif key in _MODELLED_KEYS:
            setattr(manifest, key, value)
        else:
            manifest.extra[key] = value

    if manifest.package is not None and not isinstance(manifest.package, dict):
        raise MalformedManifest("[package] must be a table", source)
    if manifest.lib is not None and not isinstance(manifest.lib, dict):
        raise MalformedManifest("[lib] must be a table", source)
    if manifest.bin is not None and not (
        isinstance(manifest.bin, list) and all(isinstance(b, dict) for b in manifest.bin)
    ):
        raise MalformedManifest("[[bin]] must be an array of tables", source)
    if manifest.workspace is not None:
        if not isinstance(manifest.workspace, dict):
            raise MalformedManifest("[workspace] must be a table", source)
        if "dependencies" in manifest.workspace:
            _check_dependencies(manifest.workspace["dependencies"], "workspace.dependencies", source)
    if manifest.target is not None:
        _check_target(manifest.target, source)

    if manifest.package is None:
        if manifest.workspace is None:
            raise MalformedManifest("missing [package] table", source)
        logger.debug(f"{source or 'manifest'} is a virtual workspace manifest")
    elif not isinstance(manifest.package.get("name"), str):
        raise MalformedManifest("[package] has no 'name'", source)

    return manifest


def load_manifest(path: Path | str) -> Manifest:
    """Read and parse a Cargo.toml from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Could not read manifest ({e.strerror})", path) from e
    return parse_manifest(text, path)


def dump_manifest(manifest: Manifest) -> str:
    """Serialize a Manifest back to TOML text."""
    return toml.dumps(manifest.to_document())


def write_manifest(manifest: Manifest, path: Path | str) -> None:
    """Serialize a Manifest to disk, replacing whatever is there."""
    path = Path(path)
    try:
        path.write_text(dump_manifest(manifest), encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Could not write manifest ({e.strerror})", path) from e
