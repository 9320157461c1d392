"""Abstract base class for resolution drivers.

A driver is the only place cargo-drift talks to a package manager. The
differ only ever sees ResolvedGraph objects, so a driver can be an external
tool, an in-process resolver or a test double.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from cargodrift.structures import FeatureSelection, ResolvedGraph, WorkspaceLayout


class BaseResolutionDriver(ABC):
    """Abstract base class for all resolution drivers.

    Implementations must provide:
    - driver_name: Identifier for this driver (e.g., 'cargo')
    - manifest_name / lock_name: File names copied into scratch projects
    - locate_workspace(): Find the members of a workspace without resolving
    - resolve(): Produce the resolved graph of a project
    - refresh_lock(): Re-derive the lock file from (rewritten) manifests
    """

    @property
    @abstractmethod
    def driver_name(self) -> str:
        """Return driver identifier (e.g., 'cargo')."""
        ...

    @property
    @abstractmethod
    def manifest_name(self) -> str:
        """Return the manifest file name (e.g., 'Cargo.toml')."""
        ...

    @property
    @abstractmethod
    def lock_name(self) -> str:
        """Return the lock file name (e.g., 'Cargo.lock')."""
        ...

    @abstractmethod
    def locate_workspace(self, manifest_path: Path) -> WorkspaceLayout:
        """Describe the workspace that owns ``manifest_path``.

        Must not write anything into the project.

        Raises:
            UpdateFailed: The external tool failed
        """
        ...

    @abstractmethod
    def resolve(self, manifest_path: Path, features: FeatureSelection) -> ResolvedGraph:
        """Resolve the project rooted at ``manifest_path``.

        Raises:
            UpdateFailed: Resolution failed
        """
        ...

    @abstractmethod
    def refresh_lock(self, manifest_path: Path) -> None:
        """Update the lock state of a materialized project in place.

        Raises:
            UpdateFailed: The update command failed, carrying its diagnostics
        """
        ...

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<{self.__class__.__name__} driver_name={self.driver_name!r}>"
