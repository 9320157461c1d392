"""Exception taxonomy for cargo-drift.

Every failure is fatal for the run and surfaces immediately; nothing is
retried. Each exception carries the path or package name needed to
diagnose it.
"""

from pathlib import Path


class CargoDriftError(Exception):
    """Base exception for all cargo-drift errors."""


class MalformedManifest(CargoDriftError):
    """Raised when a Cargo.toml cannot be parsed or lacks required fields.

    Attributes:
        path: Manifest that failed, if known
        reason: What was wrong with it
    """

    def __init__(self, reason: str, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" in {self.path}" if self.path is not None else ""
        super().__init__(f"Malformed manifest{where}: {reason}")


class InvalidPackageSpec(MalformedManifest):
    """Raised when a dependency specification is neither a string nor a table."""

    def __init__(self, dependency: str, value: object, path: Path | str | None = None):
        self.dependency = dependency
        self.value = value
        super().__init__(
            f"dependency '{dependency}' is neither a version string nor a table "
            f"(got {type(value).__name__})",
            path,
        )


class IoFailure(CargoDriftError):
    """Raised when materializing a scratch copy of the workspace fails."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message if path is None else f"{message}: {path}")


class UpdateFailed(CargoDriftError):
    """Raised when an external resolver invocation fails or exits non-zero.

    Attributes:
        command: The argv that was run
        diagnostic: Captured stderr (or the OS error text)
        returncode: Process exit status, None if it never started
    """

    def __init__(self, command: list[str], diagnostic: str, returncode: int | None = None):
        self.command = list(command)
        self.diagnostic = diagnostic.strip()
        self.returncode = returncode
        status = "could not be started" if returncode is None else f"exited with {returncode}"
        message = f"'{' '.join(self.command)}' {status}"
        if self.diagnostic:
            message += f"\n{self.diagnostic}"
        super().__init__(message)


class PackageNotFound(CargoDriftError):
    """Raised when a requested root package is not a workspace member."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Package '{name}' is not a member of the workspace "
            f"(members: {', '.join(available) or 'none'})"
        )
