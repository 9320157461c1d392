"""Resolution drivers - the boundary between cargo-drift and a package manager.

Provides a registry of driver implementations:
- Cargo (Cargo.toml / Cargo.lock) via the cargo command-line tool

Usage:
    from cargodrift.resolvers import get_driver

    driver = get_driver("cargo")
    layout = driver.locate_workspace(Path("Cargo.toml"))
"""

from __future__ import annotations

from .base import BaseResolutionDriver

_REGISTRY: dict[str, type[BaseResolutionDriver]] | None = None


def _init_registry() -> dict[str, type[BaseResolutionDriver]]:
    """Initialize the registry with all driver implementations."""
    global _REGISTRY
    if _REGISTRY is not None:
        return _REGISTRY

    from .cargo import CargoResolutionDriver

    _REGISTRY = {
        "cargo": CargoResolutionDriver,
    }
    return _REGISTRY


def get_driver(driver_name: str) -> BaseResolutionDriver | None:
    """Get a driver instance by name.

    Args:
        driver_name: The driver identifier (e.g., 'cargo')

    Returns:
        Driver instance or None if not found
    """
    registry = _init_registry()
    cls = registry.get(driver_name.lower())
    return cls() if cls else None


__all__ = [
    "get_driver",
    "BaseResolutionDriver",
]
