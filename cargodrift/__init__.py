"""cargo-drift - report outdated dependencies of a Cargo workspace."""

__version__ = "0.3.0"
