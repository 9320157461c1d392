"""CLI commands for cargo-drift."""
