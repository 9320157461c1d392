"""Centralized constants for cargo-drift.

Single source of truth for file names, placeholder targets and the
environment variables the tool reads.
"""

# ============================================================================
# CARGO FILES
# ============================================================================

MANIFEST_FILE = "Cargo.toml"
LOCK_FILE = "Cargo.lock"

# Placeholder targets written into materialized manifests. Only manifests and
# lock files are copied, so the resolver must not look for real sources.
PLACEHOLDER_BIN_NAME = "test"
PLACEHOLDER_BIN_PATH = "test.rs"
PLACEHOLDER_LIB_PATH = "test_lib.rs"

# Version requirement that matches every published version
WILDCARD_VERSION = "*"

# Dependency groupings as spelled in Cargo.toml, with the legacy underscore
# spellings Cargo still accepts
DEPENDENCY_SECTIONS = ("dependencies", "dev-dependencies", "build-dependencies")
LEGACY_SECTION_NAMES = {
    "dev_dependencies": "dev-dependencies",
    "build_dependencies": "build-dependencies",
}

# ============================================================================
# SCRATCH SPACE
# ============================================================================

TEMP_DIR_PREFIX = "cargo-drift-"

# ============================================================================
# REPORT MARKERS
# ============================================================================

UNCHANGED_MARKER = "---"
REMOVED_MARKER = "Removed"
ROOT_KIND_MARKER = "---"

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

# Cargo exports $CARGO to the subcommands it launches
ENV_CARGO = "CARGO"
ENV_CARGO_BINARY = "CARGO_DRIFT_CARGO"
ENV_LOG_LEVEL = "CARGO_DRIFT_LOG_LEVEL"
ENV_LOG_JSON = "CARGO_DRIFT_LOG_JSON"
ENV_LOG_FILE = "CARGO_DRIFT_LOG_FILE"

DEFAULT_CARGO_BINARY = "cargo"
DEFAULT_LOG_LEVEL = "WARNING"
