"""cargo-drift utilities package."""

from .constants import (
    DEPENDENCY_SECTIONS,
    LOCK_FILE,
    MANIFEST_FILE,
    WILDCARD_VERSION,
)
from .error_handler import FatalError, handle_exceptions
from .exit_codes import ExitCodes
from .logging import logger, set_verbosity

__all__ = [
    "DEPENDENCY_SECTIONS",
    "LOCK_FILE",
    "MANIFEST_FILE",
    "WILDCARD_VERSION",
    "FatalError",
    "handle_exceptions",
    "ExitCodes",
    "logger",
    "set_verbosity",
]
