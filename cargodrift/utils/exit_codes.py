"""Centralized exit codes for the cargo-drift CLI."""


class ExitCodes:
    """Standard exit codes for cargo-drift commands."""

    SUCCESS = 0

    # Matches the code Cargo itself uses for fatal errors, so a wrapper
    # script cannot confuse it with a user-chosen --exit-code value.
    FATAL_ERROR = 101

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get human-readable description for an exit code."""
        descriptions = {
            cls.SUCCESS: "Success - No outdated dependencies or drift signal disabled",
            cls.FATAL_ERROR: "Fatal error - manifest, filesystem or resolver failure",
        }
        return descriptions.get(code, f"Outdated dependencies found (exit code {code})")

    @classmethod
    def is_valid_drift_code(cls, code: int) -> bool:
        """Check whether a user-supplied drift exit code is usable."""
        return 0 <= code <= 255 and code != cls.FATAL_ERROR
