"""Central UI handler for cargo-drift.

Single source of truth for Rich console styling. The report goes to the
console returned by ``get_console``; log output goes to stderr through
loguru and never mixes with it.

Usage:
    from cargodrift.ui import get_console

    console = get_console("auto")
    console.print("[success]All dependencies are up to date[/success]")
"""

from rich.console import Console
from rich.theme import Theme

DRIFT_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "compat": "green",
    "latest": "red",
    "removed": "bold red",
    "unchanged": "dim white",
    "dim": "dim white",
})

COLOR_MODES = ("auto", "always", "never")


def get_console(color: str = "auto", file=None) -> Console:
    """Build a themed console for the given color mode.

    Args:
        color: "auto" (color when writing to a TTY), "always" or "never"
        file: Output stream; None follows sys.stdout at print time
    """
    if color not in COLOR_MODES:
        raise ValueError(f"Unknown color mode: {color!r}")

    if color == "always":
        return Console(theme=DRIFT_THEME, file=file, force_terminal=True)
    if color == "never":
        return Console(theme=DRIFT_THEME, file=file, color_system=None, highlight=False)
    return Console(theme=DRIFT_THEME, file=file)
