"""Centralized logging configuration using Loguru.

Standard output is reserved for the drift report, so every log handler
writes to stderr (or to a file).

Usage:
    from cargodrift.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows with -vv or CARGO_DRIFT_LOG_LEVEL=DEBUG

Environment Variables:
    CARGO_DRIFT_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: WARNING)
    CARGO_DRIFT_LOG_JSON: 0|1 (default: 0, human-readable)
    CARGO_DRIFT_LOG_FILE: path to an NDJSON log file (optional)
"""

import json
import os
import sys

from loguru import logger

from .constants import DEFAULT_LOG_LEVEL, ENV_LOG_FILE, ENV_LOG_JSON, ENV_LOG_LEVEL

logger.remove()

_log_level = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
_json_mode = os.environ.get(ENV_LOG_JSON, "0") == "1"
_log_file = os.environ.get(ENV_LOG_FILE)

_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")

_console_handler_id: int | None = None


def _to_ndjson(message) -> str:
    """Render a loguru message as a single JSON line."""
    record = message.record
    entry = {
        "level": record["level"].name,
        "time": record["time"].isoformat(),
        "msg": record["message"],
        "pid": record["process"].id,
        "module": record["name"],
    }
    for key, value in record["extra"].items():
        entry[key] = value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
    if record["exception"]:
        exc = record["exception"]
        entry["err"] = {
            "type": exc.type.__name__ if exc.type else "Error",
            "message": str(exc.value) if exc.value else "",
        }
    return json.dumps(entry)


def _stderr_json_sink(message) -> None:
    # Never call logger.* inside a sink
    sys.stderr.write(_to_ndjson(message) + "\n")
    sys.stderr.flush()


def _stderr_sink(message) -> None:
    # Looked up per message: sys.stderr may be swapped after the handler is added
    sys.stderr.write(message)
    sys.stderr.flush()


def _file_json_sink(message) -> None:
    with open(_log_file, "a", encoding="utf-8") as f:
        f.write(_to_ndjson(message) + "\n")


def _add_console_handler(level: str) -> int:
    if _json_mode:
        return logger.add(_stderr_json_sink, level=level, colorize=False)
    return logger.add(
        _stderr_sink,
        level=level,
        format=_human_format,
        colorize=sys.stderr.isatty(),  # Colors if TTY, plain if piped
    )


_console_handler_id = _add_console_handler(_log_level)

if _log_file:
    logger.add(_file_json_sink, level="DEBUG")


def set_verbosity(verbose: int = 0, quiet: bool = False) -> str:
    """Reconfigure the console handler from CLI verbosity flags.

    -q wins over -v. Without either flag the environment level is kept.

    Args:
        verbose: Number of -v occurrences (1 = INFO, 2+ = DEBUG)
        quiet: Only show errors

    Returns:
        The level now in effect
    """
    global _console_handler_id

    if quiet:
        level = "ERROR"
    elif verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = _log_level

    if _console_handler_id is not None:
        logger.remove(_console_handler_id)
    _console_handler_id = _add_console_handler(level)
    return level


__all__ = [
    "logger",
    "set_verbosity",
]
