"""Centralized error handler for cargo-drift commands."""

from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from cargodrift.errors import CargoDriftError
from cargodrift.utils.logging import logger

from .exit_codes import ExitCodes


class FatalError(click.ClickException):
    """ClickException that exits with the fatal-error code instead of 1."""

    exit_code = ExitCodes.FATAL_ERROR


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that turns any failure into a logged FatalError.

    Click's own exceptions (usage errors, explicit exits) pass through
    untouched. The run never writes into the user's project, so the
    traceback goes to the log (visible with -vv) rather than to a file.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except CargoDriftError as e:
            logger.opt(exception=True).debug("Command '{cmd}' failed", cmd=func.__name__)
            raise FatalError(str(e)) from e
        except Exception as e:
            logger.opt(exception=True).error(
                "Command '{cmd}' failed: {err}",
                cmd=func.__name__,
                err=str(e),
            )
            raise FatalError(f"{type(e).__name__}: {e}") from e

    return wrapper
