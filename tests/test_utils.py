"""Tests for exit codes, the error handler and logging verbosity."""

import click
import pytest

from cargodrift.errors import UpdateFailed
from cargodrift.utils import ExitCodes, FatalError, handle_exceptions, set_verbosity


@pytest.mark.parametrize("code,valid", [(0, True), (1, True), (255, True), (101, False), (256, False), (-1, False)])
def test_drift_exit_code_validation(code, valid):
    assert ExitCodes.is_valid_drift_code(code) is valid


def test_exit_code_descriptions():
    assert "Success" in ExitCodes.get_description(ExitCodes.SUCCESS)
    assert "Fatal" in ExitCodes.get_description(ExitCodes.FATAL_ERROR)
    assert "exit code 3" in ExitCodes.get_description(3)


def test_drift_error_becomes_fatal():
    @handle_exceptions
    def failing():
        raise UpdateFailed(["cargo", "update"], "error: boom", 101)

    with pytest.raises(FatalError) as exc_info:
        failing()
    assert exc_info.value.exit_code == 101
    assert "cargo update" in exc_info.value.message


def test_unexpected_error_becomes_fatal():
    @handle_exceptions
    def failing():
        raise KeyError("missing")

    with pytest.raises(FatalError, match="KeyError"):
        failing()


def test_click_errors_pass_through():
    @handle_exceptions
    def failing():
        raise click.UsageError("bad flags")

    with pytest.raises(click.UsageError):
        failing()


@pytest.mark.parametrize(
    "verbose,quiet,expected",
    [(1, False, "INFO"), (2, False, "DEBUG"), (3, False, "DEBUG"), (2, True, "ERROR")],
)
def test_set_verbosity(verbose, quiet, expected):
    try:
        assert set_verbosity(verbose, quiet) == expected
    finally:
        set_verbosity()
