"""Rendering of drift records and the resulting exit status."""

from __future__ import annotations

import json
from collections.abc import Sequence

from rich.console import Console
from rich.measure import Measurement
from rich.table import Table

from cargodrift.structures import DriftRecord
from cargodrift.utils.constants import REMOVED_MARKER, ROOT_KIND_MARKER, UNCHANGED_MARKER
from cargodrift.utils.exit_codes import ExitCodes

UP_TO_DATE_MESSAGE = "All dependencies are up to date, yay!"

# Upper bound used when measuring the table for non-terminal output
MAX_REPORT_WIDTH = 10_000


def display_name(record: DriftRecord) -> str:
    """Direct dependencies show their name, transitive ones ``parent->name``."""
    if record.depth >= 2:
        return f"{record.parents[-1]}->{record.name}"
    return record.name


def _branch_text(version: str | None, current: str) -> str:
    if version is None:
        return REMOVED_MARKER
    if version == current:
        return UNCHANGED_MARKER
    return version


def _branch_cell(version: str | None, current: str, style: str) -> str:
    text = _branch_text(version, current)
    if version is None:
        return f"[removed]{text}[/removed]"
    if version == current:
        return f"[unchanged]{text}[/unchanged]"
    return f"[{style}]{text}[/{style}]"


def _fixed_width(header: str, values: Sequence[str]) -> int:
    return max([len(header), *(len(value) for value in values)])


def build_table(records: Sequence[DriftRecord]) -> Table:
    """Build the aligned report table, one row per record in traversal order.

    Name and the three version columns never shrink below their content;
    when space runs out only Kind and Platform wrap.
    """
    names = [display_name(record) for record in records]
    table = Table(box=None, padding=(0, 2, 0, 0), header_style="bold")
    table.add_column("Name", no_wrap=True, min_width=_fixed_width("Name", names))
    table.add_column(
        "Project", no_wrap=True, min_width=_fixed_width("Project", [r.current for r in records])
    )
    table.add_column(
        "Compat",
        no_wrap=True,
        min_width=_fixed_width("Compat", [_branch_text(r.compatible, r.current) for r in records]),
    )
    table.add_column(
        "Latest",
        no_wrap=True,
        min_width=_fixed_width("Latest", [_branch_text(r.latest, r.current) for r in records]),
    )
    table.add_column("Kind", overflow="fold")
    table.add_column("Platform", overflow="fold")

    for name, record in zip(names, records):
        table.add_row(
            name,
            record.current,
            _branch_cell(record.compatible, record.current, "compat"),
            _branch_cell(record.latest, record.current, "latest"),
            record.kind or ROOT_KIND_MARKER,
            record.platform or ROOT_KIND_MARKER,
        )
    return table


def _fit_to_table(console: Console, table: Table) -> None:
    """Widen a non-terminal console so piped reports are never cut short."""
    if console.is_terminal:
        return
    needed = Measurement.get(console, console.options.update_width(MAX_REPORT_WIDTH), table).maximum
    if needed > console.width:
        console.width = needed


def render_table(records: Sequence[DriftRecord], console: Console) -> None:
    """Print the drift table, or a one-line all-clear when there is nothing to show."""
    if not records:
        console.print(UP_TO_DATE_MESSAGE)
        return
    table = build_table(records)
    _fit_to_table(console, table)
    console.print(table)


def render_json(records: Sequence[DriftRecord], console: Console) -> None:
    """Print the records as a JSON array."""
    rows = []
    for record in records:
        row = record.to_dict()
        row["display_name"] = display_name(record)
        rows.append(row)
    console.print(json.dumps(rows, indent=2), markup=False, highlight=False, soft_wrap=True)


def render(records: Sequence[DriftRecord], console: Console, output_format: str = "table") -> None:
    """Dispatch to the renderer for ``output_format`` ("table" or "json")."""
    if output_format == "json":
        render_json(records, console)
    elif output_format == "table":
        render_table(records, console)
    else:
        raise ValueError(f"Unknown output format: {output_format!r}")


def determine_exit_code(records: Sequence[DriftRecord], drift_exit_code: int) -> int:
    """Exit code for a finished run: ``drift_exit_code`` if anything drifted, else 0."""
    if any(record.has_drift for record in records):
        return drift_exit_code
    return ExitCodes.SUCCESS
