"""Rendering of container records as a table, a JSON document or bare IDs."""

from __future__ import annotations

import io
import json
import sys
from collections.abc import Sequence
from enum import StrEnum
from typing import TextIO

from rich.cells import cell_len
from rich.console import Console
from rich.table import Table
from rich.text import Text

from runstate.constants import TABLE_HEADERS
from runstate.exceptions import InvalidFormatError
from runstate.schemas.containers import ContainerRecord


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"


FORMAT_OPTIONS = "table or json"

_COLUMN_PADDING = 3
# minimum column width including padding
_MIN_COLUMN_WIDTH = 12


def parse_output_format(value: str | None) -> OutputFormat:
    """Map a requested format to an OutputFormat; an empty value means table."""
    if not value:
        return OutputFormat.TABLE
    try:
        return OutputFormat(value)
    except ValueError as e:
        raise InvalidFormatError(value) from e


def _table_row(record: ContainerRecord) -> tuple[str, ...]:
    return (
        record.id,
        str(record.init_process_pid),
        record.status,
        record.bundle,
        record.created.rfc3339_nano(),
    )


def _render_quiet(records: Sequence[ContainerRecord], sink: TextIO) -> None:
    for record in records:
        sink.write(f"{record.id}\n")


def _render_json(records: Sequence[ContainerRecord], sink: TextIO) -> None:
    payload = [record.to_json_dict() for record in records]
    json.dump(payload, sink, separators=(",", ":"), ensure_ascii=False)
    sink.write("\n")


def _render_table(records: Sequence[ContainerRecord], sink: TextIO) -> None:
    rows = [_table_row(record) for record in records]

    table = Table(
        box=None,
        show_edge=False,
        pad_edge=False,
        padding=(0, _COLUMN_PADDING, 0, 0),
        highlight=False,
    )
    for header in TABLE_HEADERS:
        table.add_column(header, min_width=_MIN_COLUMN_WIDTH - _COLUMN_PADDING, no_wrap=True)
    for row in rows:
        table.add_row(*(Text(cell) for cell in row))

    # wide enough that rich never wraps or truncates a cell
    width = sum(
        max(_MIN_COLUMN_WIDTH, *(cell_len(cell) + _COLUMN_PADDING for cell in column))
        for column in zip(TABLE_HEADERS, *rows)
    )
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=width + 1,
        color_system=None,
        force_terminal=False,
        force_jupyter=False,
        highlight=False,
        markup=False,
        emoji=False,
    )
    console.print(table)

    for line in buffer.getvalue().splitlines():
        sink.write(f"{line.rstrip()}\n")


def render_records(
    records: Sequence[ContainerRecord],
    output_format: str | None = OutputFormat.TABLE,
    *,
    quiet: bool = False,
    sink: TextIO | None = None,
) -> None:
    """Write records to sink (stdout by default).

    The format is validated before anything is written, also in quiet mode.

    Raises:
        InvalidFormatError: If output_format is neither table nor json
    """
    selected_format = parse_output_format(output_format)
    out = sink if sink is not None else sys.stdout

    if quiet:
        _render_quiet(records, out)
    elif selected_format == OutputFormat.JSON:
        _render_json(records, out)
    else:
        _render_table(records, out)


def render_record(record: ContainerRecord, *, sink: TextIO | None = None) -> None:
    """Write a single record as an indented JSON object."""
    out = sink if sink is not None else sys.stdout
    json.dump(record.to_json_dict(), out, indent=2, ensure_ascii=False)
    out.write("\n")
