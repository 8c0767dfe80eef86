"""CLI interface for Rollview.

Command-line tool for serving and inspecting hierarchical rollup tables.
"""

import json
import logging
import sys
from pathlib import Path

import click

from rollview.config import Config
from rollview.core.columns import (
    NAME_COLUMN,
    SORTABLE_COLUMNS,
    SPARKLINE_COLUMN,
    Column,
    ColumnGroup,
    visible_columns,
)
from rollview.core.expansion import ExpansionController
from rollview.core.flatten import flatten
from rollview.core.rows import DisplayRow, RowFormatError
from rollview.core.sorting import default_direction, sort_with_hierarchy
from rollview.core.source import RowSource
from rollview.core.tree import TreeIndex
from rollview.core.types import RowId, SortDirection

INDENT = "  "


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose (debug) logging",
)
def cli(verbose: bool) -> None:
    """Rollview - hierarchical rollup tables for delivery metrics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover rollview.toml)",
)
@click.option(
    "--rows-file",
    "-r",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Row snapshot JSON file (overrides config)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
def serve(
    config_path: Path | None,
    rows_file: Path | None,
    host: str | None,
    port: int | None,
) -> None:
    """Start the table API server."""
    from rollview.server import run_server

    try:
        config = Config.load(config_path).with_overrides(
            host=host,
            port=port,
            rows_file=rows_file,
        )
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Rows file: {config.data.rows_file}")
    click.echo(f"Session idle timeout: {config.session.idle_timeout:g}s")

    run_server(config)


@cli.command()
@click.argument("rows_file", type=click.Path(exists=True, path_type=Path, dir_okay=False))
@click.option(
    "--sort",
    "-s",
    "sort_column",
    type=click.Choice(sorted(SORTABLE_COLUMNS)),
    default=None,
    help="Column to sort each sibling group by",
)
@click.option(
    "--desc/--asc",
    "descending",
    default=None,
    help="Sort direction (default: asc for name, desc for metrics)",
)
@click.option(
    "--expand",
    "-e",
    "expand_ids",
    multiple=True,
    help="Expand a row (and reveal its ancestors); repeatable",
)
@click.option(
    "--expand-all",
    is_flag=True,
    help="Expand every row",
)
@click.option(
    "--group",
    "-g",
    "groups",
    type=click.Choice([g.value for g in ColumnGroup]),
    multiple=True,
    help="Column group to show; repeatable (default: all)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the visible rows as JSON",
)
def show(
    rows_file: Path,
    sort_column: str | None,
    descending: bool | None,
    expand_ids: tuple[str, ...],
    expand_all: bool,
    groups: tuple[str, ...],
    as_json: bool,
) -> None:
    """Print the flattened table for a row snapshot."""
    if descending is not None and sort_column is None:
        raise click.UsageError("--desc/--asc requires --sort")

    try:
        snapshot = RowSource(rows_file).load()
    except RowFormatError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    rows = list(snapshot.rows)
    index = TreeIndex(rows)
    expansion = ExpansionController(index)
    if expand_all:
        expansion.expand_all()
    for row_id in expand_ids:
        if RowId(row_id) not in index:
            click.echo(click.style(f"Warning: unknown row {row_id}", fg="yellow"), err=True)
            continue
        expansion.reveal(RowId(row_id))
        if not expansion.is_expanded(RowId(row_id)):
            expansion.toggle(RowId(row_id))

    direction: SortDirection | None = None
    if sort_column is not None:
        if descending is None:
            direction = default_direction(sort_column)
        else:
            direction = "desc" if descending else "asc"

    sorted_rows = sort_with_hierarchy(rows, sort_column, direction)
    visible = flatten(sorted_rows, expansion.expanded)

    if as_json:
        click.echo(json.dumps([r.to_dict(snapshot.series(r.id)) for r in visible], indent=2))
        return

    columns = [
        c
        for c in visible_columns(ColumnGroup(g) for g in groups or list(ColumnGroup))
        if c.id != SPARKLINE_COLUMN
    ]
    click.echo(_format_table(visible, columns))
    click.echo(f"\n{len(visible)} of {len(rows)} rows shown")


def _format_table(rows: list[DisplayRow], columns: list[Column]) -> str:
    """Render display rows as a plain-text table with indented names."""
    header = [c.label for c in columns]
    body = [[_format_cell(r, c) for c in columns] for r in rows]
    widths = [
        max([len(header[i])] + [len(line[i]) for line in body])
        for i in range(len(columns))
    ]

    def fmt(cells: list[str]) -> str:
        parts = [
            cell.ljust(widths[i]) if columns[i].id == NAME_COLUMN else cell.rjust(widths[i])
            for i, cell in enumerate(cells)
        ]
        return "  ".join(parts).rstrip()

    lines = [fmt(header), fmt(["-" * w for w in widths])]
    lines.extend(fmt(line) for line in body)
    return "\n".join(lines)


def _format_cell(display_row: DisplayRow, column: Column) -> str:
    row = display_row.row
    if column.id == NAME_COLUMN:
        marker = " "
        if display_row.has_children:
            marker = "-" if display_row.is_expanded else "+"
        return f"{INDENT * display_row.depth}{marker} {row.name}"

    value = row.metric(column.id)
    if value is None:
        return "-"
    if column.id == "revenue_change":
        return f"{value:+.1f}%"
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"
