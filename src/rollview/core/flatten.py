"""Flatten a sorted row tree into the rows the table displays."""

from collections.abc import Container

from rollview.core.rows import DisplayRow, Row
from rollview.core.tree import ROOT, build_index
from rollview.core.types import RowId


def flatten(sorted_rows: list[Row], expanded: Container[RowId]) -> list[DisplayRow]:
    """Build the visible display rows.

    Walks the tree in pre-order from each top-level row at depth 0 and only
    descends into rows whose id is expanded. Children come from an index over
    the sorted input, so sibling order follows the active sort.

    Args:
        sorted_rows: Rows as returned by sort_with_hierarchy()
        expanded: Ids of rows whose children are visible

    Returns:
        Visible rows with their nesting depth
    """
    index = build_index(sorted_rows)
    result: list[DisplayRow] = []
    emitted: set[RowId] = set()

    stack: list[tuple[Row, int]] = [(row, 0) for row in reversed(index.get(ROOT, []))]
    while stack:
        row, depth = stack.pop()
        if row.id in emitted:
            continue
        emitted.add(row.id)

        children = index.get(row.id, [])
        is_expanded = row.id in expanded
        result.append(
            DisplayRow(
                row=row,
                depth=depth,
                has_children=bool(children),
                is_expanded=is_expanded,
            ),
        )
        if is_expanded:
            stack.extend((child, depth + 1) for child in reversed(children))
    return result
