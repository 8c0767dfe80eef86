"""Hierarchy-preserving sort and the header-click sort cycle.

Sorting only ever reorders rows within their sibling group, so a child never
moves into another parent's section of the table.
"""

import unicodedata
from collections.abc import Callable
from dataclasses import dataclass

from rollview.core.columns import NAME_COLUMN, is_sortable
from rollview.core.rows import Row
from rollview.core.tree import ROOT, build_index
from rollview.core.types import RowId, SortDirection

SortKey = Callable[[Row], object]

# Sorts after every "n" continuation and before "o"
ENYE_KEY = "n\uffff"


@dataclass(frozen=True)
class SortState:
    """Active sort column and direction; both None means input order."""

    column: str | None = None
    direction: SortDirection | None = None

    @property
    def is_sorted(self) -> bool:
        return self.column is not None and self.direction is not None

    def to_dict(self) -> dict[str, str | None]:
        return {"column": self.column, "direction": self.direction}


UNSORTED = SortState()


def default_direction(column: str) -> SortDirection:
    """Text sorts A→Z first, numeric metrics highest first."""
    return "asc" if column == NAME_COLUMN else "desc"


def next_sort_state(state: SortState, clicked: str) -> SortState:
    """Apply a header click to the current sort state.

    Cycle per column: default direction → opposite (desc → asc) → unsorted.
    Clicking a different column always starts over at its default direction.

    Raises:
        ValueError: If the column is not sortable
    """
    if not is_sortable(clicked):
        raise ValueError(f"Column is not sortable: {clicked}")

    if state.column != clicked or state.direction is None:
        return SortState(clicked, default_direction(clicked))
    if state.direction == "desc":
        return SortState(clicked, "asc")
    return UNSORTED


def name_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive, accent-folding collation key for display names.

    Accented letters sort with their base letter ("Ávila" next to "avenida"),
    except ñ, which is its own letter between n and o. The case-folded
    original breaks ties between otherwise equal bases.
    """
    folded = name.casefold()
    composed = unicodedata.normalize("NFC", folded).replace("ñ", ENYE_KEY)
    decomposed = unicodedata.normalize("NFKD", composed)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base, folded)


def sort_key_for(column: str) -> SortKey:
    """Build the sort key for a column.

    Raises:
        ValueError: If the column is not sortable
    """
    if not is_sortable(column):
        raise ValueError(f"Column is not sortable: {column}")
    if column == NAME_COLUMN:
        return lambda row: name_sort_key(row.name)

    def metric_key(row: Row) -> float:
        value = row.metric(column)
        return 0.0 if value is None else value

    return metric_key


def sort_with_hierarchy(
    rows: list[Row],
    column: str | None,
    direction: SortDirection | None,
) -> list[Row]:
    """Sort every sibling group by a column while keeping the tree intact.

    Args:
        rows: Flat, unsorted row collection
        column: Column to sort by, None for input order
        direction: "asc" or "desc"

    Returns:
        Rows in pre-order with each sibling group sorted; the input list
        itself when no sort is active
    """
    if column is None or direction is None:
        return rows

    key = sort_key_for(column)
    children_by_parent = build_index(rows)
    for siblings in children_by_parent.values():
        # list.sort is stable, and reverse=True keeps ties in input order
        siblings.sort(key=key, reverse=direction == "desc")

    sorted_rows: list[Row] = []
    seen: set[RowId] = set()
    stack = list(reversed(children_by_parent.get(ROOT, [])))
    while stack:
        row = stack.pop()
        if row.id in seen:
            continue
        seen.add(row.id)
        sorted_rows.append(row)
        stack.extend(reversed(children_by_parent.get(row.id, [])))

    return sorted_rows
