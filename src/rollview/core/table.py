"""Rollup table view: rows, interaction state and persistence wired together.

A RollupTable owns one user's view of a row snapshot. Every interaction
updates the in-memory state first and then writes the affected facet to the
session store; the in-memory state stays authoritative if a write fails.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from rollview.core.columns import Column, ColumnGroup, ColumnGroupSet, visible_columns
from rollview.core.expansion import ExpansionController
from rollview.core.flatten import flatten
from rollview.core.rows import DisplayRow, Row
from rollview.core.session import SessionRegistry, SessionStore
from rollview.core.sorting import SortState, next_sort_state, sort_with_hierarchy
from rollview.core.source import RowSource, Snapshot, SparklineProvider
from rollview.core.tree import TreeIndex
from rollview.core.types import RowId
from rollview.core.view_state import (
    ViewState,
    load_view_state,
    save_expanded,
    save_groups,
    save_scroll,
    save_sort,
)

logger = logging.getLogger(__name__)

RowClickHandler = Callable[[Row], None]


class RollupTable:
    """Hierarchical table view with sort, expand/collapse and column groups."""

    def __init__(
        self,
        rows: Iterable[Row],
        store: SessionStore | None = None,
        *,
        sparklines: SparklineProvider | None = None,
        on_row_click: RowClickHandler | None = None,
    ) -> None:
        """Initialize the table, restoring view state from the store.

        Args:
            rows: Flat row collection
            store: Session store to restore from and persist to, None to
                keep state in memory only
            sparklines: Provider for per-row trend series
            on_row_click: Called with the full row when a row is clicked
        """
        self._store = store
        self._sparklines = sparklines
        self._on_row_click = on_row_click

        state = load_view_state(store) if store is not None else ViewState()
        self._rows = list(rows)
        self._index = TreeIndex(self._rows)
        self._expansion = ExpansionController(self._index, state.expanded)
        self._sort = state.sort
        self._groups = ColumnGroupSet(state.groups)
        self._scroll_x = state.scroll_x

        self._sorted: list[Row] | None = None
        self._visible: list[DisplayRow] | None = None

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    @property
    def index(self) -> TreeIndex:
        return self._index

    @property
    def sparklines(self) -> SparklineProvider | None:
        return self._sparklines

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def expanded(self) -> frozenset[RowId]:
        return self._expansion.expanded

    @property
    def groups(self) -> frozenset[ColumnGroup]:
        return self._groups.snapshot()

    @property
    def scroll_x(self) -> int:
        return self._scroll_x

    @property
    def view_state(self) -> ViewState:
        return ViewState(
            expanded=self.expanded,
            sort=self._sort,
            groups=self.groups,
            scroll_x=self._scroll_x,
        )

    def set_rows(
        self,
        rows: Iterable[Row],
        *,
        sparklines: SparklineProvider | None = None,
    ) -> None:
        """Replace the row collection with a new snapshot.

        The index is rebuilt from scratch; expanded rows are matched by id.
        """
        self._rows = list(rows)
        self._index = TreeIndex(self._rows)
        self._expansion.replace_index(self._index)
        if sparklines is not None:
            self._sparklines = sparklines
        self._invalidate(resort=True)
        logger.debug(f"Replaced rows with {len(self._rows)} new rows")

    def click_header(self, column: str) -> SortState:
        """Advance the sort cycle for a column header click.

        Raises:
            ValueError: If the column is not sortable
        """
        self._sort = next_sort_state(self._sort, column)
        self._invalidate(resort=True)
        if self._store is not None:
            save_sort(self._store, self._sort)
        return self._sort

    def toggle_row(self, row_id: RowId) -> bool:
        """Expand or collapse a row.

        Returns:
            True if the row is expanded afterwards
        """
        is_expanded = self._expansion.toggle(row_id)
        self._invalidate()
        self._persist_expanded()
        return is_expanded

    def expand_all(self) -> None:
        self._expansion.expand_all()
        self._invalidate()
        self._persist_expanded()

    def collapse_all(self) -> None:
        self._expansion.collapse_all()
        self._invalidate()
        self._persist_expanded()

    def reveal(self, row_id: RowId) -> None:
        """Expand the ancestors of a row so it shows up in the table."""
        self._expansion.reveal(row_id)
        self._invalidate()
        self._persist_expanded()

    def toggle_group(self, group: ColumnGroup) -> bool:
        """Toggle a column group.

        Returns:
            False if the toggle was rejected because the group is the last
            active one
        """
        if not self._groups.toggle(group):
            logger.debug(f"Kept {group} active: it is the last active group")
            return False
        if self._store is not None:
            save_groups(self._store, self._groups.snapshot())
        return True

    def set_scroll(self, offset: int) -> int:
        self._scroll_x = max(int(offset), 0)
        if self._store is not None:
            save_scroll(self._store, self._scroll_x)
        return self._scroll_x

    def click_row(self, row_id: RowId) -> Row | None:
        """Notify the row click handler.

        Returns:
            The clicked row, or None if the id is unknown
        """
        row = self._index.get_row(row_id)
        if row is None:
            return None
        if self._on_row_click is not None:
            self._on_row_click(row)
        return row

    def sorted_rows(self) -> list[Row]:
        if self._sorted is None:
            self._sorted = sort_with_hierarchy(
                self._rows,
                self._sort.column,
                self._sort.direction,
            )
        return self._sorted

    def visible_rows(self) -> list[DisplayRow]:
        """Rows to display, in order, with nesting depth."""
        if self._visible is None:
            self._visible = flatten(self.sorted_rows(), self._expansion.expanded)
        return self._visible

    def columns(self) -> list[Column]:
        return visible_columns(self._groups)

    def to_dict(self) -> dict[str, Any]:
        """Convert the current view to a dictionary for JSON serialization."""
        return {
            "state": {
                "sort": self._sort.to_dict(),
                "expanded": sorted(self.expanded),
                "groups": [g.value for g in self._groups],
                "scrollX": self._scroll_x,
            },
            "columns": [c.to_dict() for c in self.columns()],
            "rows": [
                r.to_dict(self._sparklines.series(r.id) if self._sparklines else None)
                for r in self.visible_rows()
            ],
            "totalRows": len(self._rows),
        }

    def _invalidate(self, *, resort: bool = False) -> None:
        if resort:
            self._sorted = None
        self._visible = None

    def _persist_expanded(self) -> None:
        if self._store is not None:
            save_expanded(self._store, self._expansion.expanded)


class TableRegistry:
    """One RollupTable per browsing session, fed from a shared RowSource."""

    def __init__(
        self,
        sessions: SessionRegistry,
        source: RowSource,
        *,
        on_row_click: RowClickHandler | None = None,
    ) -> None:
        self._sessions = sessions
        self._source = source
        self._on_row_click = on_row_click
        self._tables: dict[str, tuple[RollupTable, Snapshot]] = {}

    @property
    def sessions(self) -> SessionRegistry:
        return self._sessions

    @property
    def source(self) -> RowSource:
        return self._source

    def get(self, session_id: str | None) -> tuple[str, RollupTable]:
        """Return the table for a session, creating the session if needed.

        Picks up a new snapshot from the source as a full row replacement.

        Returns:
            Tuple of (session id, table)
        """
        session_id, store = self._sessions.get(session_id)
        for stale in [sid for sid in self._tables if sid not in self._sessions]:
            del self._tables[stale]

        snapshot = self._source.load()
        entry = self._tables.get(session_id)
        if entry is None:
            table = RollupTable(
                snapshot.rows,
                store,
                sparklines=snapshot,
                on_row_click=self._on_row_click,
            )
        else:
            table, seen = entry
            if seen is not snapshot:
                table.set_rows(snapshot.rows, sparklines=snapshot)
        self._tables[session_id] = (table, snapshot)
        return session_id, table
