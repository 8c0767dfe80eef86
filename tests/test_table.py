"""Tests for the rollup table view and its session registry."""

import json
import os
from pathlib import Path

import pytest
from rollview.core.columns import ColumnGroup
from rollview.core.rows import Row
from rollview.core.session import MemorySessionStore, SessionRegistry
from rollview.core.sorting import UNSORTED, SortState
from rollview.core.source import RowSource, Snapshot
from rollview.core.table import RollupTable, TableRegistry
from rollview.core.types import RowId
from rollview.core.view_state import EXPANDED_KEY, SORT_COLUMN_KEY

from tests.helpers import ids, make_row


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestRollupTable:
    """Tests for RollupTable."""

    def test__initial_view__top_level_unsorted(self, rows: list[Row]) -> None:
        """Start collapsed, unsorted, with every column group."""
        table = RollupTable(rows)

        assert ids(table.visible_rows()) == ["c1", "c2"]
        assert table.sort == UNSORTED
        assert table.groups == frozenset(ColumnGroup)
        assert table.scroll_x == 0

    def test__click_header__sorts_visible_rows(self, rows: list[Row]) -> None:
        """Header clicks re-sort the visible rows."""
        table = RollupTable(rows)
        table.toggle_row(RowId("c1"))

        table.click_header("revenue")

        assert ids(table.visible_rows()) == ["c1", "b2", "b1", "c2"]

        table.click_header("revenue")

        assert ids(table.visible_rows()) == ["c2", "c1", "b1", "b2"]

    def test__click_header__unsortable__raises(self, rows: list[Row]) -> None:
        """Reject clicks on columns that cannot be sorted."""
        table = RollupTable(rows)

        with pytest.raises(ValueError, match="not sortable"):
            table.click_header("sparkline")

        assert table.sort == UNSORTED

    def test__interactions__persisted_to_store(self, rows: list[Row]) -> None:
        """Write each facet to the store as it changes."""
        store = MemorySessionStore()
        table = RollupTable(rows, store)

        table.toggle_row(RowId("c1"))
        table.click_header("orders")
        table.toggle_group(ColumnGroup.PROMOTIONS)
        table.set_scroll(240)

        restored = RollupTable(rows, store)
        assert restored.expanded == {"c1"}
        assert restored.sort == SortState("orders", "desc")
        assert ColumnGroup.PROMOTIONS not in restored.groups
        assert restored.scroll_x == 240
        assert ids(restored.visible_rows()) == ids(table.visible_rows())

    def test__toggle_group__last_group__rejected(self, rows: list[Row]) -> None:
        """Keep the last active group on."""
        table = RollupTable(rows)
        for group in (ColumnGroup.PERFORMANCE, ColumnGroup.ADVERTISING, ColumnGroup.PROMOTIONS):
            assert table.toggle_group(group) is True

        assert table.toggle_group(ColumnGroup.OPERATIONS) is False
        assert table.groups == {ColumnGroup.OPERATIONS}

    def test__columns__follow_groups(self, rows: list[Row]) -> None:
        """Hide columns of inactive groups."""
        table = RollupTable(rows)
        table.toggle_group(ColumnGroup.ADVERTISING)

        column_ids = [c.id for c in table.columns()]

        assert "roas" not in column_ids
        assert column_ids[:5] == ["name", "revenue", "revenue_change", "sparkline", "orders"]

    def test__set_scroll__negative__clamped(self, rows: list[Row]) -> None:
        """Clamp negative offsets to zero."""
        assert RollupTable(rows).set_scroll(-30) == 0

    def test__click_row__calls_handler(self, rows: list[Row]) -> None:
        """Pass the full row to the click handler."""
        clicked: list[Row] = []
        table = RollupTable(rows, on_row_click=clicked.append)

        row = table.click_row(RowId("b2"))

        assert row is not None
        assert clicked == [row]
        assert row.name == "Beta"

    def test__click_row__unknown__returns_none(self, rows: list[Row]) -> None:
        """Ignore clicks on unknown rows."""
        clicked: list[Row] = []
        table = RollupTable(rows, on_row_click=clicked.append)

        assert table.click_row(RowId("ghost")) is None
        assert clicked == []

    def test__write_failure__state_kept_in_memory(self, rows: list[Row]) -> None:
        """Keep interacting when the store is full."""
        store = MemorySessionStore(max_bytes=1)
        table = RollupTable(rows, store)

        table.toggle_row(RowId("c1"))
        table.click_header("name")

        assert ids(table.visible_rows()) == ["c2", "c1", "b1", "b2"]
        assert store.get(EXPANDED_KEY) is None
        assert store.get(SORT_COLUMN_KEY) is None

    def test__set_rows__keeps_view_state(self, rows: list[Row]) -> None:
        """Apply expansion and sort to a replacement snapshot."""
        table = RollupTable(rows)
        table.toggle_row(RowId("c1"))
        table.click_header("revenue")

        table.set_rows(
            [
                make_row("c1", "company", revenue=10),
                make_row("b1", "brand", "c1", revenue=1),
                make_row("b9", "brand", "c1", revenue=9),
            ],
        )

        assert ids(table.visible_rows()) == ["c1", "b9", "b1"]
        assert table.sort == SortState("revenue", "desc")

    def test__to_dict__payload(self, rows: list[Row]) -> None:
        """Serialize state, columns and visible rows."""
        snapshot = Snapshot(rows=tuple(rows), weekly_revenue={RowId("c1"): [1.0, 2.0]})
        table = RollupTable(rows, sparklines=snapshot)
        table.toggle_row(RowId("c2"))

        data = table.to_dict()

        assert data["state"] == {
            "sort": {"column": None, "direction": None},
            "expanded": ["c2"],
            "groups": ["performance", "advertising", "promotions", "operations"],
            "scrollX": 0,
        }
        assert [r["id"] for r in data["rows"]] == ["c1", "c2", "b3"]
        assert data["rows"][0]["sparkline"] == [1.0, 2.0]
        assert data["rows"][2]["sparkline"] == []
        assert data["rows"][2]["depth"] == 1
        assert data["totalRows"] == len(rows)
        assert data["columns"][0]["id"] == "name"


class TestTableRegistry:
    """Tests for TableRegistry."""

    def test__same_session__same_table(self, rows_file: Path) -> None:
        """Return the same table for a known session."""
        registry = TableRegistry(SessionRegistry(), RowSource(rows_file))
        session_id, table = registry.get(None)

        again_id, again = registry.get(session_id)

        assert again_id == session_id
        assert again is table

    def test__sessions__isolated(self, rows_file: Path) -> None:
        """Keep view state separate per session."""
        registry = TableRegistry(SessionRegistry(), RowSource(rows_file))
        _, first = registry.get(None)
        _, second = registry.get(None)

        first.toggle_row(RowId("c1"))

        assert second.expanded == frozenset()

    def test__expired_session__starts_fresh(self, rows_file: Path) -> None:
        """Drop view state when the session idles out."""
        clock = FakeClock()
        registry = TableRegistry(
            SessionRegistry(idle_timeout=60, clock=clock),
            RowSource(rows_file),
        )
        session_id, table = registry.get(None)
        table.toggle_row(RowId("c1"))

        clock.now = 120
        new_id, new_table = registry.get(session_id)

        assert new_id != session_id
        assert new_table is not table
        assert new_table.expanded == frozenset()

    def test__changed_snapshot__rows_replaced(self, rows_file: Path) -> None:
        """Replace rows in place when the snapshot file changes."""
        registry = TableRegistry(SessionRegistry(), RowSource(rows_file))
        session_id, table = registry.get(None)
        table.toggle_row(RowId("c1"))

        rows_file.write_text(
            json.dumps(
                [
                    {"id": "c1", "level": "company", "name": "Zeta Foods"},
                    {"id": "b7", "parentId": "c1", "level": "brand", "name": "New"},
                ],
            ),
            encoding="utf-8",
        )
        stat = rows_file.stat()
        os.utime(rows_file, (stat.st_atime, stat.st_mtime + 10))
        _, same = registry.get(session_id)

        assert same is table
        assert ids(same.visible_rows()) == ["c1", "b7"]

    def test__row_click_handler__passed_to_tables(self, rows_file: Path) -> None:
        """Wire the click handler into every table."""
        clicked: list[Row] = []
        registry = TableRegistry(
            SessionRegistry(),
            RowSource(rows_file),
            on_row_click=clicked.append,
        )
        _, table = registry.get(None)

        table.click_row(RowId("c2"))

        assert [r.id for r in clicked] == ["c2"]
