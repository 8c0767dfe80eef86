"""Tests for the tree index."""

from rollview.core.rows import Row
from rollview.core.tree import ROOT, TreeIndex, build_index
from rollview.core.types import RowId

from tests.helpers import ids, make_row


class TestBuildIndex:
    """Tests for build_index()."""

    def test__flat_rows__groups_by_parent(self, rows: list[Row]) -> None:
        """Group every row under its parent id."""
        index = build_index(rows)

        assert ids(index[ROOT]) == ["c1", "c2"]
        assert ids(index[RowId("c1")]) == ["b1", "b2"]
        assert ids(index[RowId("a1")]) == ["ch1", "ch2"]

    def test__input_order__preserved_within_groups(self) -> None:
        """Keep input order inside each sibling list."""
        rows = [
            make_row("p", "company"),
            make_row("z", "brand", "p"),
            make_row("a", "brand", "p"),
            make_row("m", "brand", "p"),
        ]

        index = build_index(rows)

        assert ids(index[RowId("p")]) == ["z", "a", "m"]

    def test__orphan_row__keyed_as_top_level(self) -> None:
        """Treat a row whose parent is missing as top-level."""
        rows = [
            make_row("c1", "company"),
            make_row("b9", "brand", "missing"),
        ]

        index = build_index(rows)

        assert ids(index[ROOT]) == ["c1", "b9"]
        assert RowId("missing") not in index

    def test__empty_rows__returns_empty_index(self) -> None:
        """Return an empty mapping for no rows."""
        assert build_index([]) == {}

    def test__leaf_rows__have_no_entry(self, rows: list[Row]) -> None:
        """Rows without children get no key."""
        index = build_index(rows)

        assert RowId("ch1") not in index


class TestTreeIndex:
    """Tests for TreeIndex."""

    def test__get_row__returns_row(self, rows: list[Row]) -> None:
        """Look up a row by id."""
        index = TreeIndex(rows)

        row = index.get_row(RowId("a1"))

        assert row is not None
        assert row.name == "Calle Mayor 1"

    def test__get_row__unknown__returns_none(self, rows: list[Row]) -> None:
        """Return None for an unknown id."""
        assert TreeIndex(rows).get_row(RowId("nope")) is None

    def test__get_children__returns_ordered_children(self, rows: list[Row]) -> None:
        """Return direct children in input order."""
        index = TreeIndex(rows)

        assert ids(index.get_children(RowId("b1"))) == ["a1", "a2"]
        assert ids(index.get_children(ROOT)) == ["c1", "c2"]

    def test__get_children__unknown__returns_empty(self, rows: list[Row]) -> None:
        """Return an empty list for unknown ids."""
        assert TreeIndex(rows).get_children(RowId("nope")) == []

    def test__has_children__distinguishes_leaves(self, rows: list[Row]) -> None:
        """Report whether a row has children."""
        index = TreeIndex(rows)

        assert index.has_children(RowId("c1"))
        assert not index.has_children(RowId("ch1"))
        assert not index.has_children(RowId("nope"))

    def test__ids_with_children__lists_parents(self, rows: list[Row]) -> None:
        """List every row that has children."""
        index = TreeIndex(rows)

        assert set(index.ids_with_children()) == {"c1", "b1", "a1", "c2"}

    def test__descendant_ids__collects_whole_subtree(self, rows: list[Row]) -> None:
        """Collect descendants at every depth."""
        index = TreeIndex(rows)

        descendants = index.descendant_ids(RowId("c1"))

        assert set(descendants) == {"b1", "a1", "ch1", "ch2", "a2", "b2"}

    def test__descendant_ids__leaf__returns_empty(self, rows: list[Row]) -> None:
        """Return no descendants for a leaf."""
        assert TreeIndex(rows).descendant_ids(RowId("ch2")) == []

    def test__descendant_ids__deep_chain__no_recursion_limit(self) -> None:
        """Handle chains deeper than the recursion limit."""
        rows = [make_row("n0", "company")]
        rows += [make_row(f"n{i}", "channel", f"n{i - 1}") for i in range(1, 5000)]
        index = TreeIndex(rows)

        descendants = index.descendant_ids(RowId("n0"))

        assert len(descendants) == 4999

    def test__descendant_ids__cycle__terminates(self) -> None:
        """Stop on cyclic parent references."""
        rows = [
            make_row("x", "brand", "y"),
            make_row("y", "brand", "x"),
        ]
        index = TreeIndex(rows)

        assert index.descendant_ids(RowId("x")) == ["y"]
        assert index.get_roots() == []

    def test__ancestor_ids__walks_to_root(self, rows: list[Row]) -> None:
        """Return ancestors from parent up to the top-level row."""
        index = TreeIndex(rows)

        assert index.ancestor_ids(RowId("ch1")) == ["a1", "b1", "c1"]
        assert index.ancestor_ids(RowId("c1")) == []

    def test__orphan__is_root(self) -> None:
        """Treat dangling parent references as top-level."""
        index = TreeIndex([make_row("b9", "brand", "missing")])

        assert ids(index.get_roots()) == ["b9"]
        assert index.ancestor_ids(RowId("b9")) == []

    def test__duplicate_ids__first_wins(self) -> None:
        """Keep the first row for a duplicated id."""
        index = TreeIndex(
            [
                make_row("c1", "company", name="First"),
                make_row("c1", "company", name="Second"),
            ],
        )

        row = index.get_row(RowId("c1"))

        assert len(index) == 1
        assert row is not None
        assert row.name == "First"
