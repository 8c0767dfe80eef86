"""Tree index over a flat row collection.

Rows are stored in a flat list with parent/children relationships tracked by
indices, so children lookups are O(1) and never rescan the collection. The
index is rebuilt wholesale whenever the row collection is replaced.
"""

from collections.abc import Iterable

from rollview.core.rows import Row
from rollview.core.types import RowId

# Parent key for rows without a (resolvable) parent
ROOT: None = None

ChildrenIndex = dict[RowId | None, list[Row]]


def resolve_parent(row: Row, known_ids: set[RowId]) -> RowId | None:
    """Return the row's parent key, treating dangling references as top-level."""
    if row.parent_id is None or row.parent_id not in known_ids:
        return ROOT
    return row.parent_id


def build_index(rows: Iterable[Row]) -> ChildrenIndex:
    """Group rows by parent key, preserving input order within each group.

    Args:
        rows: Flat row collection

    Returns:
        Mapping of parent id (or ROOT) to its ordered list of direct children
    """
    rows = list(rows)
    known_ids = {row.id for row in rows}
    index: ChildrenIndex = {}
    for row in rows:
        index.setdefault(resolve_parent(row, known_ids), []).append(row)
    return index


class TreeIndex:
    """Arena-backed hierarchy over a flat row collection.

    Provides O(1) id lookups, O(k) children access and iterative descendant
    enumeration, which keeps cascading collapse safe on deep hierarchies.
    """

    __slots__ = ("_children", "_id_index", "_parents", "_roots", "_rows")

    def __init__(self, rows: Iterable[Row]) -> None:
        """Build the index.

        Args:
            rows: Flat row collection; duplicate ids keep the first occurrence
        """
        self._rows: list[Row] = []
        self._id_index: dict[RowId, int] = {}
        for row in rows:
            if row.id in self._id_index:
                continue
            self._id_index[row.id] = len(self._rows)
            self._rows.append(row)

        self._children: list[list[int]] = [[] for _ in self._rows]
        self._parents: list[int | None] = [None] * len(self._rows)
        self._roots: list[int] = []

        for idx, row in enumerate(self._rows):
            parent_idx = (
                self._id_index.get(row.parent_id) if row.parent_id is not None else None
            )
            if parent_idx is None:
                self._roots.append(idx)
            else:
                self._parents[idx] = parent_idx
                self._children[parent_idx].append(idx)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._id_index

    def get_row(self, row_id: RowId) -> Row | None:
        idx = self._id_index.get(row_id)
        if idx is None:
            return None
        return self._rows[idx]

    def get_roots(self) -> list[Row]:
        """Get top-level rows, including rows whose parent is missing."""
        return [self._rows[i] for i in self._roots]

    def get_children(self, row_id: RowId | None) -> list[Row]:
        """Get direct children of a row.

        Args:
            row_id: Row id, or ROOT for the top-level rows

        Returns:
            Ordered children, empty if the id is unknown or has no children
        """
        if row_id is ROOT:
            return self.get_roots()
        idx = self._id_index.get(row_id)
        if idx is None:
            return []
        return [self._rows[i] for i in self._children[idx]]

    def has_children(self, row_id: RowId) -> bool:
        idx = self._id_index.get(row_id)
        return idx is not None and bool(self._children[idx])

    def ids_with_children(self) -> list[RowId]:
        """Ids of all rows that have at least one child."""
        return [row.id for row, kids in zip(self._rows, self._children) if kids]

    def descendant_ids(self, row_id: RowId) -> list[RowId]:
        """Collect every descendant id of a row using an explicit stack.

        Each row is visited at most once, so malformed cyclic input still
        terminates.
        """
        start = self._id_index.get(row_id)
        if start is None:
            return []

        descendants: list[RowId] = []
        seen = {start}
        stack = [start]
        while stack:
            current = stack.pop()
            for child in self._children[current]:
                if child in seen:
                    continue
                seen.add(child)
                descendants.append(self._rows[child].id)
                stack.append(child)
        return descendants

    def ancestor_ids(self, row_id: RowId) -> list[RowId]:
        """Ids from the row's parent up to its top-level ancestor."""
        idx = self._id_index.get(row_id)
        if idx is None:
            return []

        ancestors: list[RowId] = []
        seen = {idx}
        current = self._parents[idx]
        while current is not None and current not in seen:
            seen.add(current)
            ancestors.append(self._rows[current].id)
            current = self._parents[current]
        return ancestors
