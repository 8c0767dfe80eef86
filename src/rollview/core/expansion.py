"""Expand/collapse state for the rollup tree.

Collapsing a row also collapses everything beneath it; expanding a row only
opens that row, its children start out collapsed.
"""

import logging
from collections.abc import Iterable

from rollview.core.tree import TreeIndex
from rollview.core.types import RowId

logger = logging.getLogger(__name__)


class ExpansionController:
    """Owns the expanded-id set for one table view."""

    def __init__(self, index: TreeIndex, expanded: Iterable[RowId] = ()) -> None:
        """Initialize the controller.

        Args:
            index: Tree index used to enumerate descendants
            expanded: Previously expanded ids; ids unknown to the index are
                kept but have no effect
        """
        self._index = index
        self._expanded: set[RowId] = set(expanded)

    @property
    def expanded(self) -> frozenset[RowId]:
        """Snapshot of the expanded ids."""
        return frozenset(self._expanded)

    def is_expanded(self, row_id: RowId) -> bool:
        return row_id in self._expanded

    def toggle(self, row_id: RowId) -> bool:
        """Expand a collapsed row, or collapse an expanded one with its subtree.

        Returns:
            True if the row is expanded after the call
        """
        if row_id in self._expanded:
            self._expanded.discard(row_id)
            descendants = self._index.descendant_ids(row_id)
            self._expanded.difference_update(descendants)
            logger.debug(f"Collapsed {row_id} and {len(descendants)} descendants")
            return False

        self._expanded.add(row_id)
        logger.debug(f"Expanded {row_id}")
        return True

    def reveal(self, row_id: RowId) -> None:
        """Expand every ancestor of a row so the row itself becomes visible."""
        self._expanded.update(self._index.ancestor_ids(row_id))

    def expand_all(self) -> None:
        self._expanded.update(self._index.ids_with_children())

    def collapse_all(self) -> None:
        self._expanded.clear()

    def replace_index(self, index: TreeIndex) -> None:
        """Swap in the index for a new row collection.

        The expanded set is kept by id, so rows that moved within the new
        collection stay expanded.
        """
        self._index = index
