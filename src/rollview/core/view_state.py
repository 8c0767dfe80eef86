"""Persisted view state for the rollup table.

Each facet (expanded rows, sort column, sort direction, column groups and
horizontal scroll offset) lives under its own key. Reads fall back to the
facet's default when a value is missing or unparseable; writes are
best-effort and never raise.
"""

import logging
from dataclasses import dataclass, field
from urllib.parse import quote, unquote

from rollview.core.columns import ColumnGroup, is_sortable
from rollview.core.session import SessionStore
from rollview.core.sorting import UNSORTED, SortState
from rollview.core.types import RowId

logger = logging.getLogger(__name__)

# Storage keys; kept stable so saved state survives upgrades
EXPANDED_KEY = "rollview-ht-expanded"
SORT_COLUMN_KEY = "rollview-ht-sort-col"
SORT_DIRECTION_KEY = "rollview-ht-sort-dir"
GROUPS_KEY = "rollview-ht-tabs"
SCROLL_X_KEY = "rollview-ht-scroll-x"

LIST_DELIMITER = ","


@dataclass(frozen=True)
class ViewState:
    """Everything about a table view that survives a reload."""

    expanded: frozenset[RowId] = frozenset()
    sort: SortState = UNSORTED
    groups: frozenset[ColumnGroup] = field(
        default_factory=lambda: frozenset(ColumnGroup),
    )
    scroll_x: int = 0


def encode_list(items: list[str]) -> str:
    """Join items with the list delimiter, percent-encoding each item."""
    return LIST_DELIMITER.join(quote(item, safe="") for item in items)


def decode_list(raw: str) -> list[str]:
    if not raw:
        return []
    return [unquote(item) for item in raw.split(LIST_DELIMITER)]


def parse_expanded(raw: str | None) -> frozenset[RowId]:
    if raw is None:
        return frozenset()
    return frozenset(RowId(item) for item in decode_list(raw) if item)


def parse_sort(column_raw: str | None, direction_raw: str | None) -> SortState:
    """Parse the sort facet; column and direction must both be valid or both unset."""
    column = column_raw or None
    direction = direction_raw or None
    if column is None and direction is None:
        return UNSORTED
    if column is None or not is_sortable(column):
        return UNSORTED
    if direction == "asc" or direction == "desc":
        return SortState(column, direction)
    return UNSORTED


def parse_groups(raw: str | None) -> frozenset[ColumnGroup]:
    everything = frozenset(ColumnGroup)
    if raw is None:
        return everything
    try:
        groups = frozenset(ColumnGroup(item) for item in decode_list(raw))
    except ValueError:
        return everything
    return groups or everything


def parse_scroll(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        value = int(raw)
    except ValueError:
        return 0
    return max(value, 0)


def load_view_state(store: SessionStore) -> ViewState:
    """Rehydrate view state, using defaults for anything missing or corrupt."""
    return ViewState(
        expanded=parse_expanded(_safe_get(store, EXPANDED_KEY)),
        sort=parse_sort(
            _safe_get(store, SORT_COLUMN_KEY),
            _safe_get(store, SORT_DIRECTION_KEY),
        ),
        groups=parse_groups(_safe_get(store, GROUPS_KEY)),
        scroll_x=parse_scroll(_safe_get(store, SCROLL_X_KEY)),
    )


def save_expanded(store: SessionStore, expanded: frozenset[RowId]) -> bool:
    return _safe_set(store, EXPANDED_KEY, encode_list(sorted(expanded)))


def save_sort(store: SessionStore, sort: SortState) -> bool:
    # Two independent writes; a failure in one leaves the other in place
    column_ok = _safe_set(store, SORT_COLUMN_KEY, sort.column or "")
    direction_ok = _safe_set(store, SORT_DIRECTION_KEY, sort.direction or "")
    return column_ok and direction_ok


def save_groups(store: SessionStore, groups: frozenset[ColumnGroup]) -> bool:
    ordered = [g.value for g in ColumnGroup if g in groups]
    return _safe_set(store, GROUPS_KEY, encode_list(ordered))


def save_scroll(store: SessionStore, scroll_x: int) -> bool:
    return _safe_set(store, SCROLL_X_KEY, str(max(int(scroll_x), 0)))


def save_view_state(store: SessionStore, state: ViewState) -> bool:
    """Write every facet.

    Returns:
        True if all writes succeeded
    """
    results = [
        save_expanded(store, state.expanded),
        save_sort(store, state.sort),
        save_groups(store, state.groups),
        save_scroll(store, state.scroll_x),
    ]
    return all(results)


def _safe_get(store: SessionStore, key: str) -> str | None:
    try:
        return store.get(key)
    except Exception as e:
        logger.warning(f"Could not read {key}: {e}")
        return None


def _safe_set(store: SessionStore, key: str, value: str) -> bool:
    try:
        store.set(key, value)
    except Exception as e:
        logger.debug(f"Could not persist {key}: {e}")
        return False
    return True
