"""Table columns and togglable column groups."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum


class ColumnGroup(StrEnum):
    PERFORMANCE = "performance"
    ADVERTISING = "advertising"
    PROMOTIONS = "promotions"
    OPERATIONS = "operations"


@dataclass(frozen=True)
class Column:
    """Table column definition."""

    id: str
    label: str
    group: ColumnGroup | None = None
    sortable: bool = True

    def to_dict(self) -> dict[str, str | bool | None]:
        return {
            "id": self.id,
            "label": self.label,
            "group": self.group.value if self.group else None,
            "sortable": self.sortable,
        }


NAME_COLUMN = "name"
SPARKLINE_COLUMN = "sparkline"

COLUMNS: tuple[Column, ...] = (
    Column(NAME_COLUMN, "Company / Brand / Address / Channel"),
    Column("revenue", "Revenue"),
    Column("revenue_change", "Change"),
    Column(SPARKLINE_COLUMN, "Trend", sortable=False),
    Column("orders", "Orders"),
    Column("average_ticket", "Ticket", ColumnGroup.PERFORMANCE),
    Column("new_customers", "New", ColumnGroup.PERFORMANCE),
    Column("new_customers_pct", "% New", ColumnGroup.PERFORMANCE),
    Column("returning_customers", "Returning", ColumnGroup.PERFORMANCE),
    Column("returning_customers_pct", "% Returning", ColumnGroup.PERFORMANCE),
    Column("ad_spend", "Ad Spend", ColumnGroup.ADVERTISING),
    Column("ad_spend_pct", "% Ads", ColumnGroup.ADVERTISING),
    Column("roas", "ROAS", ColumnGroup.ADVERTISING),
    Column("impressions", "Impressions", ColumnGroup.ADVERTISING),
    Column("clicks", "Clicks", ColumnGroup.ADVERTISING),
    Column("ad_orders", "Ad Orders", ColumnGroup.ADVERTISING),
    Column("promo_spend", "Promo Spend", ColumnGroup.PROMOTIONS),
    Column("promo_spend_pct", "% Promos", ColumnGroup.PROMOTIONS),
    Column("promo_roas", "Promo ROAS", ColumnGroup.PROMOTIONS),
    Column("organic_orders_pct", "Organic", ColumnGroup.PROMOTIONS),
    Column("rating_glovo", "Rating Glovo", ColumnGroup.OPERATIONS),
    Column("reviews_glovo", "Reviews Glovo", ColumnGroup.OPERATIONS),
    Column("rating_uber", "Rating Uber", ColumnGroup.OPERATIONS),
    Column("reviews_uber", "Reviews Uber", ColumnGroup.OPERATIONS),
)

SORTABLE_COLUMNS: frozenset[str] = frozenset(c.id for c in COLUMNS if c.sortable)


def is_sortable(column: str) -> bool:
    return column in SORTABLE_COLUMNS


def visible_columns(groups: Iterable[ColumnGroup]) -> list[Column]:
    """Columns to render for the active groups, in display order."""
    active = set(groups)
    return [c for c in COLUMNS if c.group is None or c.group in active]


class ColumnGroupSet:
    """Active column groups; at least one group always stays active."""

    __slots__ = ("_active",)

    def __init__(self, groups: Iterable[ColumnGroup] | None = None) -> None:
        active = set(ColumnGroup) if groups is None else set(groups)
        if not active:
            raise ValueError("at least one column group must be active")
        self._active = active

    def __contains__(self, group: object) -> bool:
        return group in self._active

    def __iter__(self):
        # Stable enum order regardless of toggle history
        return (g for g in ColumnGroup if g in self._active)

    def __len__(self) -> int:
        return len(self._active)

    def toggle(self, group: ColumnGroup) -> bool:
        """Toggle a group on or off.

        Returns:
            False when the toggle was rejected because it would leave no
            active group, True otherwise
        """
        if group in self._active:
            if len(self._active) == 1:
                return False
            self._active.remove(group)
        else:
            self._active.add(group)
        return True

    def snapshot(self) -> frozenset[ColumnGroup]:
        return frozenset(self._active)
