"""Row model for the rollup hierarchy.

Rows arrive pre-aggregated from the metrics service as a flat list. Each row
names its parent, so the list implicitly describes a company → brand →
address → channel forest.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, TypedDict, cast

from rollview.core.types import LEVELS, Level, RowId

# Attribute name -> JSON key used by the aggregation service
METRIC_KEYS: dict[str, str] = {
    "revenue": "revenue",
    "revenue_change": "revenueChange",
    "orders": "orders",
    "average_ticket": "averageTicket",
    "new_customers": "newCustomers",
    "new_customers_pct": "newCustomersPct",
    "returning_customers": "returningCustomers",
    "returning_customers_pct": "returningCustomersPct",
    "ad_spend": "adSpend",
    "ad_spend_pct": "adSpendPct",
    "roas": "roas",
    "impressions": "impressions",
    "clicks": "clicks",
    "ad_orders": "adOrders",
    "promo_spend": "promoSpend",
    "promo_spend_pct": "promoSpendPct",
    "promo_roas": "promoRoas",
    "organic_orders_pct": "organicOrdersPct",
    "refunds": "refunds",
    "refunds_pct": "refundsPct",
    "rating_glovo": "ratingGlovo",
    "reviews_glovo": "reviewsGlovo",
    "rating_uber": "ratingUber",
    "reviews_uber": "reviewsUber",
}

CORE_METRICS = ("revenue", "revenue_change", "orders")


class RowFormatError(ValueError):
    """Raised when a row payload cannot be turned into a Row."""


class DisplayRowDict(TypedDict, total=False):
    """Dictionary representation of a display row."""

    id: str
    parentId: str | None
    level: str
    name: str
    subtitle: str
    channelId: str
    depth: int
    hasChildren: bool
    isExpanded: bool
    metrics: dict[str, float | None]
    sparkline: list[float]


@dataclass(frozen=True)
class Row:
    """One node of the company/brand/address/channel hierarchy."""

    id: RowId
    level: Level
    name: str
    parent_id: RowId | None = None
    subtitle: str | None = None
    channel_id: str | None = None
    company_id: str | None = None
    brand_id: str | None = None

    revenue: float = 0.0
    revenue_change: float = 0.0
    orders: float = 0.0

    average_ticket: float | None = None
    new_customers: float | None = None
    new_customers_pct: float | None = None
    returning_customers: float | None = None
    returning_customers_pct: float | None = None
    ad_spend: float | None = None
    ad_spend_pct: float | None = None
    roas: float | None = None
    impressions: float | None = None
    clicks: float | None = None
    ad_orders: float | None = None
    promo_spend: float | None = None
    promo_spend_pct: float | None = None
    promo_roas: float | None = None
    organic_orders_pct: float | None = None
    refunds: float | None = None
    refunds_pct: float | None = None
    rating_glovo: float | None = None
    reviews_glovo: float | None = None
    rating_uber: float | None = None
    reviews_uber: float | None = None

    def metric(self, name: str) -> float | None:
        """Return a metric value by attribute name, None when absent."""
        if name not in METRIC_KEYS:
            raise KeyError(name)
        return cast(float | None, getattr(self, name))

    def metrics(self) -> dict[str, float | None]:
        """Return all metric values keyed by their JSON names."""
        return {key: getattr(self, attr) for attr, key in METRIC_KEYS.items()}

    @classmethod
    def from_dict(cls, data: object) -> Row:
        """Parse a row from the aggregation service payload.

        Args:
            data: Decoded JSON object for one row

        Returns:
            Row instance

        Raises:
            RowFormatError: If identity fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise RowFormatError("row must be an object")

        row_id = data.get("id")
        if not isinstance(row_id, str) or not row_id:
            raise RowFormatError("row.id must be a non-empty string")

        level = data.get("level")
        if level not in LEVELS:
            raise RowFormatError(
                f"row.level must be one of {', '.join(LEVELS)} (row {row_id})",
            )

        name = data.get("name")
        if not isinstance(name, str):
            raise RowFormatError(f"row.name must be a string (row {row_id})")

        values: dict[str, Any] = {
            "id": RowId(row_id),
            "level": level,
            "name": name,
            "parent_id": _optional_str(data, "parentId", row_id),
            "subtitle": _optional_str(data, "subtitle", row_id),
            "channel_id": _optional_str(data, "channelId", row_id),
            "company_id": _optional_str(data, "companyId", row_id),
            "brand_id": _optional_str(data, "brandId", row_id),
        }
        for attr, key in METRIC_KEYS.items():
            value = _optional_number(data, key, row_id)
            if value is None and attr in CORE_METRICS:
                value = 0.0
            values[attr] = value

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the service's JSON shape."""
        result: dict[str, Any] = {
            "id": self.id,
            "level": self.level,
            "name": self.name,
        }
        for attr, key in (
            ("parent_id", "parentId"),
            ("subtitle", "subtitle"),
            ("channel_id", "channelId"),
            ("company_id", "companyId"),
            ("brand_id", "brandId"),
        ):
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        for attr, key in METRIC_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class DisplayRow:
    """A row positioned in the flattened table."""

    row: Row
    depth: int
    has_children: bool = False
    is_expanded: bool = False

    @property
    def id(self) -> RowId:
        return self.row.id

    def to_dict(self, sparkline: list[float] | None = None) -> DisplayRowDict:
        """Convert to dictionary for JSON serialization."""
        result: DisplayRowDict = {
            "id": self.row.id,
            "parentId": self.row.parent_id,
            "level": self.row.level,
            "name": self.row.name,
            "depth": self.depth,
            "hasChildren": self.has_children,
            "isExpanded": self.is_expanded,
            "metrics": self.row.metrics(),
        }
        if self.row.subtitle is not None:
            result["subtitle"] = self.row.subtitle
        if self.row.channel_id is not None:
            result["channelId"] = self.row.channel_id
        if sparkline is not None:
            result["sparkline"] = sparkline
        return result


def parse_rows(data: object) -> list[Row]:
    """Parse a list of row payloads.

    Raises:
        RowFormatError: If the payload is not a list or any row is malformed
    """
    if not isinstance(data, list):
        raise RowFormatError("rows must be a list")
    return [Row.from_dict(item) for item in data]


def _optional_str(data: dict[str, Any], key: str, row_id: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RowFormatError(f"row.{key} must be a string (row {row_id})")
    return value


def _optional_number(data: dict[str, Any], key: str, row_id: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass but never a metric
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise RowFormatError(f"row.{key} must be a number (row {row_id})")
    number = finite_float(value)
    if number is None:
        raise RowFormatError(f"row.{key} must be a finite number (row {row_id})")
    return number


def finite_float(value: int | float) -> float | None:
    """Convert to float, None for NaN, infinities and ints beyond float range."""
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None
