"""Row snapshots from the metrics aggregation service.

The service hands over a pre-aggregated snapshot as JSON:

    {
        "rows": [{"id": "c1", "level": "company", "name": "...", ...}, ...],
        "weeklyRevenue": {"c1": [120.0, 135.5, ...], ...}
    }

RowSource reads the snapshot from a file and reloads it when the file
changes. Every reload is a full replacement of the previous snapshot.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rollview.core.rows import Row, RowFormatError, finite_float, parse_rows
from rollview.core.types import RowId

logger = logging.getLogger(__name__)


class SparklineProvider(Protocol):
    """Supplies a short numeric series for a row's inline chart."""

    def series(self, row_id: RowId) -> list[float]: ...


@dataclass(frozen=True)
class Snapshot:
    """Immutable row collection plus per-row sparkline series."""

    rows: tuple[Row, ...] = ()
    weekly_revenue: dict[RowId, list[float]] = field(default_factory=dict)

    def series(self, row_id: RowId) -> list[float]:
        return self.weekly_revenue.get(row_id, [])

    @classmethod
    def from_dict(cls, data: object) -> Snapshot:
        """Parse a snapshot payload.

        Raises:
            RowFormatError: If the payload or any row is malformed
        """
        if isinstance(data, list):
            return cls(rows=tuple(parse_rows(data)))
        if not isinstance(data, dict):
            raise RowFormatError("snapshot must be an object or a list of rows")

        rows = tuple(parse_rows(data.get("rows", [])))

        weekly_raw = data.get("weeklyRevenue", {})
        if not isinstance(weekly_raw, dict):
            raise RowFormatError("weeklyRevenue must be an object")
        weekly: dict[RowId, list[float]] = {}
        for row_id, values in weekly_raw.items():
            if not isinstance(values, list) or not all(
                isinstance(v, int | float)
                and not isinstance(v, bool)
                and finite_float(v) is not None
                for v in values
            ):
                raise RowFormatError(
                    f"weeklyRevenue.{row_id} must be a list of finite numbers",
                )
            weekly[RowId(row_id)] = [float(v) for v in values]

        return cls(rows=rows, weekly_revenue=weekly)


class RowSource:
    """Loads snapshots from a JSON file, reloading on mtime change."""

    def __init__(self, rows_file: Path) -> None:
        self._rows_file = rows_file
        self._snapshot: Snapshot | None = None
        self._mtime: float | None = None

    @property
    def rows_file(self) -> Path:
        return self._rows_file

    def load(self) -> Snapshot:
        """Return the current snapshot.

        A missing file yields an empty snapshot.

        Raises:
            RowFormatError: If the file holds invalid JSON or malformed rows
        """
        try:
            mtime = self._rows_file.stat().st_mtime
        except FileNotFoundError:
            if self._snapshot is None or self._mtime is not None:
                logger.warning(f"Rows file not found: {self._rows_file}")
                self._snapshot = Snapshot()
                self._mtime = None
            return self._snapshot

        if self._snapshot is not None and self._mtime == mtime:
            return self._snapshot

        try:
            data = json.loads(self._rows_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise RowFormatError(f"Invalid JSON in {self._rows_file}: {e}") from e

        self._snapshot = Snapshot.from_dict(data)
        self._mtime = mtime
        logger.info(f"Loaded {len(self._snapshot.rows)} rows from {self._rows_file}")
        return self._snapshot
