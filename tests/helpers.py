"""Row builders shared by the tests."""

from typing import Any

from rollview.core.rows import Row
from rollview.core.types import Level, RowId


def make_row(
    row_id: str,
    level: Level,
    parent_id: str | None = None,
    *,
    name: str | None = None,
    **metrics: Any,
) -> Row:
    return Row(
        id=RowId(row_id),
        level=level,
        name=name if name is not None else row_id,
        parent_id=RowId(parent_id) if parent_id is not None else None,
        **metrics,
    )


def sample_rows() -> list[Row]:
    """Two companies with brands, addresses and channels.

    c1 Zeta Foods (300)
        b1 alpha (100)
            a1 Calle Mayor 1 (60)
                ch1 Glovo (40)
                ch2 Uber Eats (20)
            a2 Gran Via 2 (40)
        b2 Beta (200)
    c2 Acme (50)
        b3 Acme Burgers (50)
    """
    return [
        make_row("c1", "company", name="Zeta Foods", revenue=300, orders=30),
        make_row("b1", "brand", "c1", name="alpha", revenue=100, orders=12),
        make_row("a1", "address", "b1", name="Calle Mayor 1", revenue=60, orders=7),
        make_row("ch1", "channel", "a1", name="Glovo", revenue=40, orders=4),
        make_row("ch2", "channel", "a1", name="Uber Eats", revenue=20, orders=3),
        make_row("a2", "address", "b1", name="Gran Via 2", revenue=40, orders=5),
        make_row("b2", "brand", "c1", name="Beta", revenue=200, orders=18),
        make_row("c2", "company", name="Acme", revenue=50, orders=6),
        make_row("b3", "brand", "c2", name="Acme Burgers", revenue=50, orders=6),
    ]


def ids(rows: list[Any]) -> list[str]:
    return [r.id for r in rows]
