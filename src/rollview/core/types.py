"""Core type definitions."""

from typing import Literal, NewType

# Opaque row identifier as delivered by the aggregation service
RowId = NewType("RowId", str)

Level = Literal["company", "brand", "address", "channel"]

SortDirection = Literal["asc", "desc"]

LEVELS: tuple[Level, ...] = ("company", "brand", "address", "channel")
