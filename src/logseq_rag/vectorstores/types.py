from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class VectorItem:
    id: str
    vector: list[float]
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class QueryResult:
    id: str
    score: float
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime bounds for a payload field holding ISO-8601 strings."""

    gte: datetime | None = None
    lte: datetime | None = None


@dataclass(frozen=True)
class CollectionInfo:
    name: str
    points_count: int
    indexed_vectors_count: int
