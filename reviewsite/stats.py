"""Display-ready aggregates over review ratings."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CORE_DIMENSIONS: tuple[str, ...] = (
    "overall_rating",
    "teacher_quality",
    "material_quality",
    "connection_quality",
)
OPTIONAL_DIMENSIONS: tuple[str, ...] = ("price_rating", "satisfaction_rating")


@dataclass(frozen=True)
class ReviewStats:
    count: int
    avg: float | None


@dataclass(frozen=True)
class DetailedStats:
    count: int
    overall: float | None
    teacher_quality: float | None
    material_quality: float | None
    connection_quality: float | None
    price_count: int
    price: float | None
    satisfaction_count: int
    satisfaction: float | None


def round1(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return round1(sum(values) / len(values))


def simple_stats(items: Iterable[Any] | None) -> ReviewStats:
    """Count and mean of ``rating`` over items whose rating is a finite number."""
    ratings = [r for r in (_finite(_field(x, "rating")) for x in (items or [])) if r is not None]
    return ReviewStats(count=len(ratings), avg=_mean(ratings))


def detailed_stats(rows: Iterable[Any] | None) -> DetailedStats:
    """Per-dimension averages over review rows.

    The core dimensions share one row set: a row contributes only when all four
    are present and finite. Price and satisfaction are averaged independently
    over whichever rows carry them.
    """
    core: dict[str, list[float]] = {d: [] for d in CORE_DIMENSIONS}
    optional: dict[str, list[float]] = {d: [] for d in OPTIONAL_DIMENSIONS}
    complete = 0

    for row in rows or []:
        values = {d: _finite(_field(row, d)) for d in CORE_DIMENSIONS}
        if all(v is not None for v in values.values()):
            complete += 1
            for d, v in values.items():
                core[d].append(v)
        for d in OPTIONAL_DIMENSIONS:
            v = _finite(_field(row, d))
            if v is not None:
                optional[d].append(v)

    return DetailedStats(
        count=complete,
        overall=_mean(core["overall_rating"]),
        teacher_quality=_mean(core["teacher_quality"]),
        material_quality=_mean(core["material_quality"]),
        connection_quality=_mean(core["connection_quality"]),
        price_count=len(optional["price_rating"]),
        price=_mean(optional["price_rating"]),
        satisfaction_count=len(optional["satisfaction_rating"]),
        satisfaction=_mean(optional["satisfaction_rating"]),
    )
