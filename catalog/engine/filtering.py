"""Filter, search and sort model lists.

Pure functions over in-memory records: inputs are never mutated and every
call returns a new list.
"""

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from catalog.records import ModelRecord

logger = logging.getLogger(__name__)


class SortKey(Enum):
    PRICE = "price"
    WINDOW = "window"
    NAME = "name"
    BRAND = "brand"


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


def effective_price(model: ModelRecord) -> float | None:
    """Cheapest provider input price, else the baseline input price, else None."""
    return model.effective_price


SORT_KEYS: dict[SortKey, Callable[[ModelRecord], object]] = {
    SortKey.PRICE: effective_price,
    SortKey.WINDOW: lambda m: m.window,
    SortKey.NAME: lambda m: m.name.lower(),
    SortKey.BRAND: lambda m: m.brand.lower(),
}


@dataclass(frozen=True)
class FilterCriteria:
    """One query against the model list. All fields unset is the identity."""

    brands: frozenset[str] = field(default_factory=frozenset)
    price_range: tuple[float, float] | None = None
    window_range: tuple[int, int] | None = None
    sort_by: SortKey | None = None
    sort_order: SortOrder = SortOrder.ASC

    @classmethod
    def default(cls) -> "FilterCriteria":
        """Filters a fresh session starts with: everything, sorted by name."""
        return cls(sort_by=SortKey.NAME)


@dataclass(frozen=True)
class SearchResult:
    models: list[ModelRecord]
    query: str
    total: int


def _in_range(value: float | None, bounds: tuple[float, float]) -> bool:
    if value is None or math.isnan(value):
        return False
    low, high = bounds
    return low <= value <= high


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def sort_models(
    models: Iterable[ModelRecord],
    sort_by: SortKey,
    sort_order: SortOrder = SortOrder.ASC,
) -> list[ModelRecord]:
    """Stable sort by *sort_by*.

    Records whose key is None or NaN go last in either order, keeping their
    input order. Ties keep input order too, since ``sorted`` stays stable
    with ``reverse=True``.
    """
    key = SORT_KEYS[sort_by]
    present: list[ModelRecord] = []
    missing: list[ModelRecord] = []
    for model in models:
        (missing if _is_missing(key(model)) else present).append(model)
    present = sorted(present, key=key, reverse=sort_order is SortOrder.DESC)
    return present + missing


def apply(models: Sequence[ModelRecord], criteria: FilterCriteria) -> list[ModelRecord]:
    """Filter by brand, price band and window band, then sort.

    A model with no price at all fails any active price filter.
    """
    result = list(models)

    if criteria.brands:
        result = [m for m in result if m.brand in criteria.brands]

    if criteria.price_range is not None:
        result = [m for m in result if _in_range(effective_price(m), criteria.price_range)]

    if criteria.window_range is not None:
        result = [m for m in result if _in_range(m.window, criteria.window_range)]

    if criteria.sort_by is not None:
        result = sort_models(result, criteria.sort_by, criteria.sort_order)

    logger.debug("Filtered %d -> %d models", len(models), len(result))
    return result


def search(models: Sequence[ModelRecord], query: str) -> SearchResult:
    """Case-insensitive substring match on name or brand. Blank query matches all."""
    needle = query.strip().lower()
    if not needle:
        matches = list(models)
    else:
        matches = [m for m in models if needle in m.name.lower() or needle in m.brand.lower()]
    return SearchResult(models=matches, query=query, total=len(matches))


def toggle_sort(criteria: FilterCriteria, sort_by: SortKey) -> FilterCriteria:
    """Clicking the active key flips the order; a new key starts ascending."""
    if criteria.sort_by is sort_by:
        flipped = SortOrder.DESC if criteria.sort_order is SortOrder.ASC else SortOrder.ASC
        return replace(criteria, sort_order=flipped)
    return replace(criteria, sort_by=sort_by, sort_order=SortOrder.ASC)


def available_brands(models: Iterable[ModelRecord]) -> list[str]:
    return sorted({m.brand for m in models})


def price_bounds(models: Sequence[ModelRecord]) -> tuple[float, float]:
    """Min and max input price over every provider offer and baseline price.

    Covers every price ``apply`` can filter on; (0, 100) when nothing is priced.
    """
    prices = [p.tokens.input for m in models for p in m.priced_providers]
    prices += [m.tokens.input for m in models if m.tokens is not None]
    prices = [p for p in prices if not math.isnan(p)]
    if not prices:
        return (0.0, 100.0)
    return (min(prices), max(prices))


def window_bounds(models: Sequence[ModelRecord]) -> tuple[int, int]:
    """Min and max context window; (0, 1_000_000) for an empty list."""
    if not models:
        return (0, 1_000_000)
    windows = [m.window for m in models]
    return (min(windows), max(windows))
