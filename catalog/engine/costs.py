"""Token cost estimates and side-by-side cost ranking.

Prices are per 1,000 tokens.  Currencies are never converted: a comparison
that mixes units is still computed but flagged with ``mixed_units``.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from catalog.records import ModelRecord, TokenPrice

logger = logging.getLogger(__name__)

TOKENS_PER_PRICE_UNIT = 1000


@dataclass(frozen=True)
class CostResult:
    input_cost: float
    output_cost: float
    total_cost: float
    unit: str

    def to_dict(self) -> dict:
        return {
            "input_cost": self.input_cost,
            "output_cost": self.output_cost,
            "total_cost": self.total_cost,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class RankedCost:
    """One row of a cost comparison."""

    model: ModelRecord
    cost: CostResult
    is_best_value: bool = False
    value_ratio: float = 0.0

    def to_dict(self) -> dict:
        return {
            "model_id": self.model.id,
            "brand": self.model.brand,
            "name": self.model.name,
            "window": self.model.window,
            **self.cost.to_dict(),
            "is_best_value": self.is_best_value,
            "value_ratio": self.value_ratio,
        }


@dataclass(frozen=True)
class Comparison:
    entries: list[RankedCost]  # cheapest first
    by_value: list[RankedCost]  # best window per unit cost first
    units: list[str] = field(default_factory=list)
    unpriced: list[ModelRecord] = field(default_factory=list)  # left out of both views

    @property
    def mixed_units(self) -> bool:
        return len(self.units) > 1

    @property
    def best_value(self) -> RankedCost | None:
        return self.entries[0] if self.entries else None


def price_for(model: ModelRecord, provider: str | None = None) -> TokenPrice | None:
    """Pick the price to estimate with.

    A named provider's offer wins when it exists; otherwise the baseline
    price, and failing that the cheapest provider offer.
    """
    if provider is not None:
        offer = model.provider(provider)
        if offer is not None and offer.tokens is not None:
            return offer.tokens
        logger.debug("No priced offer from %r for %s; using baseline", provider, model.id)
    if model.tokens is not None:
        return model.tokens
    offers = model.priced_providers
    if offers:
        return min(offers, key=lambda p: p.tokens.input).tokens
    return None


def estimate_price(price: TokenPrice, input_tokens: int, output_tokens: int) -> CostResult:
    """Cost of *input_tokens* + *output_tokens* at *price*. Negative counts count as 0."""
    input_tokens = max(input_tokens, 0)
    output_tokens = max(output_tokens, 0)
    input_cost = input_tokens / TOKENS_PER_PRICE_UNIT * price.input
    output_cost = output_tokens / TOKENS_PER_PRICE_UNIT * price.output
    return CostResult(
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=input_cost + output_cost,
        unit=price.unit,
    )


def estimate(
    model: ModelRecord,
    input_tokens: int,
    output_tokens: int,
    provider: str | None = None,
) -> CostResult | None:
    """Estimate the cost of one request against *model*.

    Returns None for a model with no price at all.
    """
    price = price_for(model, provider)
    if price is None:
        return None
    return estimate_price(price, input_tokens, output_tokens)


def value_ratio(model: ModelRecord, cost: CostResult) -> float:
    """Context window per unit of total cost; 0 when the cost is 0 or not finite."""
    if not math.isfinite(cost.total_cost) or cost.total_cost <= 0:
        return 0.0
    return model.window / cost.total_cost


def rank(selection: Sequence[tuple[ModelRecord, CostResult]]) -> list[RankedCost]:
    """Sort by total cost ascending and flag the cheapest entry as best value.

    Equal totals keep selection order, so the first minimum is the one flagged.
    """
    ordered = sorted(selection, key=lambda pair: pair[1].total_cost)
    return [
        RankedCost(
            model=model,
            cost=cost,
            is_best_value=i == 0,
            value_ratio=value_ratio(model, cost),
        )
        for i, (model, cost) in enumerate(ordered)
    ]


def rank_by_value(selection: Sequence[tuple[ModelRecord, CostResult]]) -> list[RankedCost]:
    """Sort by value ratio descending (ties keep selection order).

    ``is_best_value`` still marks the cheapest entry, not the top of this view.
    """
    if not selection:
        return []
    best_index = min(range(len(selection)), key=lambda i: selection[i][1].total_cost)
    rows = [
        RankedCost(
            model=model,
            cost=cost,
            is_best_value=i == best_index,
            value_ratio=value_ratio(model, cost),
        )
        for i, (model, cost) in enumerate(selection)
    ]
    return sorted(rows, key=lambda r: r.value_ratio, reverse=True)


def cost_share(entries: Sequence[RankedCost]) -> list[float]:
    """Each entry's total as a percentage of the most expensive entry."""
    if not entries:
        return []
    highest = max(e.cost.total_cost for e in entries)
    if highest <= 0:
        return [0.0 for _ in entries]
    return [e.cost.total_cost / highest * 100 for e in entries]


def compare(
    models: Sequence[ModelRecord],
    input_tokens: int,
    output_tokens: int,
) -> Comparison:
    """Estimate every model in *models* and rank them both ways.

    Models with no price are set aside in ``Comparison.unpriced``: they
    neither win best value nor add a currency to ``units``.
    """
    selection = []
    unpriced = []
    for model in models:
        result = estimate(model, input_tokens, output_tokens)
        if result is None:
            unpriced.append(model)
        else:
            selection.append((model, result))
    if unpriced:
        logger.info(
            "Leaving %d unpriced models out of the comparison: %s",
            len(unpriced),
            ", ".join(m.id for m in unpriced),
        )

    units = sorted({cost.unit for _, cost in selection})
    if len(units) > 1:
        logger.warning(
            "Comparing costs across currencies %s; totals are not converted", ", ".join(units)
        )
    return Comparison(
        entries=rank(selection),
        by_value=rank_by_value(selection),
        units=units,
        unpriced=unpriced,
    )
