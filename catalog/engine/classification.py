"""Group models into price tiers and derive catalog-wide views.

Tier thresholds are plain configuration constants (see ``catalog.config``)
wrapped in ``TierThresholds`` so tests and callers can pass their own.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from statistics import mean

from catalog import config
from catalog.engine.filtering import SortKey, effective_price, sort_models
from catalog.records import ModelRecord, TokenPrice

logger = logging.getLogger(__name__)


class Tier(Enum):
    FREE = "free"
    ECONOMIC = "economic"
    STANDARD = "standard"
    PREMIUM = "premium"
    RECOMMENDED = "recommended"
    TEXT_GENERATION = "text_generation"


PRICE_TIERS = (Tier.FREE, Tier.ECONOMIC, Tier.STANDARD, Tier.PREMIUM)

# Matched case-insensitively against model names
TEXT_GENERATION_KEYWORDS = frozenset(
    {"gpt", "claude", "gemini", "llama", "qwen", "deepseek", "glm", "chat", "instruct", "turbo"}
)


@dataclass(frozen=True)
class TierThresholds:
    """Upper bounds (inclusive) of each price tier, per 1K input tokens."""

    free_epsilon: float = 0.001
    economic_max: float = 3.0
    standard_max: float = 15.0

    @classmethod
    def from_config(cls) -> "TierThresholds":
        return cls(
            free_epsilon=config.FREE_EPSILON,
            economic_max=config.ECONOMIC_MAX,
            standard_max=config.STANDARD_MAX,
        )


@dataclass(frozen=True)
class PlatformStats:
    total_models: int
    total_brands: int
    avg_input_price: float
    avg_output_price: float
    avg_window: float


def tier_for_price(price: float | None, thresholds: TierThresholds) -> Tier | None:
    """Return the price tier for *price*, or None for an unpriced model."""
    if price is None or math.isnan(price):
        return None
    if price <= thresholds.free_epsilon:
        return Tier.FREE
    if price <= thresholds.economic_max:
        return Tier.ECONOMIC
    if price <= thresholds.standard_max:
        return Tier.STANDARD
    return Tier.PREMIUM


def is_text_generation(model: ModelRecord) -> bool:
    name = model.name.lower()
    return any(keyword in name for keyword in TEXT_GENERATION_KEYWORDS)


def classify(
    models: Sequence[ModelRecord],
    thresholds: TierThresholds | None = None,
) -> dict[Tier, list[ModelRecord]]:
    """Bucket *models* into tiers.

    Every tier is present in the result, possibly empty.  Price tiers are
    sorted by effective price (ties keep input order); the recommended view
    holds every model sorted by name.
    """
    if thresholds is None:
        thresholds = TierThresholds.from_config()

    tiers: dict[Tier, list[ModelRecord]] = {tier: [] for tier in Tier}
    for model in models:
        tier = tier_for_price(effective_price(model), thresholds)
        if tier is not None:
            tiers[tier].append(model)
        if is_text_generation(model):
            tiers[Tier.TEXT_GENERATION].append(model)

    for tier in PRICE_TIERS:
        tiers[tier] = sort_models(tiers[tier], SortKey.PRICE)
    tiers[Tier.RECOMMENDED] = sort_models(models, SortKey.NAME)

    logger.debug(
        "Classified %d models: %s",
        len(models),
        ", ".join(f"{t.value}={len(tiers[t])}" for t in PRICE_TIERS),
    )
    return tiers


def _reference_price(model: ModelRecord) -> TokenPrice | None:
    """Baseline price, or the cheapest provider offer when there is none."""
    if model.tokens is not None:
        return model.tokens
    offers = model.priced_providers
    if not offers:
        return None
    return min(offers, key=lambda p: p.tokens.input).tokens


def value_score(model: ModelRecord) -> float:
    """Context tokens per unit of (input + output) price; 0 when free or unpriced."""
    price = _reference_price(model)
    if price is None:
        return 0.0
    total = price.input + price.output
    if total <= 0 or math.isnan(total):
        return 0.0
    return model.window / total


def featured(models: Sequence[ModelRecord], limit: int = 6) -> list[ModelRecord]:
    """The *limit* models with the best value score, best first."""
    ranked = sorted(models, key=value_score, reverse=True)
    return ranked[:limit]


def platform_stats(models: Sequence[ModelRecord]) -> PlatformStats:
    """Headline numbers for the catalog. Averages use baseline prices."""
    if not models:
        return PlatformStats(0, 0, 0.0, 0.0, 0.0)
    priced = [m.tokens for m in models if m.tokens is not None]
    return PlatformStats(
        total_models=len(models),
        total_brands=len({m.brand for m in models}),
        avg_input_price=mean(p.input for p in priced) if priced else 0.0,
        avg_output_price=mean(p.output for p in priced) if priced else 0.0,
        avg_window=mean(m.window for m in models),
    )
