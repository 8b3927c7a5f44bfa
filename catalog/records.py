"""Data model for catalog records returned by the models API."""

import math
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_slug(value: str) -> str:
    """Lower-case *value* and collapse every non-alphanumeric run into one hyphen."""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def derive_id(brand: str, name: str) -> str:
    """Return the stable identifier for a (brand, name) pair.

    >>> derive_id("OpenAI", "GPT-4o")
    'openai-gpt-4o'
    """
    return f"{normalize_slug(brand)}-{normalize_slug(name)}"


class TokenPrice(BaseModel):
    """Price per 1,000 input and output tokens."""

    model_config = ConfigDict(frozen=True)

    input: float = Field(0.0, allow_inf_nan=False, description="Price per 1K input tokens")
    output: float = Field(0.0, allow_inf_nan=False, description="Price per 1K output tokens")
    unit: Literal["CNY", "USD"] = Field("CNY", description="Currency code; never converted")

    @field_validator("input", "output")
    @classmethod
    def _clamp_negative(cls, value: float) -> float:
        return 0.0 if value < 0 else value


class ProviderOffer(BaseModel):
    """One vendor/platform offering a model."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str = ""
    tokens: TokenPrice | None = Field(
        None, description="Provider-specific price (absent on the provider listing endpoints)"
    )
    reliability_score: float = Field(0.0, description="Quality indicator, 0-10, higher is better")
    response_time_ms: float = Field(0.0, description="Latency indicator in milliseconds")
    api_endpoint: str | None = None
    uptime_percentage: float | None = None
    region: str | None = None
    support_streaming: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_display_name(cls, data):
        if isinstance(data, dict) and not data.get("display_name") and data.get("name"):
            data = {**data, "display_name": data["name"]}
        return data


class ModelRecord(BaseModel):
    """A model as listed in the catalog.

    ``id`` is always derived from ``brand`` and ``name``; any id sent by the
    server is ignored so the same model keeps the same id across requests.
    """

    model_config = ConfigDict(frozen=True)

    brand: str
    name: str
    id: str = Field("", description="derive_id(brand, name)")
    window: int = Field(0, description="Maximum context size in tokens")
    data_amount: float | None = Field(None, description="Training data / params in billions")
    tokens: TokenPrice | None = Field(
        None, description="Baseline price, used when no provider offer applies"
    )
    providers: tuple[ProviderOffer, ...] = ()
    recommended_provider: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data):
        if isinstance(data, dict) and "brand" in data and "name" in data:
            data = {**data, "id": derive_id(str(data["brand"]), str(data["name"]))}
        return data

    @field_validator("window")
    @classmethod
    def _clamp_window(cls, value: int) -> int:
        return max(value, 0)

    @field_validator("providers", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return () if value is None else value

    @property
    def priced_providers(self) -> list[ProviderOffer]:
        return [p for p in self.providers if p.tokens is not None]

    @property
    def effective_price(self) -> float | None:
        """Cheapest input price across provider offers, else the baseline input price.

        None when the model carries no price at all.
        """
        prices = [p.tokens.input for p in self.priced_providers if not math.isnan(p.tokens.input)]
        if prices:
            return min(prices)
        if self.priced_providers:
            # all offers NaN
            return math.nan
        if self.tokens is not None:
            return self.tokens.input
        return None

    @property
    def display_unit(self) -> str:
        """Currency unit shown for this model (first priced provider, else baseline)."""
        if self.priced_providers:
            return self.priced_providers[0].tokens.unit
        if self.tokens is not None:
            return self.tokens.unit
        return "CNY"

    def provider(self, name: str) -> ProviderOffer | None:
        """Return the offer from provider *name* (machine name), or None."""
        for offer in self.providers:
            if offer.name == name:
                return offer
        return None


class BrandsResponse(BaseModel):
    """Body of GET /v1/query/models/brands."""

    brands: list[str]
    count: int = 0


class HealthStatus(BaseModel):
    """Result of a health check against the catalog API."""

    healthy: bool
    base_url: str
    checked_at: str = Field(description="UTC ISO timestamp of the check")
    detail: str | None = None
