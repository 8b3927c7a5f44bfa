"""Catalog API endpoints — models, brands and providers.

Every function takes an ``ApiClient`` so callers decide the base URL,
timeouts and retry policy.  Responses are validated into records here;
anything that doesn't fit raises ``MalformedResponse``.
"""

import logging
from datetime import UTC, datetime
from urllib.parse import quote

from pydantic import BaseModel, TypeAdapter, ValidationError

from catalog.errors import ApiError, MalformedResponse
from catalog.records import BrandsResponse, HealthStatus, ModelRecord, ProviderOffer
from catalog.sources.client import ApiClient

logger = logging.getLogger(__name__)

MODELS_PATH = "/v1/query/models"
BRANDS_PATH = "/v1/query/models/brands"
PROVIDERS_PATH = "/v1/providers"
HEALTH_PATH = "/health"

_MODEL_LIST = TypeAdapter(list[ModelRecord])
_PROVIDER_LIST = TypeAdapter(list[ProviderOffer])


def _segment(value: str) -> str:
    """URL-encode a single path segment."""
    return quote(value, safe="")


def _validate(adapter: TypeAdapter | type[BaseModel], payload: object, source: str):
    try:
        if isinstance(adapter, TypeAdapter):
            return adapter.validate_python(payload)
        return adapter.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponse(source=source, details=str(e)) from e


def _fetch_model_list(client: ApiClient, path: str) -> list[ModelRecord]:
    payload = client.get_json(path)
    models = _validate(_MODEL_LIST, payload, path)
    logger.info("Fetched %d models from %s", len(models), path)
    return models


def fetch_models(client: ApiClient) -> list[ModelRecord]:
    """Fetch the full model list."""
    return _fetch_model_list(client, MODELS_PATH)


def fetch_models_by_brand(client: ApiClient, brand: str) -> list[ModelRecord]:
    """Fetch the models published by one brand."""
    return _fetch_model_list(client, f"{MODELS_PATH}/brand/{_segment(brand)}")


def fetch_brands(client: ApiClient) -> list[str]:
    """Fetch the brand list.

    Falls back to the distinct brands of the full model list when the brands
    endpoint is unavailable or returns a body that doesn't validate.
    """
    try:
        payload = client.get_json(BRANDS_PATH)
        return _validate(BrandsResponse, payload, BRANDS_PATH).brands
    except (ApiError, MalformedResponse) as e:
        logger.warning("Brands endpoint failed (%s); extracting brands from model list", e)
        return sorted({m.brand for m in fetch_models(client)})


def fetch_providers(client: ApiClient) -> list[ProviderOffer]:
    """Fetch every known provider."""
    payload = client.get_json(PROVIDERS_PATH)
    providers = _validate(_PROVIDER_LIST, payload, PROVIDERS_PATH)
    logger.info("Fetched %d providers", len(providers))
    return providers


def fetch_provider(client: ApiClient, name: str) -> ProviderOffer:
    """Fetch one provider by machine name."""
    path = f"{PROVIDERS_PATH}/{_segment(name)}"
    return _validate(ProviderOffer, client.get_json(path), path)


def fetch_models_by_provider(client: ApiClient, name: str) -> list[ModelRecord]:
    """Fetch the models offered by one provider."""
    return _fetch_model_list(client, f"{PROVIDERS_PATH}/{_segment(name)}/models")


def fetch_providers_for_model(client: ApiClient, model_name: str) -> list[ProviderOffer]:
    """Fetch the providers offering the model called *model_name*."""
    path = f"/v1/models/{_segment(model_name)}/providers"
    return _validate(_PROVIDER_LIST, client.get_json(path), path)


def get_model_by_id(client: ApiClient, model_id: str) -> ModelRecord | None:
    """Return the model whose derived id is *model_id*, or None."""
    for model in fetch_models(client):
        if model.id == model_id:
            return model
    return None


def check_health(client: ApiClient) -> HealthStatus:
    """Check the API is reachable. Never raises; failures come back as ``healthy=False``."""
    checked_at = datetime.now(UTC).isoformat()
    try:
        client.get_json(HEALTH_PATH)
    except ApiError as e:
        logger.warning("Health check against %s failed: %s", client.base_url, e)
        return HealthStatus(
            healthy=False, base_url=client.base_url, checked_at=checked_at, detail=str(e)
        )
    return HealthStatus(healthy=True, base_url=client.base_url, checked_at=checked_at)
