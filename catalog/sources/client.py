"""HTTP client for the catalog API with retry-on-transient-failure."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from catalog import config
from catalog.errors import ApiError

logger = logging.getLogger(__name__)

# The default mock server routes on an apifoxApiId query parameter
_MOCK_API_ID = "349841955"
_MOCK_BRAND_API_ID = "349841956"


def is_transient(status: int | None) -> bool:
    """Network failures (no status) and 5xx responses are worth retrying."""
    return status is None or 500 <= status < 600


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a request and how long to wait between tries."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds; doubled after each failed attempt
    retryable: Callable[[int | None], bool] = field(default=is_transient)

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(max_attempts=config.MAX_RETRIES + 1, base_delay=config.RETRY_DELAY)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed *attempt* (1-based)."""
        return self.base_delay * 2 ** (attempt - 1)


def _error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from a non-2xx response, keeping the server's message."""
    message = f"{response.request.method} {response.request.url.path} failed"
    code = None
    detail = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail")
        code = body.get("code")
        message = body.get("message") or (detail if isinstance(detail, str) else None) or message
    return ApiError(message, status=response.status_code, code=code, detail=detail)


class ApiClient:
    """Thin wrapper around ``httpx.Client`` that returns decoded JSON.

    Args:
        base_url: API root. Defaults to ``config.API_BASE_URL``.
        timeout: Per-request timeout in seconds.
        policy: Retry policy; defaults to ``RetryPolicy.from_config()``.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
        sleep: Called with the backoff delay between attempts.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.policy = policy or RetryPolicy.from_config()
        self._sleep = sleep
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.API_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def uses_mock_server(self) -> bool:
        return self.base_url == config.DEFAULT_API_BASE_URL.rstrip("/")

    def _params_for(self, path: str, params: dict | None) -> dict:
        merged = dict(params or {})
        if self.uses_mock_server:
            merged["apifoxApiId"] = _MOCK_BRAND_API_ID if "/brand/" in path else _MOCK_API_ID
        return merged

    def get_json(self, path: str, params: dict | None = None) -> object:
        """GET *path* and return the decoded JSON body.

        Raises:
            ApiError: On a non-retryable error status, or once the retry
                policy is exhausted.
        """
        query = self._params_for(path, params)
        last_error: ApiError | None = None

        for attempt in range(1, self.policy.max_attempts + 1):
            logger.debug("GET %s (attempt %d/%d)", path, attempt, self.policy.max_attempts)
            try:
                response = self._http.get(path, params=query)
            except httpx.HTTPError as e:
                last_error = ApiError(f"GET {path} failed: {e}")
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ApiError(
                            f"GET {path} returned invalid JSON", status=response.status_code
                        ) from e
                last_error = _error_from_response(response)

            if not self.policy.retryable(last_error.status):
                raise last_error

            if attempt < self.policy.max_attempts:
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "Attempt %d/%d for %s failed: %s. Retrying in %.1fs...",
                    attempt,
                    self.policy.max_attempts,
                    path,
                    last_error,
                    delay,
                )
                self._sleep(delay)

        logger.error("GET %s failed after %d attempts", path, self.policy.max_attempts)
        raise last_error

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
