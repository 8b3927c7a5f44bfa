"""Shared exception types for the catalog."""


class ApiError(Exception):
    """Raised when the catalog API cannot serve a request.

    *status* is the HTTP status code, or None when the request never got a
    response (connection refused, timeout).  *code* and *detail* are copied
    from the server's error body when it sends one.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.message = message
        self.status = status
        self.code = code
        self.detail = detail
        super().__init__(message if status is None else f"{message} (HTTP {status})")


class MalformedResponse(Exception):
    """Raised when an endpoint returns JSON that doesn't match the record shapes.

    Carries *source* (the endpoint path) and a human-readable *details* string.
    Retrying won't help, so callers should report it and stop.
    """

    def __init__(self, source: str, details: str) -> None:
        self.source = source
        self.details = details
        super().__init__(f"Malformed response from {source}: {details}")
