from typing import Any

import httpx

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.core.errors import ErrorCode, ShakeNbakeError

AUTH_FAILED_MESSAGE = "Authentication failed. Check your API key configuration."
RATE_LIMITED_MESSAGE = "Too many requests. Please try again in a moment."


def error_for_status(
    status_code: int,
    fallback_message: str,
    fallback_code: ErrorCode,
) -> ShakeNbakeError:
    """Translate a non-2xx HTTP status into the shared error taxonomy."""
    if status_code in (401, 403):
        return ShakeNbakeError(AUTH_FAILED_MESSAGE, ErrorCode.AUTH_FAILED, retryable=False)
    if status_code == 429:
        return ShakeNbakeError(RATE_LIMITED_MESSAGE, ErrorCode.RATE_LIMITED, retryable=True)
    return ShakeNbakeError(f"{fallback_message} (HTTP {status_code})", fallback_code)


def read_json_object(response: httpx.Response, context: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ShakeNbakeError(
            f"{context}: response is not valid JSON",
            ErrorCode.UNKNOWN,
            original_error=exc,
        ) from exc
    if not isinstance(payload, dict):
        raise ShakeNbakeError(f"{context}: expected a JSON object", ErrorCode.UNKNOWN)
    return payload


class HttpDestinationAdapter(BaseDestinationAdapter):
    """Base for adapters that talk HTTP through a shared ``httpx.AsyncClient``.

    Pass ``client`` to reuse an application-wide client (or a mocked one in
    tests); otherwise one is created lazily and closed by ``aclose``.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._http = client
        self._owns_client = client is None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds))
            self._owns_client = True
        return self._http

    async def aclose(self) -> None:
        if self._owns_client and self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    async def __aenter__(self) -> "HttpDestinationAdapter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
