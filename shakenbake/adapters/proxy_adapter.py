import httpx

from shakenbake.adapters.http import (
    HttpDestinationAdapter,
    error_for_status,
    read_json_object,
)
from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.models import BugReport, SubmitResult


class ProxyAdapter(HttpDestinationAdapter):
    """Sends reports through a server-side proxy that holds the tracker credentials.

    Routes:
        POST {endpoint}/upload  multipart ``file`` field, responds ``{"url": ...}``
        POST {endpoint}/issue   JSON report, responds ``{"url": ..., "id": ...}``
        GET  {endpoint}/health  connectivity check
    """

    name = "proxy"

    def __init__(
        self,
        *,
        endpoint: str,
        timeout_seconds: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        endpoint = endpoint.strip().rstrip("/")
        if not endpoint:
            raise ShakeNbakeError("ProxyAdapter: endpoint is required", ErrorCode.UNKNOWN)
        self._endpoint = endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def upload_image(self, data: bytes, filename: str) -> str:
        http = await self._get_http()
        try:
            response = await http.post(
                f"{self._endpoint}/upload",
                files={"file": (filename, data, "image/png")},
            )
        except httpx.HTTPError as exc:
            raise ShakeNbakeError(
                "Network error during image upload",
                ErrorCode.NETWORK_ERROR,
                original_error=exc,
            ) from exc

        if not response.is_success:
            raise error_for_status(
                response.status_code, "Image upload failed", ErrorCode.UPLOAD_FAILED
            )

        url = read_json_object(response, "Image upload").get("url")
        if not url:
            raise ShakeNbakeError("Proxy did not return an image URL", ErrorCode.UPLOAD_FAILED)
        return str(url)

    async def create_issue(self, report: BugReport) -> SubmitResult:
        http = await self._get_http()
        try:
            response = await http.post(f"{self._endpoint}/issue", json=report.to_dict())
        except httpx.HTTPError as exc:
            raise ShakeNbakeError(
                "Network error during issue creation",
                ErrorCode.NETWORK_ERROR,
                original_error=exc,
            ) from exc

        if not response.is_success:
            raise error_for_status(
                response.status_code, "Issue creation failed", ErrorCode.UNKNOWN
            )

        payload = read_json_object(response, "Issue creation")
        return SubmitResult(
            url=str(payload.get("url") or ""),
            id=str(payload.get("id") or ""),
            success=True,
        )

    async def test_connection(self) -> bool:
        """Return True on a 2xx health check. Never raises."""
        try:
            http = await self._get_http()
            response = await http.get(f"{self._endpoint}/health")
        except Exception:
            return False
        return response.is_success
