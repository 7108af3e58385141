from typing import Any

import httpx

from shakenbake.adapters.http import (
    HttpDestinationAdapter,
    error_for_status,
    read_json_object,
)
from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.models import BugReport, SubmitResult


class CloudAdapter(HttpDestinationAdapter):
    """Sends reports to the hosted ingestion endpoint (``POST /api/ingest``).

    Screenshots and audio travel inline as base64 inside the JSON payload,
    so there is no separate upload step.
    """

    name = "shakenbake-cloud"

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        timeout_seconds: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        if not api_key.strip():
            raise ShakeNbakeError("CloudAdapter: api_key is required", ErrorCode.UNKNOWN)
        if not endpoint.strip():
            raise ShakeNbakeError("CloudAdapter: endpoint is required", ErrorCode.UNKNOWN)
        self._api_key = api_key.strip()
        self._endpoint = endpoint.strip().rstrip("/")

    async def upload_image(self, data: bytes, filename: str) -> str:
        _ = data, filename
        return ""

    async def create_issue(self, report: BugReport) -> SubmitResult:
        http = await self._get_http()
        try:
            response = await http.post(
                f"{self._endpoint}/api/ingest",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=self.build_payload(report),
            )
        except httpx.HTTPError as exc:
            raise ShakeNbakeError(
                "Network error while sending report to ShakeNbake Cloud",
                ErrorCode.NETWORK_ERROR,
                original_error=exc,
            ) from exc

        if not response.is_success:
            raise error_for_status(
                response.status_code, "ShakeNbake Cloud rejected the report", ErrorCode.UNKNOWN
            )

        payload = read_json_object(response, "ShakeNbake Cloud")
        report_id = str(payload.get("reportId") or "")
        if not report_id:
            raise ShakeNbakeError(
                "ShakeNbake Cloud response is missing reportId", ErrorCode.UNKNOWN
            )
        return SubmitResult(
            url=f"{self._endpoint}/reports/{report_id}",
            id=report_id,
            success=bool(payload.get("success", True)),
        )

    async def test_connection(self) -> bool:
        try:
            http = await self._get_http()
            response = await http.options(f"{self._endpoint}/api/ingest")
        except Exception:
            return False
        return response.status_code == 204 or response.is_success

    @staticmethod
    def build_payload(report: BugReport) -> dict[str, Any]:
        wire = report.to_dict()
        payload: dict[str, Any] = {
            "id": wire["id"],
            "title": wire["title"],
            "description": wire["description"],
            "severity": wire["severity"],
            "category": wire["category"],
            "context": wire["context"],
        }
        if report.custom_metadata is not None:
            payload["customMetadata"] = wire["customMetadata"]
        if report.screenshot.annotated:
            payload["screenshotAnnotated"] = report.screenshot.annotated
        if report.screenshot.original:
            payload["screenshotOriginal"] = report.screenshot.original
        if report.audio is not None and report.audio.data:
            payload["audio"] = report.audio.data
        return payload
