from typing import Any

import httpx

from shakenbake.adapters.http import HttpDestinationAdapter
from shakenbake.adapters.linear.config import LinearConfig
from shakenbake.adapters.linear.graphql import (
    ISSUE_CREATE_MUTATION,
    VIEWER_QUERY,
    linear_fetch,
    request_upload_url,
)
from shakenbake.adapters.linear.markdown import build_issue_description
from shakenbake.adapters.linear.upload import (
    HttpcoreUploadTransport,
    HttpxUploadTransport,
    SignedUploader,
    UploadTransport,
    build_upload_headers,
)
from shakenbake.core.encoding import base64_to_bytes
from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.models import BugReport, SubmitResult
from shakenbake.logging.logger import Log

CONTENT_TYPES: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".png",), "image/png"),
    ((".jpg", ".jpeg"), "image/jpeg"),
    ((".gif",), "image/gif"),
    ((".webp",), "image/webp"),
    ((".webm",), "audio/webm"),
    ((".m4a",), "audio/m4a"),
    ((".svg",), "image/svg+xml"),
)
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class LinearAdapter(HttpDestinationAdapter):
    """Creates Linear issues through the GraphQL API.

    Screenshots and audio are uploaded to Linear storage first and embedded
    in a Markdown description. Uploads are best effort: an issue is created
    even when every attachment failed.

    Args:
        config: Linear credentials and issue defaults.
        client: Optional shared ``httpx.AsyncClient``.
        fallback_transport: Upload transport tried after the httpx client.
            Defaults to a bare httpcore pool; pass ``upload_fallback=False``
            to use the httpx client only.
    """

    name = "linear"

    def __init__(
        self,
        config: LinearConfig,
        *,
        client: httpx.AsyncClient | None = None,
        fallback_transport: UploadTransport | None = None,
        upload_fallback: bool = True,
    ) -> None:
        super().__init__(timeout_seconds=config.timeout_seconds, client=client)
        if not config.api_key.strip():
            raise ShakeNbakeError("LinearAdapter: api_key is required", ErrorCode.UNKNOWN)
        team_id = config.team_id.strip()
        if not team_id:
            raise ShakeNbakeError("LinearAdapter: team_id is required", ErrorCode.UNKNOWN)

        self._config = config
        self._api_key = config.api_key.strip()
        self._team_id = team_id
        self._project_id = (config.project_id or "").strip() or None
        self._warned_missing_project = False

        if fallback_transport is None and upload_fallback:
            fallback_transport = HttpcoreUploadTransport(config.upload_fallback_timeout_seconds)
        self._fallback_transport = fallback_transport

    @property
    def team_id(self) -> str:
        return self._team_id

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @staticmethod
    def detect_content_type(filename: str) -> str:
        lower = filename.lower()
        for extensions, content_type in CONTENT_TYPES:
            if lower.endswith(extensions):
                return content_type
        return DEFAULT_CONTENT_TYPE

    async def upload_image(self, data: bytes, filename: str) -> str:
        """Upload a file to Linear storage and return its asset URL.

        Raises:
            ShakeNbakeError: UPLOAD_FAILED when the signed URL cannot be
                obtained or the PUT fails; API errors from ``linear_fetch``
                are passed through.
        """
        http = await self._get_http()
        content_type = self.detect_content_type(filename)

        try:
            target = await request_upload_url(
                http, self._api_key, self._config.api_url, filename, content_type, len(data)
            )
        except ShakeNbakeError:
            raise
        except Exception as exc:
            raise ShakeNbakeError(
                "Failed to initiate file upload to Linear",
                ErrorCode.UPLOAD_FAILED,
                original_error=exc,
            ) from exc

        transports: list[UploadTransport] = [HttpxUploadTransport(http)]
        if self._fallback_transport is not None:
            transports.append(self._fallback_transport)
        uploader = SignedUploader(transports)
        await uploader.put(
            target.upload_url, data, build_upload_headers(target.headers, content_type)
        )
        return target.asset_url

    async def create_issue(self, report: BugReport) -> SubmitResult:
        failures: list[str] = []

        annotated_url = await self._try_upload(
            report.screenshot.annotated,
            f"screenshot-annotated-{report.id}.png",
            "annotated screenshot",
            failures,
        )
        original_url = await self._try_upload(
            report.screenshot.original,
            f"screenshot-original-{report.id}.png",
            "original screenshot",
            failures,
        )
        audio_url = None
        if report.audio is not None and report.audio.data:
            extension = "webm" if "webm" in report.audio.mime_type else "m4a"
            audio_url = await self._try_upload(
                report.audio.data, f"audio-{report.id}.{extension}", "audio", failures
            )

        both_screenshots_failed = annotated_url is None and original_url is None
        description = build_issue_description(
            report,
            annotated_url,
            original_url,
            audio_url,
            upload_failures=failures if both_screenshots_failed else None,
        )

        data = await linear_fetch(
            await self._get_http(),
            self._api_key,
            self._config.api_url,
            ISSUE_CREATE_MUTATION,
            {"input": self._build_issue_input(report, description)},
        )
        issue_create = data.get("issueCreate") or {}
        if not issue_create.get("success"):
            raise ShakeNbakeError(
                "Linear issue creation returned success=false",
                ErrorCode.UNKNOWN,
                retryable=False,
            )
        issue = issue_create.get("issue") or {}
        Log.info(f"Created Linear issue {issue.get('identifier') or issue.get('id')}")
        return SubmitResult(url=str(issue.get("url") or ""), id=str(issue.get("id") or ""))

    async def test_connection(self) -> bool:
        """Return True if the API key resolves to a viewer.

        Raises:
            ShakeNbakeError: any taxonomy error other than AUTH_FAILED.
        """
        try:
            data = await linear_fetch(
                await self._get_http(), self._api_key, self._config.api_url, VIEWER_QUERY
            )
        except ShakeNbakeError as exc:
            if exc.code == ErrorCode.AUTH_FAILED:
                return False
            raise
        viewer = data.get("viewer") or {}
        return bool(viewer.get("id"))

    async def _try_upload(
        self, payload: str, filename: str, label: str, failures: list[str]
    ) -> str | None:
        try:
            return await self.upload_image(base64_to_bytes(payload), filename)
        except Exception as exc:
            message = exc.message if isinstance(exc, ShakeNbakeError) else str(exc)
            Log.warning(f"Linear {label} upload failed: {message}", exc=exc)
            failures.append(f"{label}: {message or type(exc).__name__}")
            return None

    def _build_issue_input(self, report: BugReport, description: str) -> dict[str, Any]:
        issue_input: dict[str, Any] = {
            "title": report.title,
            "description": description,
            "teamId": self._team_id,
        }

        if self._project_id:
            issue_input["projectId"] = self._project_id
        elif not self._warned_missing_project:
            self._warned_missing_project = True
            Log.warning("LinearAdapter: no project_id configured; issues are created without a project")

        label_ids = self._resolve_label_ids(report)
        if label_ids:
            issue_input["labelIds"] = label_ids
        if self._config.default_assignee_id:
            issue_input["assigneeId"] = self._config.default_assignee_id

        priority = self._config.severity_mapping.get(report.severity)
        if priority is None:
            priority = self._config.default_priority
        if priority is not None:
            issue_input["priority"] = priority
        return issue_input

    def _resolve_label_ids(self, report: BugReport) -> list[str]:
        label_ids = list(self._config.default_label_ids)
        category_label = self._config.category_labels.get(report.category)
        if category_label:
            label_ids.append(category_label)
        return label_ids
