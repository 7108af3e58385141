"""Assembles bug reports from user input and collected context, and submits them."""

import uuid
from datetime import datetime, timezone
from typing import Any

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.core.encoding import base64_to_bytes
from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.models import (
    AudioData,
    BugReport,
    CaptureResult,
    DeviceContext,
    Dimensions,
    ReportInput,
    Screenshot,
    SubmitResult,
    complete_device_context,
)
from shakenbake.core.plugins import call_plugin
from shakenbake.core.registry import PluginRegistry
from shakenbake.logging.logger import Log

DEFAULT_AUDIO_MIME_TYPE = "audio/webm"
SUBMIT_FALLBACK_MESSAGE = "Failed to submit report"


class ReportBuilder:
    """Orchestrates capture, context collection, report assembly and submission."""

    def __init__(
        self,
        registry: PluginRegistry,
        adapter: BaseDestinationAdapter,
        *,
        default_audio_mime_type: str = DEFAULT_AUDIO_MIME_TYPE,
    ) -> None:
        self._registry = registry
        self._adapter = adapter
        self._default_audio_mime_type = default_audio_mime_type

    async def start_capture(self) -> CaptureResult:
        """Capture a screenshot with the first registered capture plugin.

        Failures raised by the plugin propagate unchanged.
        """
        plugin = self._registry.get_capture()
        if plugin is None:
            raise ShakeNbakeError(
                "No capture plugin registered. Register a capture plugin "
                "before calling start_capture().",
                ErrorCode.UNKNOWN,
            )
        return await call_plugin(plugin.capture)

    async def collect_context(self) -> DeviceContext:
        partial = await self._registry.collect_context()
        return complete_device_context(partial)

    def build(
        self,
        report_input: ReportInput,
        context: DeviceContext,
        *,
        dimensions: Dimensions | None = None,
        custom_metadata: dict[str, Any] | None = None,
    ) -> BugReport:
        """Validate user input and produce an immutable report.

        Raises:
            ShakeNbakeError: (UNKNOWN) if the title is blank or the annotated
                screenshot is empty.
        """
        if not report_input.title.strip():
            raise ShakeNbakeError("Report title is required.", ErrorCode.UNKNOWN)
        if not report_input.annotated_screenshot:
            raise ShakeNbakeError(
                "An annotated screenshot is required.", ErrorCode.UNKNOWN
            )

        audio = None
        if report_input.audio:
            audio = AudioData(
                data=report_input.audio,
                mime_type=report_input.audio_mime_type or self._default_audio_mime_type,
                duration_ms=report_input.audio_duration_ms or 0,
            )

        return BugReport(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            title=report_input.title,
            description=report_input.description,
            severity=report_input.severity,
            category=report_input.category,
            screenshot=Screenshot(
                annotated=report_input.annotated_screenshot,
                original=report_input.original_screenshot,
                dimensions=dimensions or Dimensions(),
            ),
            context=context,
            audio=audio,
            custom_metadata=custom_metadata,
        )

    async def submit(self, report: BugReport) -> SubmitResult:
        """Upload the annotated screenshot, then create the issue.

        Raises:
            ShakeNbakeError: adapter errors of that type unchanged; anything
                else wrapped as UPLOAD_FAILED.
        """
        filename = f"shakenbake-{report.id}.png"
        try:
            image = base64_to_bytes(report.screenshot.annotated)
            await self._adapter.upload_image(image, filename)
            result = await self._adapter.create_issue(report)
        except ShakeNbakeError:
            raise
        except Exception as exc:
            raise _wrap_submit_error(exc) from exc

        Log.info(f"Report {report.id} submitted via {self._adapter.name}: {result.url}")
        return result


def _wrap_submit_error(exc: Exception) -> ShakeNbakeError:
    message = str(exc)
    if not message:
        return ShakeNbakeError(
            SUBMIT_FALLBACK_MESSAGE, ErrorCode.UPLOAD_FAILED, original_error=exc
        )
    return ShakeNbakeError(message, ErrorCode.UPLOAD_FAILED, original_error=exc)
