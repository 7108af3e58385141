"""Drives one embedding's report flow: trigger -> capture -> annotate -> form -> submit."""

import asyncio

from shakenbake.core.config import ShakeNbakeConfig
from shakenbake.core.errors import ShakeNbakeError
from shakenbake.core.flow import (
    AnnotateCancel,
    AnnotateDone,
    CaptureDone,
    CaptureError,
    CaptureStart,
    FlowController,
    FlowState,
    FlowStep,
    ReAnnotate,
    Reset,
    Retry,
    SubmitDone,
    SubmitError,
    SubmitStart,
    Trigger,
)
from shakenbake.core.models import (
    Category,
    Dimensions,
    ReportInput,
    Severity,
    complete_device_context,
)
from shakenbake.core.plugins import CapturePlugin
from shakenbake.core.redact import redact_context
from shakenbake.core.registry import PluginRegistry
from shakenbake.core.report_builder import ReportBuilder
from shakenbake.core.validation import validate_form
from shakenbake.logging.logger import Log

CAPTURE_FALLBACK_MESSAGE = "Screenshot capture failed"
SUBMIT_FALLBACK_MESSAGE = "Failed to submit report"


class ReportSession:
    """Wires the registry, report builder and flow controller for one embedding.

    Async work started for a flow iteration that was later reset or cancelled
    is not interrupted; its result is dropped when it completes. Each reset
    bumps a generation counter that in-flight work compares against before
    touching the flow state.
    """

    def __init__(
        self,
        config: ShakeNbakeConfig,
        *,
        capture: CapturePlugin | None = None,
        registry: PluginRegistry | None = None,
        controller: FlowController | None = None,
        auto_capture: bool = True,
    ) -> None:
        self._config = config
        self._registry = registry or PluginRegistry()
        self._controller = controller or FlowController()
        self._auto_capture = auto_capture
        self._generation = 0
        self._tasks: set[asyncio.Task[FlowState]] = set()

        self._capture = capture
        self._register_plugins()

        self._builder = ReportBuilder(
            self._registry,
            config.destination,
            default_audio_mime_type=config.audio.default_mime_type,
        )

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def registry(self) -> PluginRegistry:
        return self._registry

    @property
    def builder(self) -> ReportBuilder:
        return self._builder

    @property
    def controller(self) -> FlowController:
        return self._controller

    @property
    def state(self) -> FlowState:
        return self._controller.state

    # Lifecycle

    async def start(self) -> None:
        """Activate all triggers so user gestures can open the flow.

        Configured plugins are registered again, so a stopped session can be
        started anew.
        """
        if not self.enabled:
            Log.info("Bug reporting disabled; triggers not activated")
            return
        self._register_plugins()
        await self._registry.activate_triggers(self.trigger)

    async def stop(self) -> None:
        """Deactivate triggers, drop in-flight results and clear all plugins."""
        self._generation += 1
        await self._registry.deactivate_triggers()
        self._registry.clear()
        self._controller.dispatch(Reset())

    async def drain(self) -> None:
        """Wait for capture tasks scheduled by trigger callbacks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Flow entry points

    def trigger(self) -> None:
        """Trigger callback handed to every trigger plugin.

        Moves the flow to ``triggered`` when idle and, if an event loop is
        running, schedules the capture stage.
        """
        if not self.enabled:
            return
        before = self._controller.state
        after = self._controller.dispatch(Trigger())
        if after is before or not self._auto_capture:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            Log.debug("Triggered outside an event loop; capture must be started by the host")
            return
        task = loop.create_task(self.run_capture())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run_capture(self) -> FlowState:
        """Capture a screenshot and collect context concurrently."""
        if not self.enabled or self._controller.step != FlowStep.TRIGGERED:
            return self._controller.state

        generation = self._generation
        self._controller.dispatch(CaptureStart())
        try:
            capture, context = await asyncio.gather(
                self._builder.start_capture(),
                self._builder.collect_context(),
            )
        except Exception as exc:
            if self._is_stale(generation):
                return self._controller.state
            message, retryable = _describe_error(exc, CAPTURE_FALLBACK_MESSAGE)
            Log.warning(f"Capture failed: {message}", exc=exc)
            return self._controller.dispatch(CaptureError(message, retryable))

        if self._is_stale(generation):
            Log.debug("Discarding capture result from a superseded flow")
            return self._controller.state
        return self._controller.dispatch(CaptureDone(capture, context))

    def annotate_done(self, annotated_screenshot: str, original_screenshot: str) -> FlowState:
        return self._controller.dispatch(AnnotateDone(annotated_screenshot, original_screenshot))

    def cancel_annotation(self) -> FlowState:
        if self._controller.step == FlowStep.ANNOTATING:
            self._generation += 1
        return self._controller.dispatch(AnnotateCancel())

    def re_annotate(self) -> FlowState:
        return self._controller.dispatch(ReAnnotate())

    def retry(self) -> FlowState:
        return self._controller.dispatch(Retry())

    def reset(self) -> FlowState:
        self._generation += 1
        return self._controller.dispatch(Reset())

    async def submit_form(
        self,
        *,
        title: str,
        description: str,
        severity: Severity,
        category: Category,
        audio: str | None = None,
    ) -> FlowState:
        """Validate form fields, then submit them with the flow's screenshots.

        A field error moves the flow to ``error`` with the field's message;
        the screenshots are kept so ``retry`` returns to the form.
        """
        if not self.enabled or self._controller.step != FlowStep.FORM:
            return self._controller.state

        field_errors = validate_form(title=title)
        if field_errors:
            message = field_errors[0].message
            Log.info(f"Report form rejected: {message}")
            self._controller.dispatch(SubmitStart())
            return self._controller.dispatch(SubmitError(message, False))

        data = self._controller.state.data
        report_input = ReportInput(
            title=title,
            description=description,
            severity=severity,
            category=category,
            annotated_screenshot=data.annotated_screenshot or "",
            original_screenshot=data.original_screenshot or "",
            audio=audio,
        )
        return await self.submit(report_input)

    async def submit(self, report_input: ReportInput) -> FlowState:
        """Build and submit a report, recording the outcome in the flow state.

        Errors never propagate: the flow moves to ``error`` with the message
        and retryable flag, and the updated state is returned.
        """
        if not self.enabled or self._controller.step != FlowStep.FORM:
            return self._controller.state

        generation = self._generation
        data = self._controller.dispatch(SubmitStart()).data
        try:
            context = redact_context(
                complete_device_context(data.context),
                self._config.privacy.redact_fields,
            )
            custom_metadata = (
                self._config.custom_metadata() if self._config.custom_metadata else None
            )
            dimensions = (
                data.capture_result.dimensions if data.capture_result else Dimensions()
            )
            report = self._builder.build(
                report_input,
                context,
                dimensions=dimensions,
                custom_metadata=custom_metadata,
            )
            result = await self._builder.submit(report)
        except Exception as exc:
            if self._is_stale(generation):
                return self._controller.state
            message, retryable = _describe_error(exc, SUBMIT_FALLBACK_MESSAGE)
            Log.error(f"Report submission failed: {message}")
            return self._controller.dispatch(SubmitError(message, retryable))

        if self._is_stale(generation):
            Log.debug("Discarding submit result from a superseded flow")
            return self._controller.state
        return self._controller.dispatch(SubmitDone(result))

    def can_retry(self) -> bool:
        return self._controller.can_retry()

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _register_plugins(self) -> None:
        if self._capture is not None:
            self._registry.register_capture(self._capture)
        for trigger in self._config.triggers:
            self._registry.register_trigger(trigger)
        for collector in self._config.context_collectors:
            self._registry.register_collector(collector)


def _describe_error(exc: Exception, fallback: str) -> tuple[str, bool]:
    if isinstance(exc, ShakeNbakeError):
        return exc.message, exc.retryable
    return str(exc) or fallback, False
