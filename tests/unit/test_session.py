import asyncio
from typing import Any

from shakenbake.adapters.mock_adapter import MockAdapter
from shakenbake.core.config import PrivacyConfig, ShakeNbakeConfig
from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.flow import FlowStep
from shakenbake.core.models import BugReport, CaptureResult, Category, Dimensions, Severity
from shakenbake.core.session import ReportSession


class FailingAdapter(MockAdapter):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    async def create_issue(self, report: BugReport) -> Any:
        raise self.error


class GatedCapture:
    """Capture whose first call blocks until ``gate`` is set."""

    name = "gated"
    platform = "python"

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.calls = 0

    async def capture(self) -> CaptureResult:
        self.calls += 1
        call = self.calls
        if call == 1:
            await self.gate.wait()
        return CaptureResult(image_data=f"image-{call}", dimensions=Dimensions(10, 20))


def _make_session(
    capture: Any,
    *,
    adapter: Any = None,
    triggers: list[Any] | None = None,
    collectors: list[Any] | None = None,
    **config_kwargs: Any,
) -> ReportSession:
    config = ShakeNbakeConfig(
        destination=adapter or MockAdapter(),
        triggers=triggers or [],
        context_collectors=collectors or [],
        **config_kwargs,
    )
    return ReportSession(config, capture=capture)


async def _open_form(session: ReportSession) -> None:
    session.trigger()
    await session.drain()
    session.annotate_done("annotated-b64", "original-b64")


class TestLifecycle:
    def test_start_activates_triggers(self, make_trigger: Any, make_capture: Any) -> None:
        trigger = make_trigger()
        session = _make_session(make_capture(), triggers=[trigger])

        asyncio.run(session.start())

        assert trigger.active is True

    def test_disabled_session_is_inert(self, make_trigger: Any, make_capture: Any) -> None:
        trigger = make_trigger()
        session = _make_session(make_capture(), triggers=[trigger], enabled=False)

        async def scenario() -> None:
            await session.start()
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert trigger.active is False
        assert session.state.step == FlowStep.IDLE

    def test_stop_deactivates_and_clears(self, make_trigger: Any, make_capture: Any) -> None:
        trigger = make_trigger()
        session = _make_session(make_capture(), triggers=[trigger])

        async def scenario() -> None:
            await session.start()
            await _open_form(session)
            await session.stop()

        asyncio.run(scenario())

        assert trigger.active is False
        assert session.registry.get_triggers() == []
        assert session.registry.get_capture() is None
        assert session.state.step == FlowStep.IDLE

    def test_stopped_session_can_restart(self, make_trigger: Any, make_capture: Any) -> None:
        trigger = make_trigger()
        capture = make_capture()
        session = _make_session(capture, triggers=[trigger])

        async def scenario() -> None:
            await session.start()
            await session.stop()
            await session.start()
            trigger.fire()
            await session.drain()

        asyncio.run(scenario())

        assert trigger.active is True
        assert session.registry.get_capture() is capture
        assert session.state.step == FlowStep.ANNOTATING


class TestCaptureStage:
    def test_trigger_runs_capture_and_collects_context(
        self, make_trigger: Any, make_capture: Any, make_collector: Any
    ) -> None:
        trigger = make_trigger()
        session = _make_session(
            make_capture(),
            triggers=[trigger],
            collectors=[make_collector("app", {"app": {"version": "1.2.3"}})],
        )

        async def scenario() -> None:
            await session.start()
            trigger.fire()
            await session.drain()

        asyncio.run(scenario())

        state = session.state
        assert state.step == FlowStep.ANNOTATING
        assert state.data.capture_result is not None
        assert state.data.context is not None
        assert state.data.context["app"] == {"version": "1.2.3"}
        assert state.data.context["platform"] == {"os": "unknown"}

    def test_second_trigger_while_busy_is_ignored(self, make_capture: Any) -> None:
        capture = make_capture()
        session = _make_session(capture)

        async def scenario() -> None:
            session.trigger()
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert capture.calls == 1

    def test_capture_failure_moves_to_error(self, make_capture: Any) -> None:
        session = _make_session(make_capture(error=RuntimeError("no screen permission")))

        async def scenario() -> None:
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert session.state.step == FlowStep.ERROR
        assert session.state.data.error == "no screen permission"
        assert session.can_retry() is False
        assert session.retry().step == FlowStep.IDLE

    def test_retryable_capture_failure(self, make_capture: Any) -> None:
        error = ShakeNbakeError("offline", ErrorCode.NETWORK_ERROR)
        session = _make_session(make_capture(error=error))

        async def scenario() -> None:
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert session.state.data.error_retryable is True
        assert session.can_retry() is True

    def test_message_less_capture_failure_uses_fallback(self, make_capture: Any) -> None:
        session = _make_session(make_capture(error=RuntimeError()))

        async def scenario() -> None:
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert session.state.data.error == "Screenshot capture failed"

    def test_trigger_outside_event_loop_only_dispatches(self, make_capture: Any) -> None:
        capture = make_capture()
        session = _make_session(capture)

        session.trigger()

        assert session.state.step == FlowStep.TRIGGERED
        assert capture.calls == 0
        asyncio.run(session.run_capture())
        assert session.state.step == FlowStep.ANNOTATING

    def test_superseded_capture_result_is_discarded(self) -> None:
        capture = GatedCapture()
        session = _make_session(capture)

        async def scenario() -> None:
            session.trigger()
            await asyncio.sleep(0)
            assert session.state.step == FlowStep.CAPTURING
            session.reset()
            session.trigger()
            capture.gate.set()
            await session.drain()

        asyncio.run(scenario())

        assert session.state.step == FlowStep.ANNOTATING
        assert session.state.data.capture_result is not None
        assert session.state.data.capture_result.image_data == "image-2"

    def test_cancel_annotation(self, make_capture: Any) -> None:
        session = _make_session(make_capture())

        async def scenario() -> None:
            session.trigger()
            await session.drain()

        asyncio.run(scenario())

        assert session.cancel_annotation().step == FlowStep.IDLE


class TestSubmitStage:
    def test_submit_form_success(self, make_capture: Any) -> None:
        adapter = MockAdapter()
        session = _make_session(
            make_capture(dimensions=Dimensions(width=390, height=844)), adapter=adapter
        )

        async def scenario() -> None:
            await _open_form(session)
            await session.submit_form(
                title="Cart total wrong",
                description="Shows 0",
                severity=Severity.MEDIUM,
                category=Category.UI,
            )

        asyncio.run(scenario())

        assert session.state.step == FlowStep.SUCCESS
        assert session.state.data.submit_result is not None
        assert session.state.data.submit_result.url.startswith(MockAdapter.BASE_URL)
        report = adapter.submitted_reports[0]
        assert report.screenshot.annotated == "annotated-b64"
        assert report.screenshot.original == "original-b64"
        assert report.screenshot.dimensions == Dimensions(width=390, height=844)

    def test_submit_applies_redaction_and_metadata(
        self, make_capture: Any, make_collector: Any
    ) -> None:
        adapter = MockAdapter()
        session = _make_session(
            make_capture(),
            adapter=adapter,
            collectors=[
                make_collector(
                    "env",
                    {
                        "app": {"version": "1.0", "url": "https://app.test/?token=x"},
                        "console": {"recentErrors": [{"message": "boom"}]},
                    },
                )
            ],
            privacy=PrivacyConfig(redact_fields=["app.url", "console"]),
            custom_metadata=lambda: {"userId": "u-42"},
        )

        async def scenario() -> None:
            await _open_form(session)
            await session.submit_form(
                title="Crash on save",
                description="",
                severity=Severity.CRITICAL,
                category=Category.CRASH,
            )

        asyncio.run(scenario())

        report = adapter.submitted_reports[0]
        assert report.context["app"] == {"version": "1.0"}
        assert "console" not in report.context
        assert report.custom_metadata == {"userId": "u-42"}
        assert session.state.data.context is not None
        assert "url" in session.state.data.context["app"]

    def test_submit_failure_is_recorded_not_raised(self, make_capture: Any) -> None:
        adapter = FailingAdapter(ShakeNbakeError("slow down", ErrorCode.RATE_LIMITED))
        session = _make_session(make_capture(), adapter=adapter)

        async def scenario() -> None:
            await _open_form(session)
            await session.submit_form(
                title="Broken", description="", severity=Severity.LOW, category=Category.OTHER
            )

        asyncio.run(scenario())

        assert session.state.step == FlowStep.ERROR
        assert session.state.data.error == "slow down"
        assert session.can_retry() is True
        retried = session.retry()
        assert retried.step == FlowStep.FORM
        assert retried.data.annotated_screenshot == "annotated-b64"

    def test_blank_title_moves_to_error(self, make_capture: Any) -> None:
        adapter = MockAdapter()
        session = _make_session(make_capture(), adapter=adapter)

        async def scenario() -> None:
            await _open_form(session)
            await session.submit_form(
                title="  ", description="", severity=Severity.LOW, category=Category.BUG
            )

        asyncio.run(scenario())

        assert session.state.step == FlowStep.ERROR
        assert session.state.data.error == "Title is required"
        assert adapter.submitted_reports == []

    def test_short_title_is_rejected_before_submit(self, make_capture: Any) -> None:
        adapter = MockAdapter()
        session = _make_session(make_capture(), adapter=adapter)

        async def scenario() -> None:
            await _open_form(session)
            await session.submit_form(
                title="ab", description="", severity=Severity.LOW, category=Category.BUG
            )

        asyncio.run(scenario())

        assert session.state.data.error == "Title must be at least 3 characters"
        assert session.state.data.error_retryable is False
        assert adapter.submitted_reports == []
        assert adapter.uploaded_files == []
        retried = session.retry()
        assert retried.step == FlowStep.FORM
        assert retried.data.annotated_screenshot == "annotated-b64"

    def test_submit_without_form_validation_uses_builder_checks(
        self, make_capture: Any, make_report_input: Any
    ) -> None:
        session = _make_session(make_capture())

        async def scenario() -> None:
            await _open_form(session)
            await session.submit(make_report_input(title="  "))

        asyncio.run(scenario())

        assert session.state.step == FlowStep.ERROR
        assert session.state.data.error == "Report title is required."

    def test_submit_outside_form_is_ignored(
        self, make_capture: Any, make_report_input: Any
    ) -> None:
        adapter = MockAdapter()
        session = _make_session(make_capture(), adapter=adapter)

        state = asyncio.run(session.submit(make_report_input()))

        assert state.step == FlowStep.IDLE
        assert adapter.submitted_reports == []

    def test_re_annotate_from_form(self, make_capture: Any) -> None:
        session = _make_session(make_capture())

        asyncio.run(_open_form(session))

        state = session.re_annotate()
        assert state.step == FlowStep.ANNOTATING
        assert state.data.annotated_screenshot is None
