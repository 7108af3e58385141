import base64
from collections.abc import Callable
from typing import Any

import pytest

from shakenbake.core.errors import ErrorCode, ShakeNbakeError
from shakenbake.core.models import (
    AudioData,
    BugReport,
    CaptureResult,
    Category,
    DeviceContext,
    Dimensions,
    ReportInput,
    Screenshot,
    Severity,
    complete_device_context,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(32))
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")


class FakeTrigger:
    """Trigger plugin that remembers its callback so tests can fire it."""

    platform = "python"

    def __init__(
        self,
        name: str = "fake-trigger",
        *,
        fail_activate: bool = False,
        fail_deactivate: bool = False,
        calls: list[str] | None = None,
    ) -> None:
        self.name = name
        self.on_trigger: Callable[[], None] | None = None
        self.active = False
        self._fail_activate = fail_activate
        self._fail_deactivate = fail_deactivate
        self.calls = calls if calls is not None else []

    def activate(self, on_trigger: Callable[[], None]) -> None:
        self.calls.append(f"activate:{self.name}")
        if self._fail_activate:
            raise RuntimeError(f"{self.name} cannot activate")
        self.on_trigger = on_trigger
        self.active = True

    def deactivate(self) -> None:
        self.calls.append(f"deactivate:{self.name}")
        if self._fail_deactivate:
            raise RuntimeError(f"{self.name} cannot deactivate")
        self.active = False

    def fire(self) -> None:
        assert self.on_trigger is not None, "trigger was never activated"
        self.on_trigger()


class AsyncFakeTrigger(FakeTrigger):
    async def activate(self, on_trigger: Callable[[], None]) -> None:  # type: ignore[override]
        FakeTrigger.activate(self, on_trigger)

    async def deactivate(self) -> None:  # type: ignore[override]
        FakeTrigger.deactivate(self)


class FakeCapture:
    platform = "python"

    def __init__(
        self,
        name: str = "fake-capture",
        *,
        image_data: str = PNG_BASE64,
        dimensions: Dimensions | None = None,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.image_data = image_data
        self.dimensions = dimensions or Dimensions(width=390, height=844)
        self.error = error
        self.calls = 0

    async def capture(self) -> CaptureResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return CaptureResult(image_data=self.image_data, dimensions=self.dimensions)


class FakeCollector:
    """Context collector; ``sync=True`` makes ``collect`` a plain method."""

    platform = "python"

    def __init__(
        self,
        name: str,
        context: Any = None,
        *,
        error: Exception | None = None,
        sync: bool = False,
    ) -> None:
        self.name = name
        self.context = context if context is not None else {}
        self.error = error
        self.sync = sync
        self.calls = 0

    def collect(self) -> Any:
        self.calls += 1
        if self.sync:
            if self.error is not None:
                raise self.error
            return self.context
        return self._collect_async()

    async def _collect_async(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.context


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture()
def png_base64() -> str:
    return PNG_BASE64


@pytest.fixture()
def make_trigger() -> type[FakeTrigger]:
    return FakeTrigger


@pytest.fixture()
def make_async_trigger() -> type[AsyncFakeTrigger]:
    return AsyncFakeTrigger


@pytest.fixture()
def make_capture() -> type[FakeCapture]:
    return FakeCapture


@pytest.fixture()
def make_collector() -> type[FakeCollector]:
    return FakeCollector


@pytest.fixture()
def sample_context() -> DeviceContext:
    return complete_device_context(
        {
            "platform": {"os": "ios", "osVersion": "17.2"},
            "device": {"manufacturer": "Apple", "model": "iPhone 15"},
            "screen": {"width": 390, "height": 844, "scale": 3},
            "network": {"type": "wifi", "effectiveType": "4g"},
            "battery": {"level": 80, "state": "charging"},
            "locale": {"languageCode": "en", "regionCode": "US", "timezone": "Europe/Kyiv"},
            "app": {"version": "2.1.0", "buildNumber": "42", "url": "https://app.test/cart"},
            "navigation": {"currentRoute": "/cart"},
            "console": {
                "recentErrors": [
                    {"message": "TypeError: x is undefined", "timestamp": "2026-01-01T00:00:00Z"}
                ]
            },
        }
    )


@pytest.fixture()
def make_report_input(png_base64: str) -> Callable[..., ReportInput]:
    def _make(**overrides: Any) -> ReportInput:
        fields: dict[str, Any] = {
            "title": "Checkout button does nothing",
            "description": "Tapping Pay has no effect.",
            "severity": Severity.HIGH,
            "category": Category.BUG,
            "annotated_screenshot": png_base64,
            "original_screenshot": png_base64,
        }
        fields.update(overrides)
        return ReportInput(**fields)

    return _make


@pytest.fixture()
def make_report(
    png_base64: str, sample_context: DeviceContext
) -> Callable[..., BugReport]:
    def _make(**overrides: Any) -> BugReport:
        fields: dict[str, Any] = {
            "id": "rep-1",
            "timestamp": "2026-01-01T00:00:00.000+00:00",
            "title": "Checkout button does nothing",
            "description": "Tapping Pay has no effect.",
            "severity": Severity.HIGH,
            "category": Category.BUG,
            "screenshot": Screenshot(
                annotated=png_base64,
                original=png_base64,
                dimensions=Dimensions(width=390, height=844),
            ),
            "context": sample_context,
        }
        fields.update(overrides)
        return BugReport(**fields)

    return _make


@pytest.fixture()
def sample_audio(png_base64: str) -> AudioData:
    return AudioData(data=png_base64, mime_type="audio/webm", duration_ms=1500)


@pytest.fixture()
def network_error() -> ShakeNbakeError:
    return ShakeNbakeError("offline", ErrorCode.NETWORK_ERROR)
