import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Category(str, Enum):
    BUG = "bug"
    UI = "ui"
    CRASH = "crash"
    PERFORMANCE = "performance"
    OTHER = "other"


CONTEXT_SECTIONS: tuple[str, ...] = (
    "platform",
    "device",
    "screen",
    "network",
    "battery",
    "locale",
    "app",
    "accessibility",
    "performance",
    "navigation",
    "console",
)

# Sections are plain dicts keyed by the camelCase field names collectors emit,
# e.g. {"platform": {"os": "ios", "osVersion": "17.2"}}.
DeviceContext = dict[str, dict[str, Any]]


def empty_device_context() -> DeviceContext:
    """Default context used when no collector contributed a section."""
    context: DeviceContext = {name: {} for name in CONTEXT_SECTIONS}
    context["platform"] = {"os": "unknown"}
    context["screen"] = {"width": 0, "height": 0}
    return context


def complete_device_context(partial: DeviceContext | None) -> DeviceContext:
    """Fill every absent section of ``partial`` with its default.

    Present sections keep their values on top of the section defaults, so a
    collector that reports only ``screen.scale`` still yields width/height 0.
    Sections outside the known set are kept untouched.
    """
    partial = partial or {}
    context = empty_device_context()
    for name, defaults in context.items():
        section = partial.get(name)
        if isinstance(section, dict):
            context[name] = {**defaults, **copy.deepcopy(section)}
    for name, section in partial.items():
        if name not in context:
            context[name] = copy.deepcopy(section)
    return context


@dataclass(frozen=True)
class Dimensions:
    width: int = 0
    height: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class CaptureResult:
    """Raw screenshot produced by a capture plugin."""

    image_data: str
    dimensions: Dimensions = field(default_factory=Dimensions)
    mime_type: str = "image/png"


@dataclass(frozen=True)
class AudioData:
    data: str
    mime_type: str
    duration_ms: int = 0
    transcript: str | None = None


@dataclass(frozen=True)
class Screenshot:
    annotated: str
    original: str
    dimensions: Dimensions = field(default_factory=Dimensions)


@dataclass(frozen=True)
class ReportInput:
    """User-supplied report fields. Not yet validated."""

    title: str
    description: str
    severity: Severity
    category: Category
    annotated_screenshot: str
    original_screenshot: str
    audio: str | None = None
    audio_mime_type: str | None = None
    audio_duration_ms: int | None = None


@dataclass(frozen=True)
class BugReport:
    """Finalized report handed to a destination adapter."""

    id: str
    timestamp: str
    title: str
    description: str
    severity: Severity
    category: Category
    screenshot: Screenshot
    context: DeviceContext
    audio: AudioData | None = None
    custom_metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON wire form shared with other report consumers."""
        payload: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "title": self.title,
            "description": self.description,
            "severity": Severity(self.severity).value,
            "category": Category(self.category).value,
            "screenshot": {
                "annotated": self.screenshot.annotated,
                "original": self.screenshot.original,
                "dimensions": self.screenshot.dimensions.to_dict(),
            },
            "context": copy.deepcopy(self.context),
        }
        if self.audio is not None:
            audio: dict[str, Any] = {
                "data": self.audio.data,
                "durationMs": self.audio.duration_ms,
                "mimeType": self.audio.mime_type,
            }
            if self.audio.transcript is not None:
                audio["transcript"] = self.audio.transcript
            payload["audio"] = audio
        if self.custom_metadata is not None:
            payload["customMetadata"] = copy.deepcopy(self.custom_metadata)
        return payload


@dataclass(frozen=True)
class SubmitResult:
    url: str
    id: str
    success: bool = True
