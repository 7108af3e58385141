from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.config.settings import Settings
from shakenbake.core.plugins import ContextCollector, TriggerPlugin


@dataclass
class PrivacyConfig:
    # Dot-paths removed from the device context before submission.
    redact_fields: list[str] = field(default_factory=list)


@dataclass
class AudioConfig:
    default_mime_type: str = "audio/webm"


@dataclass
class ShakeNbakeConfig:
    """Runtime configuration consumed by ``ReportSession``."""

    destination: BaseDestinationAdapter
    enabled: bool = True
    triggers: list[TriggerPlugin] = field(default_factory=list)
    context_collectors: list[ContextCollector] = field(default_factory=list)
    custom_metadata: Callable[[], dict[str, Any]] | None = None
    privacy: PrivacyConfig = field(default_factory=PrivacyConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        destination: BaseDestinationAdapter,
        **overrides: Any,
    ) -> "ShakeNbakeConfig":
        """Build a config whose scalar options come from application settings."""
        config = cls(
            destination=destination,
            enabled=settings.enabled,
            privacy=PrivacyConfig(redact_fields=list(settings.redact_fields)),
            audio=AudioConfig(default_mime_type=settings.default_audio_mime_type),
        )
        for name, value in overrides.items():
            setattr(config, name, value)
        return config
