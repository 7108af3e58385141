from collections.abc import Callable
from typing import ClassVar

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.adapters.cloud_adapter import CloudAdapter
from shakenbake.adapters.linear.adapter import LinearAdapter
from shakenbake.adapters.linear.config import LinearConfig
from shakenbake.adapters.mock_adapter import MockAdapter
from shakenbake.adapters.proxy_adapter import ProxyAdapter
from shakenbake.config.settings import Settings


class DestinationAdapterFactory:
    """Creates the destination adapter named by ``settings.destination``."""

    BUILDERS: ClassVar[dict[str, str]] = {
        "mock": "_create_mock",
        "proxy": "_create_proxy",
        "linear": "_create_linear",
        "cloud": "_create_cloud",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseDestinationAdapter:
        destination = settings.destination.strip().lower()
        builder_name = cls.BUILDERS.get(destination)
        if builder_name is None:
            raise ValueError(
                f"Unknown destination '{destination}'. Choose from: {list(cls.BUILDERS)}"
            )
        builder: Callable[[Settings], BaseDestinationAdapter] = getattr(cls, builder_name)
        return builder(settings)

    @classmethod
    def _create_mock(cls, settings: Settings) -> BaseDestinationAdapter:
        return MockAdapter(delay_seconds=settings.mock_delay_seconds)

    @classmethod
    def _create_proxy(cls, settings: Settings) -> BaseDestinationAdapter:
        return ProxyAdapter(
            endpoint=cls._require(settings.proxy_endpoint, "proxy_endpoint", "proxy"),
            timeout_seconds=settings.proxy_timeout_seconds,
        )

    @classmethod
    def _create_linear(cls, settings: Settings) -> BaseDestinationAdapter:
        config = LinearConfig(
            api_key=cls._require(settings.linear_api_key, "linear_api_key", "linear"),
            team_id=cls._require(settings.linear_team_id, "linear_team_id", "linear"),
            project_id=settings.linear_project_id or None,
            default_label_ids=list(settings.linear_default_label_ids),
            api_url=settings.linear_api_url,
            timeout_seconds=settings.linear_timeout_seconds,
            upload_fallback_timeout_seconds=settings.linear_upload_fallback_timeout_seconds,
        )
        return LinearAdapter(config)

    @classmethod
    def _create_cloud(cls, settings: Settings) -> BaseDestinationAdapter:
        return CloudAdapter(
            api_key=cls._require(settings.cloud_api_key, "cloud_api_key", "cloud"),
            endpoint=cls._require(settings.cloud_endpoint, "cloud_endpoint", "cloud"),
            timeout_seconds=settings.cloud_timeout_seconds,
        )

    @staticmethod
    def _require(value: str, setting: str, destination: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError(f"{setting} is required for destination={destination}")
        return value
