import asyncio

from shakenbake.core.models import DeviceContext
from shakenbake.core.plugins import (
    CapturePlugin,
    ContextCollector,
    TriggerCallback,
    TriggerPlugin,
    call_plugin,
)
from shakenbake.logging.logger import Log


class PluginRegistry:
    """Manages plugin lifecycle: registration, activation, and context collection.

    Each collection is keyed by plugin name. Registering a name again replaces
    the plugin in place, keeping the position where the name was first seen.
    The registry does no locking; callers serialize concurrent mutation.
    """

    def __init__(self) -> None:
        self._triggers: dict[str, TriggerPlugin] = {}
        self._captures: dict[str, CapturePlugin] = {}
        self._collectors: dict[str, ContextCollector] = {}

    # Triggers

    def register_trigger(self, plugin: TriggerPlugin) -> None:
        self._triggers[plugin.name] = plugin

    def unregister_trigger(self, name: str) -> None:
        self._triggers.pop(name, None)

    def get_triggers(self) -> list[TriggerPlugin]:
        return list(self._triggers.values())

    async def activate_triggers(self, on_trigger: TriggerCallback) -> None:
        """Activate every trigger in registration order, one at a time.

        A trigger that fails to activate is logged and skipped; the rest are
        still activated.
        """
        for trigger in list(self._triggers.values()):
            try:
                await call_plugin(trigger.activate, on_trigger)
            except Exception as exc:
                Log.warning(f"Trigger '{trigger.name}' failed to activate: {exc}", exc=exc)
                continue
            Log.debug(f"Trigger '{trigger.name}' activated")

    async def deactivate_triggers(self) -> None:
        """Deactivate every trigger. Never raises."""
        for trigger in list(self._triggers.values()):
            try:
                await call_plugin(trigger.deactivate)
            except Exception as exc:
                Log.warning(f"Trigger '{trigger.name}' failed to deactivate: {exc}", exc=exc)

    # Capture

    def register_capture(self, plugin: CapturePlugin) -> None:
        self._captures[plugin.name] = plugin

    def unregister_capture(self, name: str) -> None:
        self._captures.pop(name, None)

    def get_capture(self) -> CapturePlugin | None:
        """Return the earliest-registered capture plugin still present."""
        return next(iter(self._captures.values()), None)

    # Context collectors

    def register_collector(self, collector: ContextCollector) -> None:
        self._collectors[collector.name] = collector

    def unregister_collector(self, name: str) -> None:
        self._collectors.pop(name, None)

    def get_collectors(self) -> list[ContextCollector]:
        return list(self._collectors.values())

    async def collect_context(self) -> DeviceContext:
        """Run all collectors and merge their sections in registration order.

        A later collector's section replaces an earlier one's section of the
        same name wholesale. Failing collectors contribute nothing. Never raises.
        """
        collectors = list(self._collectors.values())
        results = await asyncio.gather(
            *(call_plugin(collector.collect) for collector in collectors),
            return_exceptions=True,
        )

        merged: DeviceContext = {}
        for collector, result in zip(collectors, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                Log.warning(
                    f"Context collector '{collector.name}' failed: {result}", exc=result
                )
                continue
            if not isinstance(result, dict):
                Log.warning(
                    f"Context collector '{collector.name}' returned "
                    f"{type(result).__name__}, expected a dict"
                )
                continue
            for section, value in result.items():
                merged[section] = value
        return merged

    def clear(self) -> None:
        self._triggers.clear()
        self._captures.clear()
        self._collectors.clear()
