"""Capability contracts implemented by host-specific code.

Hosts do not subclass anything: any object with the right attributes is a
plugin. Methods may be plain or ``async``; the registry awaits whatever comes
back through ``resolve_maybe_awaitable``.
"""

import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from shakenbake.core.models import CaptureResult, DeviceContext

T = TypeVar("T")

TriggerCallback = Callable[[], None]


class Platform(str, Enum):
    REACT_NATIVE = "react-native"
    WEB = "web"
    PYTHON = "python"
    UNIVERSAL = "universal"


@runtime_checkable
class TriggerPlugin(Protocol):
    """Detects user intent to start a report and invokes the callback."""

    name: str
    platform: str

    def activate(self, on_trigger: TriggerCallback) -> None | Awaitable[None]: ...

    def deactivate(self) -> None | Awaitable[None]: ...


@runtime_checkable
class CapturePlugin(Protocol):
    """Produces a raw screenshot of the current UI state."""

    name: str
    platform: str

    def capture(self) -> CaptureResult | Awaitable[CaptureResult]: ...


@runtime_checkable
class ContextCollector(Protocol):
    """Gathers environment facts, returned as a partial DeviceContext."""

    name: str
    platform: str

    def collect(self) -> DeviceContext | Awaitable[DeviceContext]: ...


async def resolve_maybe_awaitable(value: T | Awaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


async def call_plugin(method: Callable[..., Any], *args: Any) -> Any:
    """Invoke a plugin method, normalizing sync and async shapes to one coroutine.

    Exceptions raised synchronously surface from the returned coroutine, same
    as a rejected async call.
    """
    return await resolve_maybe_awaitable(method(*args))
