"""Callback sink – delegates alerts to a user-provided Python callable.

This allows users to hook any custom logic into the bus without having
to subclass :class:`AlertSink`::

    bus.register(lambda alert: print(alert.description))
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from energy_simulator.models import AlertEvent
from energy_simulator.sinks.base import AlertSink

__all__ = ["CallbackSink"]


class CallbackSink(AlertSink):
    """Wraps a user-supplied function as a sink.

    The callable receives one :class:`AlertEvent` per call.  It can be a
    regular function, a coroutine function, or a lambda.
    """

    def __init__(self, callback: Callable[[AlertEvent], Any], *, name: str | None = None) -> None:
        super().__init__(name=name or getattr(callback, "__name__", None))
        self._callback = callback
        self._is_async = inspect.iscoroutinefunction(callback)

    @property
    def callback(self) -> Callable[[AlertEvent], Any]:
        return self._callback

    async def on_alert(self, alert: AlertEvent) -> None:
        if self._is_async:
            await self._callback(alert)
        else:
            # Run sync callback in executor to avoid blocking the event loop
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._callback, alert)
