"""Notification bus - fans each alert out to every registered sink.

Delivery is sequential in registration order.  A failing (or, when
``sink_timeout_s`` is set, slow) sink is logged and skipped; the
remaining sinks still receive the alert.  Delivery is at-most-once:
there are no retries.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from energy_simulator.models import AlertEvent
from energy_simulator.sinks.base import AlertSink
from energy_simulator.sinks.callback import CallbackSink

__all__ = ["NotificationBus"]

logger = logging.getLogger("energy_simulator.bus")


class NotificationBus:
    """Ordered, deduplicated set of alert sinks.

    Sinks match by identity; bare callables match by equality, so the same
    bound method registered twice is one sink.

    ``register`` / ``unregister`` may be called from any thread while a
    ``notify`` is in progress; ``notify`` iterates over a snapshot taken
    when it starts, so an in-flight delivery never skips or repeats a sink.

    Parameters:
        sinks: Initial sinks, registered in order.
        sink_timeout_s: Upper bound on a single ``on_alert`` call.  ``None``
            waits indefinitely.
    """

    def __init__(
        self,
        sinks: list[AlertSink] | None = None,
        *,
        sink_timeout_s: float | None = None,
    ) -> None:
        self._sinks: list[AlertSink] = []
        self._lock = threading.Lock()
        self._sink_timeout_s = sink_timeout_s
        for sink in sinks or []:
            self.register(sink)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, sink: AlertSink | Callable[[AlertEvent], Any]) -> AlertSink:
        """Add *sink* unless it is already registered.

        A bare callable is wrapped in a :class:`CallbackSink`; registering
        the same callable twice is still a no-op.  Returns the registered
        sink so callers can later ``unregister`` it.
        """
        with self._lock:
            existing = self._find(sink)
            if existing is not None:
                logger.debug("Sink %s already registered - skipping", existing.name)
                return existing
            if not isinstance(sink, AlertSink):
                sink = CallbackSink(sink)
            self._sinks.append(sink)
        logger.info("Registered alert sink: %s", sink.name)
        return sink

    def unregister(self, sink: AlertSink | Callable[[AlertEvent], Any]) -> bool:
        """Remove *sink*.  Returns ``False`` when it was not registered."""
        with self._lock:
            existing = self._find(sink)
            if existing is None:
                logger.debug("Sink %r not registered - nothing to remove", sink)
                return False
            self._sinks.remove(existing)
        logger.info("Unregistered alert sink: %s", existing.name)
        return True

    @property
    def sinks(self) -> tuple[AlertSink, ...]:
        """Snapshot of the registered sinks."""
        with self._lock:
            return tuple(self._sinks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sinks)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def notify(self, alert: AlertEvent) -> int:
        """Deliver *alert* to every sink.  Returns the number of successful deliveries."""
        sinks = self.sinks
        logger.debug("Notifying %d sinks of %s for device %s", len(sinks), alert.kind, alert.device_id)

        delivered = 0
        for sink in sinks:
            try:
                if self._sink_timeout_s is None:
                    await sink.on_alert(alert)
                else:
                    await asyncio.wait_for(sink.on_alert(alert), timeout=self._sink_timeout_s)
                delivered += 1
            except Exception as exc:
                if isinstance(exc, TimeoutError) and self._sink_timeout_s is not None:
                    logger.error(
                        "Sink %s timed out after %.1fs handling %s alert - dropped",
                        sink.name,
                        self._sink_timeout_s,
                        alert.kind,
                    )
                    continue
                logger.error(
                    "Sink %s failed handling %s alert: %s",
                    sink.name,
                    alert.kind,
                    exc,
                    exc_info=True,
                )
        return delivered

    async def connect_all(self) -> None:
        for sink in self.sinks:
            await sink.connect()

    async def close_all(self) -> None:
        """Close every sink, logging (not raising) individual failures."""
        for sink in self.sinks:
            try:
                await sink.close()
            except Exception as exc:
                logger.error("Sink %s failed to close: %s", sink.name, exc)

    # -- internal --

    def _find(self, sink: Any) -> AlertSink | None:
        for registered in self._sinks:
            if registered is sink:
                return registered
            if isinstance(registered, CallbackSink) and not isinstance(sink, AlertSink) and registered.callback == sink:
                return registered
        return None
