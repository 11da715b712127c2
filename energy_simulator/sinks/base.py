"""Sink abstraction - the notification target capability.

Every sink implements :meth:`AlertSink.on_alert`.  ``connect`` and
``close`` are optional lifecycle hooks the scheduler calls around a run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from energy_simulator.models import AlertEvent

__all__ = ["AlertSink"]


class AlertSink(ABC):
    """Abstract base class for all alert sinks.

    Parameters:
        name: Label used in logs.  Defaults to the class name.
    """

    def __init__(self, *, name: str | None = None) -> None:
        self._name = name or type(self).__name__

    @property
    def name(self) -> str:
        return self._name

    async def connect(self) -> None:
        """Open resources.  No-op by default."""

    @abstractmethod
    async def on_alert(self, alert: AlertEvent) -> None:
        """Deliver one alert.  Exceptions are caught by the bus."""

    async def close(self) -> None:
        """Release resources.  No-op by default."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name!r}>"
