"""Persistence collaborators consumed by the scheduler and sinks.

The simulator never owns storage.  It talks to four narrow async
interfaces (``DeviceRegistry``, ``CounterStore``, ``SampleStore``,
``AlertStore``); :class:`InMemoryStore` implements all of them for tests,
demos and the CLI.  A SQL-backed implementation lives in
:mod:`energy_simulator.database`.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import Protocol, runtime_checkable

from energy_simulator.exceptions import AlertNotFoundError
from energy_simulator.models import AlertEvent, AlertKind, Device, DeviceStatus, TelemetrySample

__all__ = [
    "AlertStore",
    "CounterStore",
    "DeviceRegistry",
    "InMemoryStore",
    "SampleStore",
]

logger = logging.getLogger("energy_simulator.stores")


@runtime_checkable
class DeviceRegistry(Protocol):
    async def list_online_devices(self) -> list[Device]:
        """Return every device whose status is ``ONLINE``."""
        ...


@runtime_checkable
class CounterStore(Protocol):
    async def last_cumulative_energy(self, device_id: str) -> float:
        """Return the latest cumulative kWh for *device_id* (``0.0`` if none)."""
        ...


@runtime_checkable
class SampleStore(Protocol):
    async def save_sample(self, sample: TelemetrySample) -> None:
        ...


@runtime_checkable
class AlertStore(Protocol):
    async def save_alert(self, alert: AlertEvent) -> AlertEvent:
        """Persist *alert* and return it with ``alert_id`` assigned."""
        ...


class InMemoryStore:
    """Dict-backed device registry, counter, sample and alert store.

    Samples are kept per device in insertion order, which is also their
    time order.
    """

    def __init__(self, devices: list[Device] | None = None) -> None:
        self._devices: dict[str, Device] = {}
        self._samples: defaultdict[str, list[TelemetrySample]] = defaultdict(list)
        self._alerts: dict[int, AlertEvent] = {}
        self._next_alert_id = 1
        for device in devices or []:
            self._devices[device.device_id] = device

    async def connect(self) -> None:
        """No-op - nothing to open."""

    async def close(self) -> None:
        """No-op."""

    # ------------------------------------------------------------------
    # Device registry
    # ------------------------------------------------------------------

    async def add_device(self, device: Device) -> None:
        self._devices[device.device_id] = device

    async def set_device_status(self, device_id: str, status: DeviceStatus) -> Device:
        device = self._devices[device_id].model_copy(update={"status": status})
        self._devices[device_id] = device
        logger.info("Device %s status changed to %s", device_id, status)
        return device

    async def list_online_devices(self) -> list[Device]:
        return [d for d in self._devices.values() if d.status is DeviceStatus.ONLINE]

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------

    async def last_cumulative_energy(self, device_id: str) -> float:
        samples = self._samples.get(device_id)
        return samples[-1].cumulative_energy if samples else 0.0

    async def save_sample(self, sample: TelemetrySample) -> None:
        self._samples[sample.device_id].append(sample)

    async def list_samples(
        self,
        device_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[TelemetrySample]:
        return [
            s
            for s in self._samples.get(device_id, [])
            if (since is None or s.collected_at >= since) and (until is None or s.collected_at <= until)
        ]

    @property
    def sample_count(self) -> int:
        return sum(len(v) for v in self._samples.values())

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def save_alert(self, alert: AlertEvent) -> AlertEvent:
        alert.alert_id = self._next_alert_id
        self._next_alert_id += 1
        self._alerts[alert.alert_id] = alert
        return alert

    async def list_alerts(
        self,
        device_id: str | None = None,
        unresolved_only: bool = False,
        limit: int | None = None,
    ) -> list[AlertEvent]:
        alerts = [
            a
            for a in reversed(self._alerts.values())
            if (device_id is None or a.device_id == device_id) and not (unresolved_only and a.resolved)
        ]
        return alerts[:limit] if limit is not None else alerts

    async def count_alerts_by_kind(self) -> dict[AlertKind, int]:
        return dict(Counter(a.kind for a in self._alerts.values()))

    async def resolve_alert(self, alert_id: int, note: str | None = None) -> AlertEvent:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        alert.resolve(note)
        logger.info("Alert %d resolved", alert_id)
        return alert
