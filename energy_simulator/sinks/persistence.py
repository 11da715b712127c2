"""Persistence sink - hands every alert to the durable alert store."""

from __future__ import annotations

import logging

from energy_simulator.models import AlertEvent
from energy_simulator.sinks.base import AlertSink
from energy_simulator.stores import AlertStore

__all__ = ["PersistenceSink"]

logger = logging.getLogger("energy_simulator.sinks.persistence")


class PersistenceSink(AlertSink):
    """Saves alerts through an :class:`~energy_simulator.stores.AlertStore`.

    Parameters:
        alert_store: Any object with an async ``save_alert(alert)``.
    """

    def __init__(self, alert_store: AlertStore, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._store = alert_store

    async def on_alert(self, alert: AlertEvent) -> None:
        logger.info("Saving %s alert for device %s", alert.kind, alert.device_name)
        saved = await self._store.save_alert(alert)
        logger.debug("Alert saved with id %s", saved.alert_id)
