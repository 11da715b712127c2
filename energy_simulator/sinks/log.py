"""Log sink - writes a WARNING-level diagnostic trail for every alert."""

from __future__ import annotations

import logging

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import AlertEvent
from energy_simulator.sinks.base import AlertSink

__all__ = ["LogSink"]

logger = logging.getLogger("energy_simulator.sinks.log")


class LogSink(AlertSink):
    """Logs alerts through the standard ``logging`` module.

    Parameters:
        level: Logging level for the trail (default ``WARNING``).
        logger_name: Override the target logger.
    """

    def __init__(
        self,
        *,
        level: int | str = logging.WARNING,
        logger_name: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name)
        if isinstance(level, str):
            levels = logging.getLevelNamesMapping()
            if level.upper() not in levels:
                raise ConfigurationError(f"Unknown log level '{level}'.  Available: {sorted(levels)}")
            level = levels[level.upper()]
        self._level = level
        self._logger = logging.getLogger(logger_name) if logger_name else logger

    async def on_alert(self, alert: AlertEvent) -> None:
        log = self._logger.log
        lvl = self._level
        log(lvl, "============ ALERT ============")
        log(lvl, "Kind:        %s", alert.kind.label)
        log(lvl, "Device:      %s (%s)", alert.device_name, alert.device_id)
        log(lvl, "Value:       %s", alert.value)
        log(lvl, "Threshold:   %s", alert.threshold)
        log(lvl, "Description: %s", alert.description)
        log(lvl, "Triggered:   %s", alert.triggered_at.isoformat())
        log(lvl, "===============================")
