"""Exception hierarchy for the energy simulator."""

from __future__ import annotations

__all__ = [
    "AlertNotFoundError",
    "ConfigurationError",
    "EnergySimulatorError",
]


class EnergySimulatorError(Exception):
    """Base exception for all simulator errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(EnergySimulatorError):
    """Raised at start-up when devices, rules or sinks are misconfigured.

    Configuration errors are fatal: they are never raised from inside a
    running round.
    """


class AlertNotFoundError(EnergySimulatorError):
    """Raised when an operator tries to resolve an alert that does not exist."""

    def __init__(self, alert_id: int) -> None:
        super().__init__(f"Alert not found: {alert_id}", {"alert_id": alert_id})
        self.alert_id = alert_id
