"""Common data models for the energy simulator.

Defines the device, telemetry sample and alert records that flow through
the generator -> rule engine -> notification bus pipeline.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from energy_simulator.exceptions import ConfigurationError

__all__ = [
    "AlertEvent",
    "AlertKind",
    "Device",
    "DeviceStatus",
    "TelemetrySample",
]


class DeviceStatus(StrEnum):
    """Communication status of a smart meter."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    MAINTENANCE = "MAINTENANCE"
    DECOMMISSIONED = "DECOMMISSIONED"


class AlertKind(StrEnum):
    """Kinds of anomaly an alert can report."""

    POWER_OVERLOAD = "POWER_OVERLOAD"
    VOLTAGE_LOW = "VOLTAGE_LOW"
    VOLTAGE_HIGH = "VOLTAGE_HIGH"
    DEVICE_OFFLINE = "DEVICE_OFFLINE"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class _Serialisable(BaseModel):
    """Shared ``to_dict`` / ``to_json`` / ``from_dict`` helpers."""

    def to_dict(self) -> dict[str, Any]:
        """Return a plain ``dict`` representation (JSON-safe types)."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Return a compact JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return cls.model_validate(data)


class Device(_Serialisable):
    """A smart meter as known to the device registry.

    The simulator only reads devices; creating and updating them is the
    registry's job.

    Attributes:
        device_id: Registry identifier, e.g. ``"M-BLD01-R101"``.
        name: Human-readable name used in alert descriptions.
        rated_power: Nameplate power in watts.  Must be positive.
        status: Communication status; only ``ONLINE`` devices are sampled.
        serial_number: Optional hardware serial number.
        building: Optional building label.
        room_number: Optional room label.
        metadata: Free-form tags.
    """

    model_config = {"frozen": True}

    device_id: str
    name: str
    rated_power: float = Field(default=None, validate_default=True)
    status: DeviceStatus = DeviceStatus.ONLINE
    serial_number: str | None = None
    building: str | None = None
    room_number: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("rated_power", mode="before")
    @classmethod
    def _check_rated_power(cls, value: Any) -> Any:
        if value is None:
            raise ConfigurationError("Device rated_power is required")
        rated = float(value)
        if not math.isfinite(rated) or rated <= 0:
            raise ConfigurationError(f"Device rated_power must be a finite positive number, got {value}")
        return value


class TelemetrySample(_Serialisable):
    """One timestamped electrical reading for a device.

    Samples are immutable once produced by a generator.

    Attributes:
        device_id: Device the reading belongs to.
        voltage: Volts, rounded to 2 decimals.
        current: Amps, ``round(power / voltage, 2)``.
        power: Instantaneous watts, rounded to 2 decimals.
        cumulative_energy: Running kWh total, rounded to 3 decimals.
        collected_at: Collection time.
        abnormal: ``True`` when produced by the abnormal generator.
    """

    model_config = {"frozen": True}

    device_id: str
    voltage: float
    current: float
    power: float
    cumulative_energy: float
    collected_at: datetime
    abnormal: bool = False


class AlertEvent(_Serialisable):
    """An anomaly detected by a rule.

    Everything except the resolution fields is fixed at creation.  The
    resolution fields are set by :meth:`resolve`, an operator action.
    """

    device_id: str
    device_name: str
    kind: AlertKind
    value: float
    threshold: float
    description: str
    triggered_at: datetime
    resolved: bool = False
    resolved_at: datetime | None = None
    resolve_note: str | None = None
    alert_id: int | None = None

    def resolve(self, note: str | None = None, at: datetime | None = None) -> None:
        """Mark the alert as handled."""
        self.resolved = True
        self.resolved_at = at or datetime.now()
        self.resolve_note = note
