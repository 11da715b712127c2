"""Anomaly rules and the engine that runs them.

A rule maps one ``(Device, TelemetrySample)`` pair to zero or one
:class:`AlertEvent`.  The :class:`RuleEngine` holds an immutable, ordered
registry of rules built once at start-up::

    engine = RuleEngine(build_default_rules(RuleSettings(overload_ratio=1.3)))
    alerts = engine.evaluate(device, sample)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from pydantic import BaseModel

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.generator import STANDARD_VOLTAGE
from energy_simulator.models import AlertEvent, AlertKind, Device, TelemetrySample

__all__ = [
    "PowerOverloadRule",
    "Rule",
    "RuleEngine",
    "RuleSettings",
    "VoltageAbnormalRule",
    "build_default_rules",
]

logger = logging.getLogger("energy_simulator.rules")


class RuleSettings(BaseModel):
    """Thresholds for the built-in rules.

    Attributes:
        overload_ratio: Power overload fires above ``rated_power * ratio``.
        min_voltage: Undervoltage bound (volts).
        max_voltage: Overvoltage bound (volts).
        standard_voltage: Nominal grid voltage the bounds are quoted against.
    """

    overload_ratio: float = 1.2
    min_voltage: float = 198.0
    max_voltage: float = 242.0
    standard_voltage: float = STANDARD_VOLTAGE


# -----------------------------------------------------------------------
# Rule capability
# -----------------------------------------------------------------------


class Rule(ABC):
    """A named, stateless anomaly check."""

    name: str = "rule"

    @abstractmethod
    def evaluate(self, device: Device, sample: TelemetrySample) -> AlertEvent | None:
        """Return an alert when *sample* breaches the rule, else ``None``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class PowerOverloadRule(Rule):
    """Fires when instantaneous power is strictly above the overload threshold."""

    name = "power_overload"

    def __init__(self, overload_ratio: float = 1.2) -> None:
        if overload_ratio <= 0:
            raise ConfigurationError(f"overload_ratio must be positive, got {overload_ratio}")
        self.overload_ratio = overload_ratio

    def evaluate(self, device: Device, sample: TelemetrySample) -> AlertEvent | None:
        threshold = device.rated_power * self.overload_ratio
        if sample.power <= threshold:
            return None
        return AlertEvent(
            device_id=device.device_id,
            device_name=device.name,
            kind=AlertKind.POWER_OVERLOAD,
            value=sample.power,
            threshold=threshold,
            description=(
                f"Device [{device.name}] power overload: current power {sample.power:.2f}W "
                f"exceeds threshold {threshold:.2f}W "
                f"(rated power {device.rated_power:.2f}W x {self.overload_ratio * 100:.0f}%)"
            ),
            triggered_at=sample.collected_at,
        )


class VoltageAbnormalRule(Rule):
    """Fires ``VOLTAGE_LOW`` below *min_voltage* or ``VOLTAGE_HIGH`` above *max_voltage*.

    The two outcomes cannot both happen because the bounds are validated
    to straddle the standard voltage.
    """

    name = "voltage_abnormal"

    def __init__(
        self,
        min_voltage: float = 198.0,
        max_voltage: float = 242.0,
        standard_voltage: float = STANDARD_VOLTAGE,
    ) -> None:
        if not 0 < min_voltage < standard_voltage < max_voltage:
            raise ConfigurationError(
                "Voltage bounds must satisfy 0 < min < standard < max, "
                f"got min={min_voltage}, standard={standard_voltage}, max={max_voltage}"
            )
        self.min_voltage = min_voltage
        self.max_voltage = max_voltage
        self.standard_voltage = standard_voltage

    def evaluate(self, device: Device, sample: TelemetrySample) -> AlertEvent | None:
        voltage = sample.voltage
        if voltage < self.min_voltage:
            kind, bound, verb, limit = AlertKind.VOLTAGE_LOW, self.min_voltage, "below", "lower"
        elif voltage > self.max_voltage:
            kind, bound, verb, limit = AlertKind.VOLTAGE_HIGH, self.max_voltage, "above", "upper"
        else:
            return None

        pct = bound / self.standard_voltage * 100
        return AlertEvent(
            device_id=device.device_id,
            device_name=device.name,
            kind=kind,
            value=voltage,
            threshold=bound,
            description=(
                f"Device [{device.name}] {kind.label.lower()}: current voltage {voltage:.2f}V "
                f"is {verb} the {limit} limit {bound:.2f}V "
                f"({pct:.0f}% of standard voltage {self.standard_voltage:.0f}V)"
            ),
            triggered_at=sample.collected_at,
        )


# -----------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------


class RuleEngine:
    """Runs every registered rule against a sample.

    Rules are independent: their order only fixes the order in which
    alerts are returned.
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)
        logger.info(
            "RuleEngine initialised with %d rules: %s",
            len(self._rules),
            ", ".join(r.name for r in self._rules),
        )

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def evaluate(self, device: Device, sample: TelemetrySample) -> list[AlertEvent]:
        alerts: list[AlertEvent] = []
        for rule in self._rules:
            alert = rule.evaluate(device, sample)
            if alert is not None:
                logger.info("Rule '%s' raised %s for device %s", rule.name, alert.kind, device.device_id)
                alerts.append(alert)
        return alerts


def build_default_rules(settings: RuleSettings | None = None) -> list[Rule]:
    """Return the built-in rule registry for *settings*."""
    settings = settings or RuleSettings()
    return [
        PowerOverloadRule(settings.overload_ratio),
        VoltageAbnormalRule(settings.min_voltage, settings.max_voltage, settings.standard_voltage),
    ]


