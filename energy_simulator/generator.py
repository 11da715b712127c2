"""Telemetry generators - produce one TelemetrySample per device reading.

Two variants share the :class:`TelemetryGenerator` capability:

- :class:`NormalGenerator` - everyday consumption with a day/night profile.
- :class:`AbnormalGenerator` - one of three injected fault envelopes.

Both take a ``random.Random`` so tests can pin outcomes with a seed.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from datetime import datetime, time
from enum import StrEnum

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import Device, TelemetrySample

__all__ = [
    "AbnormalGenerator",
    "FaultKind",
    "NormalGenerator",
    "TelemetryGenerator",
    "is_daytime",
]

STANDARD_VOLTAGE = 220.0
DEFAULT_INTERVAL_S = 5.0

DAY_START = time(8, 0)
DAY_END = time(22, 0)


class FaultKind(StrEnum):
    """Fault envelopes the abnormal generator can inject."""

    POWER_OVERLOAD = "power_overload"
    UNDERVOLTAGE = "undervoltage"
    OVERVOLTAGE = "overvoltage"


class TelemetryGenerator(ABC):
    """Produces telemetry samples for a device.

    Parameters:
        rng: Randomness source.  A fresh unseeded ``random.Random`` when omitted.
        interval_s: Sampling interval used to integrate power into energy.
    """

    abnormal: bool = False

    def __init__(self, *, rng: random.Random | None = None, interval_s: float = DEFAULT_INTERVAL_S) -> None:
        if interval_s <= 0:
            raise ConfigurationError(f"interval_s must be positive, got {interval_s}")
        self.rng = rng or random.Random()
        self.interval_s = interval_s

    @abstractmethod
    def _draw(self, device: Device, now: datetime) -> tuple[float, float]:
        """Return a raw ``(voltage, power)`` pair for this reading."""

    def generate(self, device: Device, last_cumulative_energy: float, now: datetime) -> TelemetrySample:
        """Produce one sample continuing from *last_cumulative_energy*."""
        voltage, power = self._draw(device, now)
        voltage = round(voltage, 2)
        power = round(power, 2)
        increment = (power / 1000.0) * (self.interval_s / 3600.0)
        return TelemetrySample(
            device_id=device.device_id,
            voltage=voltage,
            current=round(power / voltage, 2),
            power=power,
            cumulative_energy=round((last_cumulative_energy or 0.0) + increment, 3),
            collected_at=now,
            abnormal=self.abnormal,
        )


class NormalGenerator(TelemetryGenerator):
    """Healthy readings.

    Voltage follows N(220, 7.5) clamped to [210, 235].  Between 08:00 and
    22:00 power is drawn from 20-90 % of the rated power; at night it idles
    between 10 and 100 W.
    """

    VOLTAGE_STD = 7.5
    VOLTAGE_MIN = 210.0
    VOLTAGE_MAX = 235.0

    def _draw(self, device: Device, now: datetime) -> tuple[float, float]:
        voltage = self.rng.gauss(STANDARD_VOLTAGE, self.VOLTAGE_STD)
        voltage = max(self.VOLTAGE_MIN, min(self.VOLTAGE_MAX, voltage))

        if is_daytime(now):
            power = self.rng.uniform(0.2 * device.rated_power, 0.9 * device.rated_power)
        else:
            power = self.rng.uniform(10.0, 100.0)
        return voltage, power


class AbnormalGenerator(TelemetryGenerator):
    """Faulty readings.

    Parameters:
        fault: Pin every reading to one envelope.  ``None`` picks one
               uniformly per reading.
        rng / interval_s: See :class:`TelemetryGenerator`.
    """

    abnormal = True

    def __init__(
        self,
        *,
        fault: FaultKind | None = None,
        rng: random.Random | None = None,
        interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        super().__init__(rng=rng, interval_s=interval_s)
        self.fault = fault

    def _draw(self, device: Device, now: datetime) -> tuple[float, float]:
        fault = self.fault or self.rng.choice(list(FaultKind))
        rated = device.rated_power

        if fault is FaultKind.POWER_OVERLOAD:
            return self.rng.gauss(STANDARD_VOLTAGE, 5.0), rated * self.rng.uniform(1.2, 1.5)
        if fault is FaultKind.UNDERVOLTAGE:
            return self.rng.uniform(170.0, 190.0), rated * self.rng.uniform(0.3, 0.6)
        return self.rng.uniform(250.0, 270.0), rated * self.rng.uniform(0.3, 0.6)


def is_daytime(now: datetime) -> bool:
    """``True`` when *now* falls in the [08:00, 22:00) consumption window."""
    return DAY_START <= now.time() < DAY_END
