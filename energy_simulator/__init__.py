"""Energy Simulator - synthetic smart-meter telemetry with rule-based
anomaly detection and pluggable alert sinks.

Quick start::

    from energy_simulator import (
        Device, InMemoryStore, NotificationBus, RuleEngine,
        SampleScheduler, build_default_rules,
    )
    from energy_simulator.sinks import LogSink, PersistenceSink

    store = InMemoryStore([Device(device_id="M-1", name="Lab", rated_power=1500)])
    bus = NotificationBus([LogSink(), PersistenceSink(store)])
    scheduler = SampleScheduler(
        registry=store, counters=store, samples=store,
        engine=RuleEngine(build_default_rules()), bus=bus,
    )
    scheduler.run(duration_s=30)
"""

from __future__ import annotations

import importlib
from typing import Any

from energy_simulator.bus import NotificationBus
from energy_simulator.exceptions import AlertNotFoundError, ConfigurationError, EnergySimulatorError
from energy_simulator.generator import AbnormalGenerator, FaultKind, NormalGenerator, TelemetryGenerator
from energy_simulator.models import AlertEvent, AlertKind, Device, DeviceStatus, TelemetrySample
from energy_simulator.rules import (
    PowerOverloadRule,
    Rule,
    RuleEngine,
    RuleSettings,
    VoltageAbnormalRule,
    build_default_rules,
)
from energy_simulator.scheduler import RoundReport, SampleScheduler
from energy_simulator.stores import InMemoryStore

__all__ = [
    "AbnormalGenerator",
    "AlertEvent",
    "AlertKind",
    "AlertNotFoundError",
    "ConfigurationError",
    "Device",
    "DeviceStatus",
    "EnergySimulatorError",
    "FaultKind",
    "InMemoryStore",
    "NormalGenerator",
    "NotificationBus",
    "PowerOverloadRule",
    "RoundReport",
    "Rule",
    "RuleEngine",
    "RuleSettings",
    "SampleScheduler",
    "TelemetryGenerator",
    "TelemetrySample",
    "VoltageAbnormalRule",
    "build_default_rules",
]

__version__ = "0.1.0"


def __getattr__(name: str) -> Any:
    """Lazy-import components that require optional dependencies."""
    _lazy = {
        "SQLStore": "energy_simulator.database",
    }
    if name in _lazy:
        mod = importlib.import_module(_lazy[name])
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
