"""Configuration loader for the simulator YAML format.

Parses YAML files with the following top-level sections::

    simulator:   # scheduler settings (interval_s, anomaly_frequency, …)
    rules:       # built-in rule thresholds
    bus:         # notification bus settings
    store:       # persistence backend
    devices:     # smart meters to simulate
    sinks:       # list of alert sink configs

Example:

.. code-block:: yaml

    simulator:
      interval_s: 5.0
      anomaly_frequency: 30

    rules:
      overload_ratio: 1.2
      min_voltage: 198
      max_voltage: 242

    devices:
      - device_id: M-BLD01-R101
        name: Library reading room
        rated_power: 1500

    sinks:
      - type: log
      - type: persistence
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import Device
from energy_simulator.rules import RuleSettings

__all__ = ["SimulatorYAMLConfig", "StoreConfig", "load_yaml_config"]

logger = logging.getLogger("energy_simulator.config")


class StoreConfig(BaseModel):
    """Persistence backend selection.

    Attributes:
        type: ``"memory"`` or ``"sql"``.
        connection_string: SQLAlchemy async URL for the ``sql`` backend.
    """

    type: str = "memory"
    connection_string: str = "sqlite+aiosqlite:///energy.db"


class SimulatorYAMLConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        interval_s: Seconds between timer rounds.
        anomaly_frequency: Every Nth sample is abnormal.
        enabled: Initial scheduler state.
        seed: Seed for the shared ``random.Random`` (``None`` = unseeded).
        duration_s: Optional run duration (seconds).
        log_level: Logging level string.
        rules: Built-in rule thresholds.
        sink_timeout_s: Per-sink delivery bound on the notification bus.
        store: Persistence backend.
        devices: Devices registered in the store at start-up.
        sink_configs: Raw dicts passed to the sink factory.
    """

    interval_s: float = 5.0
    anomaly_frequency: int = 30
    enabled: bool = True
    seed: int | None = None
    duration_s: float | None = None
    log_level: str = "INFO"
    rules: RuleSettings = Field(default_factory=RuleSettings)
    sink_timeout_s: float | None = None
    store: StoreConfig = Field(default_factory=StoreConfig)
    devices: list[Device] = Field(default_factory=list)
    sink_configs: list[dict[str, Any]] = Field(default_factory=list)


def load_yaml_config(path: str | Path) -> SimulatorYAMLConfig:
    """Load and validate a YAML configuration file.

    Raises:
        FileNotFoundError: *path* does not exist.
        ConfigurationError: a section holds invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    sim_section = raw.get("simulator") or {}
    bus_section = raw.get("bus") or {}

    try:
        config = SimulatorYAMLConfig(
            interval_s=float(sim_section.get("interval_s", 5.0)),
            anomaly_frequency=int(sim_section.get("anomaly_frequency", 30)),
            enabled=bool(sim_section.get("enabled", True)),
            seed=sim_section.get("seed"),
            duration_s=sim_section.get("duration_s"),
            log_level=str(sim_section.get("log_level", "INFO")).upper(),
            rules=RuleSettings(**(raw.get("rules") or {})),
            sink_timeout_s=bus_section.get("sink_timeout_s"),
            store=StoreConfig(**(raw.get("store") or {})),
            devices=_parse_devices(raw.get("devices") or []),
            sink_configs=raw.get("sinks") or [],
        )
    except (ValidationError, TypeError, ValueError) as err:
        raise ConfigurationError(f"Invalid config {path}: {err}") from err

    logger.info(
        "Loaded config: %d devices, %d sinks, interval %.1fs",
        len(config.devices),
        len(config.sink_configs),
        config.interval_s,
    )
    return config


def _parse_devices(device_dicts: list[dict[str, Any]]) -> list[Device]:
    """Convert raw YAML device dicts into ``Device`` instances."""
    devices: list[Device] = []
    seen: set[str] = set()
    for d in device_dicts:
        d = dict(d)  # copy
        if "device_id" not in d:
            raise ConfigurationError(f"Device entry is missing 'device_id': {d}")
        d["device_id"] = str(d["device_id"])
        d.setdefault("name", d["device_id"])
        if "status" in d:
            d["status"] = str(d["status"]).upper().strip()
        if d["device_id"] in seen:
            raise ConfigurationError(f"Duplicate device_id '{d['device_id']}'")
        seen.add(d["device_id"])
        devices.append(Device(**d))
    return devices
