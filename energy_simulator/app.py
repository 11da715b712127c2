"""Wire a store, rule engine, notification bus and scheduler from config."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from energy_simulator.bus import NotificationBus
from energy_simulator.config import SimulatorYAMLConfig, StoreConfig
from energy_simulator.exceptions import ConfigurationError
from energy_simulator.rules import RuleEngine, build_default_rules
from energy_simulator.scheduler import SampleScheduler
from energy_simulator.sinks.factory import create_sink
from energy_simulator.sinks.log import LogSink
from energy_simulator.sinks.persistence import PersistenceSink
from energy_simulator.stores import InMemoryStore

__all__ = ["SimulatorRuntime", "build_runtime", "create_store"]

logger = logging.getLogger("energy_simulator.app")


@dataclass
class SimulatorRuntime:
    """Everything a running simulator needs, built by :func:`build_runtime`."""

    store: object
    engine: RuleEngine
    bus: NotificationBus
    scheduler: SampleScheduler

    async def close(self) -> None:
        await self.store.close()


def create_store(config: StoreConfig):
    """Return an unconnected store for *config*."""
    store_type = config.type.lower().strip()
    if store_type == "memory":
        return InMemoryStore()
    if store_type == "sql":
        from energy_simulator.database import SQLStore

        return SQLStore(connection_string=config.connection_string)
    raise ConfigurationError(f"Unknown store type '{config.type}'.  Available: ['memory', 'sql']")


async def build_runtime(config: SimulatorYAMLConfig) -> SimulatorRuntime:
    """Connect the store, register the configured devices and assemble the pipeline.

    With no ``sinks`` section the bus gets a :class:`LogSink` and a
    :class:`PersistenceSink`.
    """
    store = create_store(config.store)
    await store.connect()
    for device in config.devices:
        await store.add_device(device)

    if config.sink_configs:
        sinks = [create_sink(sink_dict, alert_store=store) for sink_dict in config.sink_configs]
    else:
        sinks = [LogSink(), PersistenceSink(store)]
    bus = NotificationBus(sinks, sink_timeout_s=config.sink_timeout_s)

    engine = RuleEngine(build_default_rules(config.rules))
    rng = random.Random(config.seed) if config.seed is not None else None

    scheduler = SampleScheduler(
        registry=store,
        counters=store,
        samples=store,
        engine=engine,
        bus=bus,
        interval_s=config.interval_s,
        anomaly_frequency=config.anomaly_frequency,
        enabled=config.enabled,
        rng=rng,
    )
    logger.info("Runtime ready: %d devices, %d sinks, store=%s", len(config.devices), len(bus), config.store.type)
    return SimulatorRuntime(store=store, engine=engine, bus=bus, scheduler=scheduler)
