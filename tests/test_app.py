"""Tests for energy_simulator.app - runtime wiring from config."""

from __future__ import annotations

from pathlib import Path

import pytest

from energy_simulator.app import build_runtime, create_store
from energy_simulator.config import SimulatorYAMLConfig, StoreConfig
from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import Device
from energy_simulator.sinks import ConsoleSink, LogSink, PersistenceSink
from energy_simulator.stores import InMemoryStore


def _config(**kwargs) -> SimulatorYAMLConfig:
    kwargs.setdefault(
        "devices",
        [
            Device(device_id="M-1", name="One", rated_power=1000),
            Device(device_id="M-2", name="Two", rated_power=2000, status="OFFLINE"),
        ],
    )
    return SimulatorYAMLConfig(**kwargs)


class TestCreateStore:
    def test_memory(self) -> None:
        assert isinstance(create_store(StoreConfig()), InMemoryStore)

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError, match="redis"):
            create_store(StoreConfig(type="redis"))

    def test_sql(self, tmp_path: Path) -> None:
        pytest.importorskip("sqlalchemy")
        from energy_simulator.database import SQLStore

        store = create_store(StoreConfig(type="SQL", connection_string=f"sqlite+aiosqlite:///{tmp_path}/e.db"))
        assert isinstance(store, SQLStore)


class TestBuildRuntime:
    """build_runtime assembles store, bus, engine and scheduler."""

    @pytest.mark.asyncio
    async def test_default_sinks(self) -> None:
        runtime = await build_runtime(_config())
        try:
            kinds = [type(s) for s in runtime.bus.sinks]
            assert kinds == [LogSink, PersistenceSink]
            assert len(runtime.engine.rules) == 2
            assert [d.device_id for d in await runtime.store.list_online_devices()] == ["M-1"]
        finally:
            await runtime.close()

    @pytest.mark.asyncio
    async def test_configured_sinks_and_round(self) -> None:
        cfg = _config(
            seed=7,
            anomaly_frequency=2,
            sink_configs=[{"type": "console", "fmt": "json"}, {"type": "persistence"}],
        )
        runtime = await build_runtime(cfg)
        try:
            assert [type(s) for s in runtime.bus.sinks] == [ConsoleSink, PersistenceSink]
            report = await runtime.scheduler.trigger_once()
            assert report.samples == 1
            assert runtime.scheduler.generated_sample_count() == 1
        finally:
            await runtime.close()

    @pytest.mark.asyncio
    async def test_sql_runtime(self, tmp_path: Path) -> None:
        pytest.importorskip("sqlalchemy")
        pytest.importorskip("aiosqlite")
        cfg = _config(store=StoreConfig(type="sql", connection_string=f"sqlite+aiosqlite:///{tmp_path}/e.db"))
        runtime = await build_runtime(cfg)
        try:
            report = await runtime.scheduler.trigger_once()
            assert report.samples == 1
            assert len(await runtime.store.list_samples("M-1")) == 1
        finally:
            await runtime.close()

    @pytest.mark.asyncio
    async def test_unknown_sink_type(self) -> None:
        with pytest.raises(ConfigurationError):
            await build_runtime(_config(sink_configs=[{"type": "pager"}]))
