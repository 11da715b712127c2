"""Tests for energy_simulator.sinks.factory - create_sink / register_sink."""

from __future__ import annotations

import pytest

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.sinks.console import ConsoleSink
from energy_simulator.sinks.factory import _SINK_REGISTRY, available_sinks, create_sink, register_sink
from energy_simulator.sinks.log import LogSink
from energy_simulator.sinks.persistence import PersistenceSink
from energy_simulator.stores import InMemoryStore


class TestCreateSink:
    """Config-dict driven instantiation."""

    def test_log(self) -> None:
        sink = create_sink({"type": "log", "level": "ERROR"})
        assert isinstance(sink, LogSink)

    def test_console_with_options(self) -> None:
        sink = create_sink({"type": "Console", "fmt": "json", "name": "stdout"})
        assert isinstance(sink, ConsoleSink)
        assert sink.name == "stdout"

    def test_persistence_gets_store_from_context(self) -> None:
        store = InMemoryStore()
        sink = create_sink({"type": "persistence"}, alert_store=store)
        assert isinstance(sink, PersistenceSink)

    def test_context_not_forced_on_other_sinks(self) -> None:
        sink = create_sink({"type": "log"}, alert_store=InMemoryStore())
        assert isinstance(sink, LogSink)

    def test_config_dict_not_mutated(self) -> None:
        cfg = {"type": "log"}
        create_sink(cfg)
        assert cfg == {"type": "log"}

    def test_missing_type(self) -> None:
        with pytest.raises(ConfigurationError, match="type"):
            create_sink({"fmt": "json"})

    def test_unknown_type(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown sink type 'sms'"):
            create_sink({"type": "sms"})

    def test_bad_option(self) -> None:
        with pytest.raises(ConfigurationError, match="console"):
            create_sink({"type": "console", "colour": "red"})

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ConfigurationError, match="log level"):
            create_sink({"type": "log", "level": "LOUD"})

    def test_persistence_without_store(self) -> None:
        with pytest.raises(ConfigurationError):
            create_sink({"type": "persistence"})


class TestRegisterSink:
    """Custom sink types."""

    def test_register_and_create(self) -> None:
        register_sink("Stdout", "energy_simulator.sinks.console", "ConsoleSink")
        try:
            assert "stdout" in available_sinks()
            assert isinstance(create_sink({"type": "stdout"}), ConsoleSink)
        finally:
            _SINK_REGISTRY.pop("stdout", None)

    def test_available_sinks_is_copy(self) -> None:
        sinks = available_sinks()
        assert {"log", "persistence", "console", "callback"} <= set(sinks)
        sinks.pop("log")
        assert "log" in available_sinks()
