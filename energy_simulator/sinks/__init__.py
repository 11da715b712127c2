"""Pluggable alert sinks for the energy simulator.

Import any sink you need directly from this package::

    from energy_simulator.sinks import LogSink, PersistenceSink
"""

from __future__ import annotations

from energy_simulator.sinks.base import AlertSink
from energy_simulator.sinks.callback import CallbackSink
from energy_simulator.sinks.console import ConsoleSink
from energy_simulator.sinks.factory import create_sink, register_sink
from energy_simulator.sinks.log import LogSink
from energy_simulator.sinks.persistence import PersistenceSink

__all__ = [
    "AlertSink",
    "CallbackSink",
    "ConsoleSink",
    "LogSink",
    "PersistenceSink",
    "create_sink",
    "register_sink",
]
