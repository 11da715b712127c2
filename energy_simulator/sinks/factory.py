"""Sink factory – creates sink instances from configuration dicts.

Used by the config-driven (YAML) mode to instantiate sinks declaratively::

    sinks:
      - type: log
      - type: persistence
      - type: console
        fmt: json
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Any

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.sinks.base import AlertSink

__all__ = ["available_sinks", "create_sink", "register_sink"]

logger = logging.getLogger("energy_simulator.sinks.factory")

# Registry of type names → (module_path, class_name)
_SINK_REGISTRY: dict[str, tuple[str, str]] = {
    "log": ("energy_simulator.sinks.log", "LogSink"),
    "persistence": ("energy_simulator.sinks.persistence", "PersistenceSink"),
    "console": ("energy_simulator.sinks.console", "ConsoleSink"),
    "callback": ("energy_simulator.sinks.callback", "CallbackSink"),
}


def create_sink(config: dict[str, Any], **context: Any) -> AlertSink:
    """Create a sink instance from a configuration dict.

    The dict must contain a ``"type"`` key matching a registered sink
    name.  All other keys are forwarded as keyword arguments to the sink
    constructor.  *context* supplies runtime collaborators (for example
    ``alert_store``) that a YAML file cannot express; only the ones the
    sink constructor accepts are passed on.

    Example::

        sink = create_sink({"type": "persistence"}, alert_store=store)

    Raises:
        ConfigurationError: missing or unknown ``type``.
    """
    config = dict(config)  # shallow copy
    sink_type = config.pop("type", None)

    if sink_type is None:
        raise ConfigurationError("Sink config must include a 'type' key")

    sink_type = sink_type.lower().strip()

    if sink_type not in _SINK_REGISTRY:
        raise ConfigurationError(
            f"Unknown sink type '{sink_type}'.  "
            f"Available: {sorted(_SINK_REGISTRY)}"
        )

    module_path, class_name = _SINK_REGISTRY[sink_type]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)

    accepted = inspect.signature(cls).parameters
    for key, value in context.items():
        if key in accepted:
            config.setdefault(key, value)

    logger.debug("Creating %s with config: %s", class_name, config)
    try:
        return cls(**config)
    except TypeError as err:
        raise ConfigurationError(f"Invalid options for sink '{sink_type}': {err}") from err


def register_sink(name: str, module_path: str, class_name: str) -> None:
    """Register a custom sink type for config-driven instantiation.

    Example::

        from energy_simulator.sinks.factory import register_sink
        register_sink("pager", "mypackage.sinks", "PagerSink")

    Then in YAML::

        sinks:
          - type: pager
            service_key: abc123
    """
    _SINK_REGISTRY[name.lower().strip()] = (module_path, class_name)


def available_sinks() -> dict[str, tuple[str, str]]:
    """Return a copy of the sink registry."""
    return dict(_SINK_REGISTRY)
