"""Console sink - prints alerts to stdout.

Useful for debugging, demos, and verifying the pipeline is working.
"""

from __future__ import annotations

import sys
from typing import IO

from energy_simulator.models import AlertEvent
from energy_simulator.sinks.base import AlertSink

__all__ = ["ConsoleSink"]


class ConsoleSink(AlertSink):
    """Writes alerts to the console (stdout by default).

    Parameters:
        fmt: Output format - ``"text"`` (human-readable) or ``"json"``
             (one JSON object per alert).
        stream: Writable file-like object (defaults to ``sys.stdout``).
    """

    def __init__(
        self,
        *,
        fmt: str = "text",
        stream: IO[str] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name)
        self._fmt = fmt
        self._stream = stream or sys.stdout

    async def on_alert(self, alert: AlertEvent) -> None:
        if self._fmt == "json":
            self._stream.write(alert.to_json() + "\n")
        else:
            self._stream.write(
                f"[{alert.triggered_at:%Y-%m-%d %H:%M:%S}] "
                f"{alert.kind.value:<15s} {alert.device_id:<14s} "
                f"value={alert.value:>10.2f} threshold={alert.threshold:>10.2f}\n"
            )
        self._stream.flush()
