#!/usr/bin/env python3
"""CallbackSink examples -- 3 cases demonstrating lambda shortcuts, async
callbacks and alert aggregation.

Directly runnable (no external services required).

Usage::

    python examples/sinks/callback_sink_example.py           # Case 1 (default)
    python examples/sinks/callback_sink_example.py --case 2   # Async callback
    python examples/sinks/callback_sink_example.py --case 3   # Per-kind alert tally
"""

from __future__ import annotations

import argparse


def _build(bus, anomaly_frequency: int = 4):
    from energy_simulator import Device, InMemoryStore, RuleEngine, SampleScheduler, build_default_rules

    store = InMemoryStore(
        [
            Device(device_id="M-BLD01-R101", name="Library reading room", rated_power=1500),
            Device(device_id="M-BLD01-R102", name="Computer lab", rated_power=3000),
        ]
    )
    return SampleScheduler(
        registry=store,
        counters=store,
        samples=store,
        engine=RuleEngine(build_default_rules()),
        bus=bus,
        interval_s=0.5,
        anomaly_frequency=anomaly_frequency,
    )


# ---------------------------------------------------------------------------
# Case 1: Lambda shorthand -- simplest possible sink
# ---------------------------------------------------------------------------


def run_case_1() -> None:
    """A lambda registered straight on the bus is wrapped in a CallbackSink."""
    from energy_simulator import NotificationBus

    print("=== Case 1: Lambda shorthand ===\n")

    bus = NotificationBus()
    bus.register(lambda alert: print(f"  {alert.kind.label:<15s} {alert.device_name}"))

    _build(bus).run(duration_s=5)


# ---------------------------------------------------------------------------
# Case 2: Async callback -- auto-detected by CallbackSink
# ---------------------------------------------------------------------------


def run_case_2() -> None:
    """Async callbacks are awaited in the event loop instead of an executor."""
    import asyncio

    from energy_simulator import NotificationBus
    from energy_simulator.sinks import CallbackSink

    print("=== Case 2: Async callback ===\n")

    async def page_on_call(alert):
        # Simulate an async HTTP call to a paging service
        await asyncio.sleep(0.01)
        print(f"  [page] {alert.description}")

    bus = NotificationBus([CallbackSink(page_on_call)], sink_timeout_s=1.0)
    _build(bus).run(duration_s=5)


# ---------------------------------------------------------------------------
# Case 3: Aggregation -- running tally per alert kind
# ---------------------------------------------------------------------------


def run_case_3() -> None:
    """A stateful callback counting alerts by kind."""
    from collections import Counter

    from energy_simulator import NotificationBus

    print("=== Case 3: Per-kind alert tally ===\n")

    tally: Counter = Counter()

    def count(alert):
        tally[alert.kind] += 1

    bus = NotificationBus()
    bus.register(count)
    _build(bus, anomaly_frequency=2).run(duration_s=6)

    print()
    for kind, n in tally.most_common():
        print(f"  {kind.label:<15s} {n:>4d}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="CallbackSink examples")
    parser.add_argument("--case", type=int, default=1, choices=[1, 2, 3], help="Which example case to run (default: 1)")
    args = parser.parse_args()

    cases = {
        1: run_case_1,
        2: run_case_2,
        3: run_case_3,
    }
    cases[args.case]()


if __name__ == "__main__":
    main()
