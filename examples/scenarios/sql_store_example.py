#!/usr/bin/env python3
"""SQL store example -- persist samples and alerts in SQLite, then query
and resolve them the way an operator console would.

Requires the database extra::

    pip install energy-simulator[database]

Usage::

    python examples/scenarios/sql_store_example.py
"""

from __future__ import annotations

import asyncio
import os


async def main() -> None:
    from energy_simulator import Device, NotificationBus, RuleEngine, SampleScheduler, build_default_rules
    from energy_simulator.database import SQLStore
    from energy_simulator.sinks import LogSink, PersistenceSink

    print("=== SQL Store Example ===\n")

    db_path = "output/energy_example.db"
    os.makedirs("output", exist_ok=True)
    if os.path.exists(db_path):
        os.remove(db_path)

    store = SQLStore(connection_string=f"sqlite+aiosqlite:///{db_path}")
    await store.connect()
    try:
        for device in (
            Device(device_id="M-BLD01-R101", name="Library reading room", rated_power=1500),
            Device(device_id="M-BLD01-R102", name="Computer lab", rated_power=3000),
            Device(device_id="M-BLD02-R201", name="Lecture hall A", rated_power=2200),
        ):
            await store.add_device(device)

        scheduler = SampleScheduler(
            registry=store,
            counters=store,
            samples=store,
            engine=RuleEngine(build_default_rules()),
            bus=NotificationBus([LogSink(), PersistenceSink(store)]),
            anomaly_frequency=5,
        )

        # Twenty manual rounds instead of waiting on the timer
        for _ in range(20):
            await scheduler.trigger_once()

        print(f"  Samples generated: {scheduler.generated_sample_count()}")
        print(f"  Energy M-BLD01-R102: {await store.last_cumulative_energy('M-BLD01-R102'):.3f} kWh\n")

        for kind, n in (await store.count_alerts_by_kind()).items():
            print(f"  {kind.label:<15s} {n:>3d}")

        open_alerts = await store.list_alerts(unresolved_only=True, limit=3)
        for alert in open_alerts:
            await store.resolve_alert(alert.alert_id, "acknowledged by example")
        print(f"\n  Resolved {len(open_alerts)} alerts; {len(await store.list_alerts(unresolved_only=True))} still open")
    finally:
        await store.close()

    print(f"\n  Database written to {db_path}")


if __name__ == "__main__":
    asyncio.run(main())
