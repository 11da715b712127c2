"""Sample scheduler - drives generation rounds across all online devices.

A round lists the ONLINE devices, generates one sample per device,
persists it, runs the rule engine and publishes any alerts on the
notification bus.  Rounds are started by the timer loop (:meth:`run` /
:meth:`run_async`) or on demand (:meth:`trigger_once`); only one round is
ever in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import signal
import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from energy_simulator.bus import NotificationBus
from energy_simulator.exceptions import ConfigurationError
from energy_simulator.generator import (
    DEFAULT_INTERVAL_S,
    AbnormalGenerator,
    NormalGenerator,
    TelemetryGenerator,
)
from energy_simulator.models import Device
from energy_simulator.rules import RuleEngine
from energy_simulator.stores import CounterStore, DeviceRegistry, SampleStore

__all__ = ["RoundReport", "SampleScheduler"]

logger = logging.getLogger("energy_simulator.scheduler")


class RoundReport(BaseModel):
    """Outcome of one generation round.

    Attributes:
        source: ``"timer"`` or ``"manual"``.
        devices: Online devices found at the start of the round.
        samples: Samples generated and persisted.
        abnormal_samples: How many of those came from the abnormal generator.
        alerts: Alerts produced by the rule engine.
        failed_devices: Device ids whose processing raised.
        started_at: Wall-clock start.
        duration_s: Round duration.
    """

    source: str
    devices: int = 0
    samples: int = 0
    abnormal_samples: int = 0
    alerts: int = 0
    failed_devices: list[str] = Field(default_factory=list)
    started_at: datetime
    duration_s: float = 0.0


class SampleScheduler:
    """Owns the simulator's runtime state and the round execution path.

    Example::

        store = InMemoryStore(devices)
        bus = NotificationBus([LogSink(), PersistenceSink(store)])
        scheduler = SampleScheduler(
            registry=store, counters=store, samples=store,
            engine=RuleEngine(build_default_rules()), bus=bus,
        )
        scheduler.run(duration_s=60)

    Parameters:
        registry / counters / samples:
            Persistence collaborators (see :mod:`energy_simulator.stores`).
        engine: Rule engine evaluated against every sample.
        bus: Notification bus receiving every alert.
        interval_s: Seconds between timer rounds; also the integration
            interval of the default generators.
        anomaly_frequency: Every Nth sample (global counter across all
            devices) uses the abnormal generator.
        enabled: Initial state of the enable toggle.
        rng: Shared randomness source for the default generators.
        normal / abnormal: Override the generator variants.
        clock: Returns the collection timestamp for a sample.
    """

    def __init__(
        self,
        *,
        registry: DeviceRegistry,
        counters: CounterStore,
        samples: SampleStore,
        engine: RuleEngine,
        bus: NotificationBus,
        interval_s: float = DEFAULT_INTERVAL_S,
        anomaly_frequency: int = 30,
        enabled: bool = True,
        rng: random.Random | None = None,
        normal: TelemetryGenerator | None = None,
        abnormal: TelemetryGenerator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if interval_s <= 0:
            raise ConfigurationError(f"interval_s must be positive, got {interval_s}")
        if anomaly_frequency < 1:
            raise ConfigurationError(f"anomaly_frequency must be >= 1, got {anomaly_frequency}")

        self._registry = registry
        self._counters = counters
        self._samples = samples
        self._engine = engine
        self._bus = bus
        self._interval_s = interval_s
        self._anomaly_frequency = anomaly_frequency
        self._clock = clock

        rng = rng or random.Random()
        self._normal = normal or NormalGenerator(rng=rng, interval_s=interval_s)
        self._abnormal = abnormal or AbnormalGenerator(rng=rng, interval_s=interval_s)

        self._enabled = threading.Event()
        if enabled:
            self._enabled.set()
        self._round_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._sample_count = 0
        self._rounds_completed = 0
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None

        logger.info(
            "SampleScheduler initialised: %s, interval %.1fs, abnormal sample every %d, %d sinks",
            "enabled" if enabled else "disabled",
            interval_s,
            anomaly_frequency,
            len(bus),
        )

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def set_enabled(self, enabled: bool) -> None:
        """Allow or prevent future rounds.  An in-flight round always finishes."""
        if enabled:
            self._enabled.set()
        else:
            self._enabled.clear()
        logger.info("Simulator %s", "enabled" if enabled else "disabled")

    def is_enabled(self) -> bool:
        return self._enabled.is_set()

    def generated_sample_count(self) -> int:
        with self._counter_lock:
            return self._sample_count

    @property
    def round_in_flight(self) -> bool:
        return self._round_lock.locked()

    def status(self) -> dict[str, Any]:
        return {
            "enabled": self.is_enabled(),
            "generated_sample_count": self.generated_sample_count(),
            "rounds_completed": self._rounds_completed,
            "round_in_flight": self.round_in_flight,
        }

    async def trigger_once(self) -> RoundReport | None:
        """Run one round now.

        Returns ``None`` without doing anything when the scheduler is
        disabled or another round is already in flight.
        """
        logger.info("Manual round triggered")
        return await self._run_round("manual")

    # ------------------------------------------------------------------
    # Timer loop
    # ------------------------------------------------------------------

    def run(self, duration_s: float | None = None) -> None:
        """Blocking entry point - starts the event loop.

        Works transparently inside environments that already have a running
        event loop (Jupyter, IPython) by spawning a dedicated background
        thread with its own loop.

        Parameters:
            duration_s: If provided, stop automatically after this many
                        seconds.  ``None`` means run until Ctrl-C.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and loop.is_running():
            exc: list[BaseException | None] = [None]

            def _target() -> None:
                try:
                    asyncio.run(self.run_async(duration_s=duration_s))
                except KeyboardInterrupt:
                    logger.info("Interrupted by user")
                except BaseException as e:
                    exc[0] = e

            t = threading.Thread(target=_target, daemon=True)
            t.start()
            t.join()
            if exc[0] is not None:
                raise exc[0]
        else:
            try:
                asyncio.run(self.run_async(duration_s=duration_s))
            except KeyboardInterrupt:
                logger.info("Interrupted by user")

    async def run_async(self, duration_s: float | None = None) -> None:
        """Async entry point - fires a timer round every ``interval_s`` seconds."""
        logger.info(
            "Starting scheduler: interval %.1fs, %d sinks",
            self._interval_s,
            len(self._bus),
        )
        await self._bus.connect_all()

        self._running = True
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        # NotImplementedError: raised on Windows where signal handlers are unsupported.
        # RuntimeError: raised when running in a non-main thread.
        stop_event = asyncio.Event()
        self._loop, self._stop_event = loop, stop_event
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, stop_event.set)

        try:
            while self._running:
                if duration_s is not None and loop.time() - start_time >= duration_s:
                    logger.info("Duration reached (%.1fs) - stopping", duration_s)
                    break

                if stop_event.is_set():
                    logger.info("Stop signal received - shutting down")
                    break

                tick_start = loop.time()
                await self._run_round("timer")

                # Sleep for remaining interval, waking early on a stop signal
                remaining = self._interval_s - (loop.time() - tick_start)
                if duration_s is not None:
                    remaining = min(remaining, duration_s - (loop.time() - start_time))
                if remaining > 0:
                    with contextlib.suppress(TimeoutError):
                        await asyncio.wait_for(stop_event.wait(), timeout=remaining)

        except asyncio.CancelledError:
            logger.info("Scheduler cancelled")
        finally:
            self._running = False
            self._loop = self._stop_event = None
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(sig)
            await self._bus.close_all()
            logger.info("Scheduler stopped after %d rounds", self._rounds_completed)

    def stop(self) -> None:
        """Ask the timer loop to exit after the current round.

        Wakes the loop from its inter-round sleep.  Safe to call from any
        thread.
        """
        self._running = False
        loop, stop_event = self._loop, self._stop_event
        if loop is None or stop_event is None or loop.is_closed():
            return
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if current is loop:
            stop_event.set()
        else:
            loop.call_soon_threadsafe(stop_event.set)

    # ------------------------------------------------------------------
    # Round execution
    # ------------------------------------------------------------------

    async def _run_round(self, source: str) -> RoundReport | None:
        if not self._enabled.is_set():
            logger.debug("Scheduler disabled - skipping %s round", source)
            return None

        if not self._round_lock.acquire(blocking=False):
            logger.debug("Round already in flight - ignoring %s round", source)
            return None

        try:
            report = RoundReport(source=source, started_at=self._clock())
            t0 = time.perf_counter()

            devices = await self._registry.list_online_devices()
            report.devices = len(devices)
            if not devices:
                logger.debug("No online devices - skipping round")
                return report

            logger.debug("Generating samples for %d online devices", len(devices))
            await asyncio.gather(*(self._process_device(device, report) for device in devices))

            report.duration_s = time.perf_counter() - t0
            self._rounds_completed += 1
            logger.debug(
                "Round complete: %d samples, %d alerts, %d failures, total generated %d",
                report.samples,
                report.alerts,
                len(report.failed_devices),
                self.generated_sample_count(),
            )
            return report
        finally:
            self._round_lock.release()

    async def _process_device(self, device: Device, report: RoundReport) -> None:
        try:
            last_energy = await self._counters.last_cumulative_energy(device.device_id)

            generator = self._select_generator()
            if generator.abnormal:
                logger.info("Fault injection: abnormal sample for device %s", device.device_id)

            sample = generator.generate(device, last_energy, self._clock())
            await self._samples.save_sample(sample)
            report.samples += 1
            report.abnormal_samples += int(sample.abnormal)

            logger.debug(
                "Device %s - %.2fV %.2fA %.2fW %.3fkWh abnormal=%s",
                device.device_id,
                sample.voltage,
                sample.current,
                sample.power,
                sample.cumulative_energy,
                sample.abnormal,
            )

            for alert in self._engine.evaluate(device, sample):
                report.alerts += 1
                await self._bus.notify(alert)

        except Exception as exc:
            report.failed_devices.append(device.device_id)
            logger.error("Sample generation failed for device %s: %s", device.device_id, exc, exc_info=True)

    def _select_generator(self) -> TelemetryGenerator:
        with self._counter_lock:
            self._sample_count += 1
            count = self._sample_count
        return self._abnormal if count % self._anomaly_frequency == 0 else self._normal
