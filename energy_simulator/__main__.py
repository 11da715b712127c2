"""CLI entry point for the Energy Simulator.

Usage::

    energy-simulator run --duration 60
    energy-simulator run --config simulator.yaml
    energy-simulator trigger --config simulator.yaml --rounds 30
    energy-simulator list-sinks
    energy-simulator init-config --output simulator.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import textwrap

# ---------------------------------------------------------------------------
# Devices used when no --config is given
# ---------------------------------------------------------------------------
_DEMO_DEVICES: list[dict] = [
    {"device_id": "M-BLD01-R101", "name": "Library reading room", "rated_power": 1500, "building": "BLD01"},
    {"device_id": "M-BLD01-R102", "name": "Computer lab", "rated_power": 3000, "building": "BLD01"},
    {"device_id": "M-BLD02-R201", "name": "Lecture hall A", "rated_power": 2200, "building": "BLD02"},
]

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# Energy Simulator configuration

simulator:
  interval_s: 5.0                     # seconds between sampling rounds
  anomaly_frequency: 30               # every Nth sample is abnormal
  enabled: true
  # seed: 42                          # optional: reproducible readings
  # duration_s: 60                    # optional: auto-stop after N seconds
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR

rules:
  overload_ratio: 1.2                 # alert above rated_power x ratio
  min_voltage: 198                    # 90% of 220V
  max_voltage: 242                    # 110% of 220V

bus:
  # sink_timeout_s: 2.0               # optional: bound on a single sink call

store:
  type: memory                        # memory or sql
  # connection_string: sqlite+aiosqlite:///energy.db

devices:
  - device_id: M-BLD01-R101
    name: Library reading room
    rated_power: 1500
    building: BLD01
    room_number: R101

  - device_id: M-BLD01-R102
    name: Computer lab
    rated_power: 3000
    building: BLD01
    room_number: R102

  - device_id: M-BLD02-R201
    name: Lecture hall A
    rated_power: 2200
    status: OFFLINE                   # not sampled until brought ONLINE

# Sinks receive every alert, in order.
sinks:
  - type: log
    level: WARNING

  - type: persistence

  # - type: console
  #   fmt: json                       # text or json
"""


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          energy-simulator run --duration 60
          energy-simulator run --interval 1 --anomaly-frequency 5 --sink console
          energy-simulator run --config simulator.yaml
          energy-simulator trigger --config simulator.yaml --rounds 30
          energy-simulator list-sinks
          energy-simulator init-config --output simulator.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="energy-simulator",
        description="Simulate smart-meter telemetry, detect anomalies and publish alerts.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Run the sampling timer loop.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              energy-simulator run --duration 60
              energy-simulator run --config simulator.yaml --duration 120
        """),
    )
    _add_common_args(run_parser)
    run_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between rounds (default: 5.0, or the config value).",
    )
    run_parser.add_argument(
        "--anomaly-frequency",
        type=int,
        default=None,
        help="Every Nth sample is abnormal (default: 30, or the config value).",
    )
    run_parser.add_argument(
        "--duration",
        "-d",
        type=float,
        default=None,
        help="Run duration in seconds (default: indefinite, Ctrl-C to stop).",
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the random source for reproducible readings.",
    )
    run_parser.add_argument(
        "--sink",
        "-s",
        action="append",
        dest="sinks",
        choices=["log", "console"],
        help="Sink(s) to enable without --config (repeatable). Default: log.",
    )

    # -- trigger -----------------------------------------------------------
    trigger_parser = subparsers.add_parser(
        "trigger",
        help="Run one or more manual rounds and print their reports.",
    )
    _add_common_args(trigger_parser)
    trigger_parser.add_argument(
        "--rounds",
        "-n",
        type=int,
        default=1,
        help="Number of manual rounds to run (default: 1).",
    )

    # -- list-sinks --------------------------------------------------------
    subparsers.add_parser(
        "list-sinks",
        help="List all available sink types.",
    )

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser(
        "init-config",
        help="Generate a sample YAML configuration file.",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    # If the first arg is not a known subcommand but looks like a flag
    # (e.g. --config, -d), inject "run" so `energy-simulator -d 10` works.
    _known_commands = {"run", "trigger", "list-sinks", "init-config"}
    raw_args = argv if argv is not None else sys.argv[1:]
    if raw_args and raw_args[0] not in _known_commands and raw_args[0] not in ("-h", "--help"):
        raw_args = ["run", *list(raw_args)]

    args = parser.parse_args(raw_args)

    if args.command is None:
        parser.print_help()
        return

    # -- Dispatch ----------------------------------------------------------
    if args.command == "run":
        _cmd_run(args)
    elif args.command == "trigger":
        _cmd_trigger(args)
    elif args.command == "list-sinks":
        _cmd_list_sinks()
    elif args.command == "init-config":
        _cmd_init_config(args.output)
    else:
        parser.print_help()


def _add_common_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML config file. Default: three demo devices in memory.",
    )
    sub.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )


# ======================================================================
# Command implementations
# ======================================================================


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(args: argparse.Namespace):
    """Return the YAML config, or a demo config when ``--config`` is absent."""
    from energy_simulator.config import SimulatorYAMLConfig, load_yaml_config
    from energy_simulator.models import Device

    if args.config:
        cfg = load_yaml_config(args.config)
        logging.getLogger().setLevel(getattr(logging, cfg.log_level, logging.INFO))
        return cfg

    sinks = getattr(args, "sinks", None) or ["log"]
    return SimulatorYAMLConfig(
        devices=[Device(**d) for d in _DEMO_DEVICES],
        sink_configs=[{"type": name} for name in sinks] + [{"type": "persistence"}],
    )


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute the timer loop."""
    _setup_logging(args.log_level)
    cfg = _load_config(args)

    updates = {}
    if args.interval is not None:
        updates["interval_s"] = args.interval
    if args.anomaly_frequency is not None:
        updates["anomaly_frequency"] = args.anomaly_frequency
    if args.seed is not None:
        updates["seed"] = args.seed
    if updates:
        cfg = cfg.model_copy(update=updates)

    duration = args.duration if args.duration is not None else cfg.duration_s

    try:
        asyncio.run(_run_async(cfg, duration))
    except KeyboardInterrupt:
        logging.getLogger("energy_simulator").info("Interrupted by user")


async def _run_async(cfg, duration: float | None) -> None:
    from energy_simulator.app import build_runtime

    runtime = await build_runtime(cfg)
    try:
        await runtime.scheduler.run_async(duration_s=duration)
    finally:
        await runtime.close()


def _cmd_trigger(args: argparse.Namespace) -> None:
    """Run manual rounds and print one report line per round."""
    _setup_logging(args.log_level)
    cfg = _load_config(args)
    if args.rounds < 1:
        print(f"Error: --rounds must be >= 1, got {args.rounds}")
        sys.exit(1)
    asyncio.run(_trigger_async(cfg, args.rounds))


async def _trigger_async(cfg, rounds: int) -> None:
    from energy_simulator.app import build_runtime

    runtime = await build_runtime(cfg)
    try:
        await runtime.bus.connect_all()
        print(f"\n{'Round':>5} {'Devices':>7} {'Samples':>7} {'Abnormal':>8} {'Alerts':>6} {'Failed':>6}")
        print("-" * 44)
        for i in range(1, rounds + 1):
            report = await runtime.scheduler.trigger_once()
            if report is None:
                print(f"{i:>5} {'skipped (disabled)':>37}")
                continue
            print(
                f"{i:>5} {report.devices:>7} {report.samples:>7} "
                f"{report.abnormal_samples:>8} {report.alerts:>6} {len(report.failed_devices):>6}"
            )
        print("-" * 44)
        print(f"Total samples generated: {runtime.scheduler.generated_sample_count()}")
        print()
    finally:
        await runtime.bus.close_all()
        await runtime.close()


# -- list-sinks ------------------------------------------------------------


def _cmd_list_sinks() -> None:
    from energy_simulator.sinks.factory import available_sinks

    print(f"\n{'Sink Type':<14} {'Class':<20} {'Module'}")
    print("-" * 62)
    for name, (module_path, class_name) in available_sinks().items():
        print(f"{name:<14} {class_name:<20} {module_path}")
    print()


# -- init-config ------------------------------------------------------------


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG)
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


# ======================================================================
if __name__ == "__main__":
    main()
