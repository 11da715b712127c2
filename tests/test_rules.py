"""Tests for energy_simulator.rules - built-in rules and the RuleEngine."""

from __future__ import annotations

from datetime import datetime

import pytest

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import AlertKind, Device, TelemetrySample
from energy_simulator.rules import (
    PowerOverloadRule,
    Rule,
    RuleEngine,
    RuleSettings,
    VoltageAbnormalRule,
    build_default_rules,
)

COLLECTED_AT = datetime(2024, 5, 1, 14, 30)

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _device(rated: float = 1000.0) -> Device:
    return Device(device_id="M-001", name="Lab", rated_power=rated)


def _sample(voltage: float = 220.0, power: float = 500.0) -> TelemetrySample:
    return TelemetrySample(
        device_id="M-001",
        voltage=voltage,
        current=round(power / voltage, 2),
        power=power,
        cumulative_energy=1.0,
        collected_at=COLLECTED_AT,
    )


# -----------------------------------------------------------------------
# PowerOverloadRule
# -----------------------------------------------------------------------


class TestPowerOverloadRule:
    """Overload fires strictly above rated_power x ratio."""

    def test_fires_above_threshold(self) -> None:
        alert = PowerOverloadRule().evaluate(_device(1000.0), _sample(220.0, 1300.0))
        assert alert is not None
        assert alert.kind is AlertKind.POWER_OVERLOAD
        assert alert.value == 1300.0
        assert alert.threshold == pytest.approx(1200.0)
        assert alert.device_id == "M-001"
        assert alert.device_name == "Lab"
        assert alert.triggered_at == COLLECTED_AT
        assert alert.resolved is False

    def test_not_at_equality(self) -> None:
        device = _device(1000.0)
        assert PowerOverloadRule().evaluate(device, _sample(220.0, device.rated_power * 1.2)) is None

    def test_not_below_threshold(self) -> None:
        assert PowerOverloadRule().evaluate(_device(1000.0), _sample(220.0, 900.0)) is None

    def test_custom_ratio(self) -> None:
        rule = PowerOverloadRule(overload_ratio=1.5)
        assert rule.evaluate(_device(1000.0), _sample(220.0, 1300.0)) is None
        assert rule.evaluate(_device(1000.0), _sample(220.0, 1501.0)) is not None

    def test_description(self) -> None:
        alert = PowerOverloadRule().evaluate(_device(1000.0), _sample(220.0, 1300.0))
        assert alert.description == (
            "Device [Lab] power overload: current power 1300.00W exceeds threshold 1200.00W "
            "(rated power 1000.00W x 120%)"
        )

    @pytest.mark.parametrize("ratio", [0, -1.2])
    def test_invalid_ratio(self, ratio: float) -> None:
        with pytest.raises(ConfigurationError):
            PowerOverloadRule(ratio)


# -----------------------------------------------------------------------
# VoltageAbnormalRule
# -----------------------------------------------------------------------


class TestVoltageAbnormalRule:
    """LOW below the lower bound, HIGH above the upper bound."""

    def test_low(self) -> None:
        alert = VoltageAbnormalRule().evaluate(_device(), _sample(180.0))
        assert alert is not None
        assert alert.kind is AlertKind.VOLTAGE_LOW
        assert alert.value == 180.0
        assert alert.threshold == 198.0
        assert "below the lower limit 198.00V" in alert.description
        assert "90% of standard voltage 220V" in alert.description

    def test_high(self) -> None:
        alert = VoltageAbnormalRule().evaluate(_device(), _sample(255.0))
        assert alert is not None
        assert alert.kind is AlertKind.VOLTAGE_HIGH
        assert alert.threshold == 242.0
        assert "above the upper limit 242.00V" in alert.description
        assert "110% of standard voltage" in alert.description

    @pytest.mark.parametrize("voltage", [198.0, 220.0, 242.0])
    def test_in_band_and_bounds_are_silent(self, voltage: float) -> None:
        assert VoltageAbnormalRule().evaluate(_device(), _sample(voltage)) is None

    def test_never_both(self) -> None:
        rule = VoltageAbnormalRule()
        for tenth in range(1500, 3001):
            voltage = tenth / 10
            alert = rule.evaluate(_device(), _sample(voltage))
            if voltage < 198.0:
                assert alert.kind is AlertKind.VOLTAGE_LOW
            elif voltage > 242.0:
                assert alert.kind is AlertKind.VOLTAGE_HIGH
            else:
                assert alert is None

    @pytest.mark.parametrize(
        ("lo", "hi"),
        [(0, 242), (198, 210), (230, 242), (242, 198)],
    )
    def test_invalid_bounds(self, lo: float, hi: float) -> None:
        with pytest.raises(ConfigurationError):
            VoltageAbnormalRule(lo, hi)


# -----------------------------------------------------------------------
# RuleEngine
# -----------------------------------------------------------------------


class _NamedRule(Rule):
    def __init__(self, name: str, fire: bool) -> None:
        self.name = name
        self.fire = fire
        self.calls = 0

    def evaluate(self, device, sample):
        self.calls += 1
        if not self.fire:
            return None
        return PowerOverloadRule(0.01).evaluate(device, sample)


class TestRuleEngine:
    """Engine runs every rule and keeps registry order."""

    def test_no_alerts_for_healthy_sample(self) -> None:
        engine = RuleEngine(build_default_rules())
        assert engine.evaluate(_device(), _sample(220.0, 500.0)) == []

    def test_both_rules_fire_in_order(self) -> None:
        engine = RuleEngine(build_default_rules())
        alerts = engine.evaluate(_device(1000.0), _sample(255.0, 1300.0))
        assert [a.kind for a in alerts] == [AlertKind.POWER_OVERLOAD, AlertKind.VOLTAGE_HIGH]

    def test_every_rule_evaluated(self) -> None:
        rules = [_NamedRule("a", False), _NamedRule("b", True), _NamedRule("c", False)]
        engine = RuleEngine(rules)
        alerts = engine.evaluate(_device(), _sample())
        assert len(alerts) == 1
        assert [r.calls for r in rules] == [1, 1, 1]

    def test_registry_is_immutable(self) -> None:
        rules = build_default_rules()
        engine = RuleEngine(rules)
        rules.clear()
        assert len(engine.rules) == 2
        assert isinstance(engine.rules, tuple)

    def test_settings_flow_into_rules(self) -> None:
        settings = RuleSettings(overload_ratio=1.5, min_voltage=200, max_voltage=240)
        overload, voltage = build_default_rules(settings)
        assert overload.overload_ratio == 1.5
        assert voltage.min_voltage == 200
        assert voltage.max_voltage == 240

    def test_logs_alerts(self, caplog) -> None:
        engine = RuleEngine(build_default_rules())
        with caplog.at_level("INFO", logger="energy_simulator.rules"):
            engine.evaluate(_device(), _sample(180.0))
        assert "VOLTAGE_LOW" in caplog.text
