"""Tests for energy_simulator.models - Device, TelemetrySample, AlertEvent."""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from energy_simulator.exceptions import ConfigurationError
from energy_simulator.models import AlertEvent, AlertKind, Device, DeviceStatus, TelemetrySample

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _make_alert(**overrides) -> AlertEvent:
    data = {
        "device_id": "M-001",
        "device_name": "Library meter",
        "kind": AlertKind.VOLTAGE_LOW,
        "value": 180.0,
        "threshold": 198.0,
        "description": "low",
        "triggered_at": datetime(2024, 5, 1, 12, 0),
    }
    data.update(overrides)
    return AlertEvent(**data)


# -----------------------------------------------------------------------
# Device
# -----------------------------------------------------------------------


class TestDevice:
    """Device model validation."""

    def test_defaults(self) -> None:
        d = Device(device_id="M-001", name="Meter", rated_power=1500)
        assert d.status is DeviceStatus.ONLINE
        assert d.rated_power == 1500.0
        assert d.building is None
        assert d.metadata == {}

    def test_status_from_string(self) -> None:
        d = Device(device_id="M-001", name="Meter", rated_power=100, status="OFFLINE")
        assert d.status is DeviceStatus.OFFLINE

    @pytest.mark.parametrize("rated", [0, -5, -0.1, float("nan"), float("inf"), "-inf"])
    def test_non_positive_rated_power_rejected(self, rated: float) -> None:
        with pytest.raises(ConfigurationError, match="positive"):
            Device(device_id="M-001", name="Meter", rated_power=rated)

    def test_missing_rated_power_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="required"):
            Device(device_id="M-001", name="Meter")

    def test_frozen(self) -> None:
        d = Device(device_id="M-001", name="Meter", rated_power=100)
        with pytest.raises(ValidationError):
            d.rated_power = 200


# -----------------------------------------------------------------------
# TelemetrySample
# -----------------------------------------------------------------------


class TestTelemetrySample:
    """TelemetrySample serialisation helpers."""

    def test_to_dict_is_json_safe(self) -> None:
        s = TelemetrySample(
            device_id="M-001",
            voltage=220.0,
            current=4.55,
            power=1000.0,
            cumulative_energy=1.234,
            collected_at=datetime(2024, 5, 1, 12, 0),
        )
        d = s.to_dict()
        assert d["collected_at"] == "2024-05-01T12:00:00"
        assert d["abnormal"] is False
        json.dumps(d)

    def test_from_dict(self) -> None:
        s = TelemetrySample.from_dict(
            {
                "device_id": "M-001",
                "voltage": 230.5,
                "current": 2.0,
                "power": 461.0,
                "cumulative_energy": 0.5,
                "collected_at": "2024-05-01T08:00:00",
                "abnormal": True,
            }
        )
        assert s.abnormal is True
        assert s.collected_at == datetime(2024, 5, 1, 8, 0)


# -----------------------------------------------------------------------
# AlertEvent
# -----------------------------------------------------------------------


class TestAlertEvent:
    """AlertEvent defaults and resolution."""

    def test_defaults(self) -> None:
        a = _make_alert()
        assert a.resolved is False
        assert a.resolved_at is None
        assert a.resolve_note is None
        assert a.alert_id is None

    def test_resolve(self) -> None:
        a = _make_alert()
        at = datetime(2024, 5, 1, 13, 0)
        a.resolve("breaker replaced", at=at)
        assert a.resolved is True
        assert a.resolved_at == at
        assert a.resolve_note == "breaker replaced"

    def test_resolve_defaults_to_now(self) -> None:
        a = _make_alert()
        before = datetime.now()
        a.resolve()
        assert a.resolved_at >= before

    def test_to_json_contains_kind(self) -> None:
        parsed = json.loads(_make_alert().to_json())
        assert parsed["kind"] == "VOLTAGE_LOW"


class TestAlertKind:
    def test_label(self) -> None:
        assert AlertKind.POWER_OVERLOAD.label == "Power Overload"
        assert AlertKind.VOLTAGE_HIGH.label == "Voltage High"
