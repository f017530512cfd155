"""
Unit tests for the FireBoard API models and value formatting
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fireboard2mqtt.models import (
    DegreeType, Device, DriveAttributes, DriveMode, DriveStatus,
    derive_drive_mode, format_degree_type,
)
from fireboard2mqtt.utils import format_number, fraction_to_pct


DEVICE_JSON = {
    "id": 4242,
    "uuid": "0b1c2d3e-uuid",
    "title": "Backyard Smoker",
    "hardware_id": "FB2ABC123",
    "version": "1.2.3",
    "channel_count": 6,
    "degreetype": 2,
    "model": "FBX2",
    "channels": [
        {"channel": 1, "channel_label": "Pit", "last_templog": {"temp": 225.0}},
        {"channel": 2, "channel_label": "Brisket", "last_templog": None},
    ],
    "latest_temps": [{"temp": 225.0, "channel": 1}],
    "device_log": {
        "date": "2024-05-01T12:00:00Z",
        "macNIC": "aa:bb:cc:dd:ee:ff",
        "onboardTemp": 31.5,
        "vBattPer": 0.87,
        "internalIP": "10.0.0.5",
    },
}


class TestDeviceModel:
    """Test parsing of devices.json entries"""

    def test_parse_api_payload(self):
        device = Device.model_validate(DEVICE_JSON)

        assert device.hardware_id == "FB2ABC123"
        assert device.degreetype == DegreeType.FAHRENHEIT
        assert device.device_log.mac_nic == "aa:bb:cc:dd:ee:ff"
        assert device.device_log.v_batt_per == 0.87
        assert device.device_log.onboard_temp == 31.5
        assert device.channels[0].last_templog.temp == 225.0
        assert device.channels[1].last_templog is None
        assert device.unit_of_measurement == "°F"

    def test_naive_date_is_made_aware(self):
        payload = dict(DEVICE_JSON, device_log=dict(DEVICE_JSON["device_log"], date="2024-05-01T12:00:00"))
        device = Device.model_validate(payload)

        assert device.device_log.date.tzinfo is not None

    def test_missing_hardware_id(self):
        payload = {k: v for k, v in DEVICE_JSON.items() if k != "hardware_id"}
        with pytest.raises(ValidationError):
            Device.model_validate(payload)


class TestDegreeType:
    def test_format(self):
        assert format_degree_type(DegreeType.CELSIUS) == "°C"
        assert format_degree_type(DegreeType.FAHRENHEIT) == "°F"


class TestDriveMode:
    """Test drive mode derivation"""

    def test_auto_when_setpoint_at_least_100(self):
        assert derive_drive_mode(100.0, 0.0) == DriveMode.AUTO
        assert derive_drive_mode(225.0, 0.4) == DriveMode.AUTO

    def test_manual_when_driving_below_100(self):
        assert derive_drive_mode(50.0, 0.5) == DriveMode.MANUAL

    def test_off(self):
        assert derive_drive_mode(50.0, 0.0) == DriveMode.OFF

    def test_reported_mode_is_ignored(self):
        drivelog = DriveStatus(setpoint=50.0, driveper=0.0, modetype="auto")
        assert drivelog.mode == DriveMode.OFF

    def test_wire_values(self):
        assert [m.value for m in DriveMode] == ["off", "manual", "auto"]


class TestDriveAttributes:
    def test_payload(self):
        drivelog = DriveStatus(setpoint=225.0, driveper=0.3, lidpaused=True, tiedchannel=1)
        payload = json.loads(DriveAttributes.from_drivelog(drivelog).to_payload())

        assert payload == {"modetype": "auto", "setpoint": 225.0, "tiedchannel": 1, "lid_paused": True}


class TestFormatting:
    """Test percentage and reading formatting"""

    def test_round_half_up(self):
        assert fraction_to_pct(0.755) == 76
        assert fraction_to_pct(0.745) == 75
        assert fraction_to_pct(0.005) == 1
        assert fraction_to_pct(0.0) == 0
        assert fraction_to_pct(1.0) == 100

    def test_clamped(self):
        assert fraction_to_pct(1.7) == 100
        assert fraction_to_pct(-0.2) == 0

    def test_format_number(self):
        assert format_number(225.0) == "225"
        assert format_number(72.5) == "72.5"
        assert format_number(-3.25) == "-3.25"
