"""
Unit tests for device, channel and drive availability
"""

from datetime import datetime, timedelta, timezone

from fireboard2mqtt.availability import (
    availability_payload, channel_online, device_online, drive_availability,
)
from fireboard2mqtt.models import Channel, Device, DriveStatus

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_device(latest_temps=None, log_age=timedelta(hours=1)):
    return Device.model_validate({
        "id": 1,
        "uuid": "uuid-1",
        "title": "Smoker",
        "hardware_id": "FB1",
        "latest_temps": latest_temps or [],
        "device_log": {"date": (NOW - log_age).isoformat(), "vBattPer": 0.5},
    })


class TestDeviceOnline:
    """Test the freshness rules"""

    def test_online_with_latest_temps(self):
        device = make_device(latest_temps=[{"temp": 70.0}], log_age=timedelta(days=3))
        assert device_online(device, 5, now=NOW) is True

    def test_online_with_fresh_log(self):
        device = make_device(log_age=timedelta(minutes=4, seconds=59))
        assert device_online(device, 5, now=NOW) is True

    def test_offline_at_window_edge(self):
        device = make_device(log_age=timedelta(minutes=5))
        assert device_online(device, 5, now=NOW) is False

    def test_offline_with_stale_log(self):
        device = make_device(log_age=timedelta(hours=2))
        assert device_online(device, 5, now=NOW) is False

    def test_window_is_configurable(self):
        device = make_device(log_age=timedelta(minutes=8))
        assert device_online(device, 10, now=NOW) is True

    def test_default_now(self):
        device = Device.model_validate({
            "id": 1, "uuid": "u", "title": "t", "hardware_id": "FB1",
            "device_log": {"date": datetime.now(timezone.utc).isoformat()},
        })
        assert device_online(device) is True


class TestChannelOnline:
    def test_with_reading(self):
        assert channel_online(Channel(channel=1, last_templog={"temp": 70.0})) is True

    def test_without_reading(self):
        assert channel_online(Channel(channel=1)) is False


class TestDriveAvailability:
    def test_online_with_log(self):
        assert drive_availability(True, DriveStatus(setpoint=0, driveper=0)) == "online"

    def test_offline_without_log(self):
        assert drive_availability(True, None) == "offline"

    def test_unchanged_on_fetch_error(self):
        assert drive_availability(False, None) is None


def test_availability_payload():
    assert availability_payload(True) == "online"
    assert availability_payload(False) == "offline"
