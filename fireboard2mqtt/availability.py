from datetime import datetime, timedelta
from typing import Optional

from fireboard2mqtt.constants import FIREBOARD_DEVICELOG_UPDATE_INTERVAL_MINUTES, OFFLINE, ONLINE
from fireboard2mqtt.models import Channel, Device, DriveStatus


def availability_payload(online: bool) -> str:
    return ONLINE if online else OFFLINE


def device_online(
    device: Device,
    freshness_window_minutes: int = FIREBOARD_DEVICELOG_UPDATE_INTERVAL_MINUTES,
    now: Optional[datetime] = None,
) -> bool:
    """
    A device is online when the fetch carried at least one live temperature,
    or when its last device log is younger than the freshness window.
    """
    if device.latest_temps:
        return True
    now = now or datetime.now().astimezone()
    return now - device.device_log.date < timedelta(minutes=freshness_window_minutes)


def channel_online(channel: Channel) -> bool:
    return channel.last_templog is not None


def drive_availability(fetch_ok: bool, drivelog: Optional[DriveStatus]) -> Optional[str]:
    """
    Drive availability payload for this cycle.

    Returns None when the drivelog request failed: the last published value
    stays in place instead of flapping on a transient error.
    """
    if not fetch_ok:
        return None
    return availability_payload(drivelog is not None)
