"""
FireBoard watcher.

Polls the FireBoard cloud API and turns every fetched device into MQTT state
and Home Assistant discovery messages. Each poll republishes everything from
scratch; retained messages on the broker make that idempotent.
"""
import asyncio
import logging
from typing import Optional

from fireboard2mqtt.api import FireboardApiClient
from fireboard2mqtt.availability import availability_payload, channel_online, device_online, drive_availability
from fireboard2mqtt.config import BridgeConfig
from fireboard2mqtt.constants import OFF, OFFLINE, ON, ONLINE
from fireboard2mqtt.exceptions import FireboardError
from fireboard2mqtt.ha.discovery import HADiscoveryEmitter
from fireboard2mqtt.models import Device, DriveAttributes, DriveMode
from fireboard2mqtt.mqtt import LastWill, MqttAction, Publish, QOS_AT_LEAST_ONCE, QOS_AT_MOST_ONCE
from fireboard2mqtt.topics import TopicNamer
from fireboard2mqtt.utils import format_number, fraction_to_pct

log = logging.getLogger(__name__)


class FireboardWatcher:
    def __init__(self, cfg: BridgeConfig, client: FireboardApiClient, queue: "asyncio.Queue[MqttAction]"):
        self.cfg = cfg
        self.client = client
        self.queue = queue
        self.drive_enabled = cfg.fireboard.enable_drive
        self.topics = TopicNamer(cfg.mqtt.base_topic, cfg.mqtt.discovery_topic)
        self.discovery = HADiscoveryEmitter(self.topics, drive_enabled=self.drive_enabled)
        self.online_device_count = 0

    def get_last_will(self) -> LastWill:
        return LastWill(topic=self.topics.bridge_availability(), payload=OFFLINE.encode())

    async def _publish(self, topic: str, payload, qos: int = QOS_AT_MOST_ONCE, retain: bool = False) -> None:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        # blocks while the sink is behind
        await self.queue.put(Publish(topic=topic, qos=qos, retain=retain, payload=payload))

    async def init(self) -> None:
        """Announce the bridge itself as online."""
        await self._publish(self.topics.bridge_availability(), ONLINE, qos=QOS_AT_LEAST_ONCE, retain=True)

    async def update_discovery(self, device: Device) -> None:
        for topic, document in self.discovery.build_discovery(device):
            await self._publish(topic, document.to_payload(), qos=QOS_AT_MOST_ONCE, retain=True)

    async def update(self) -> None:
        """Run one poll cycle."""
        log.info("checking fireboard api for updates")
        try:
            devices = await self.client.list_devices()
        except FireboardError as e:
            # keep the previous online count so one bad poll doesn't drop us to the idle interval
            log.error(f"Error fetching devices: {e}")
            return
        log.info(f"{len(devices)} devices fetched successfully")

        self.online_device_count = 0
        for device in devices:
            await self._update_device(device)

    async def _update_device(self, device: Device) -> None:
        hardware_id = device.hardware_id
        log.debug(f"found device: {hardware_id}")

        online = device_online(device, self.cfg.polling.freshness_window_minutes)

        await self._publish(
            self.topics.device_availability(hardware_id),
            availability_payload(online),
            qos=QOS_AT_LEAST_ONCE,
            retain=True,
        )

        await self.update_discovery(device)

        if online:
            self.online_device_count += 1
            await self._publish(
                self.topics.device_battery(hardware_id),
                str(fraction_to_pct(device.device_log.v_batt_per)),
                qos=QOS_AT_MOST_ONCE,
                retain=True,
            )

            for channel in device.channels:
                await self._publish(
                    self.topics.channel_availability(hardware_id, channel.channel),
                    availability_payload(channel_online(channel)),
                    qos=QOS_AT_LEAST_ONCE,
                    retain=True,
                )
                # a channel that never reported gets no state at all, not an empty one
                if channel.last_templog is not None:
                    await self._publish(
                        self.topics.channel_state(hardware_id, channel.channel),
                        format_number(channel.last_templog.temp),
                    )

        if self.drive_enabled:
            await self._update_drive(device)
        else:
            await self._publish(self.topics.drive_availability(hardware_id), OFFLINE, retain=True)

    async def _update_drive(self, device: Device) -> None:
        hardware_id = device.hardware_id
        drivelog = None
        fetch_ok = True
        try:
            drivelog = await self.client.get_realtime_drivelog(device.uuid)
        except FireboardError as e:
            log.error(f"Error fetching realtime drivelog for {hardware_id}: {e}")
            fetch_ok = False

        availability = drive_availability(fetch_ok, drivelog)
        if availability is None:
            return
        await self._publish(self.topics.drive_availability(hardware_id), availability)
        if drivelog is None:
            return
        log.debug(f"drivelog: {drivelog!r}")

        mode = drivelog.mode
        log.debug(f"drivelog modetype: {mode.value}")

        await self._publish(self.topics.drive_state(hardware_id), str(fraction_to_pct(drivelog.driveper)))
        await self._publish(
            self.topics.drive_attributes(hardware_id),
            DriveAttributes.from_drivelog(drivelog).to_payload(),
        )
        await self._publish(self.topics.drive_mode(hardware_id), mode.value)

        if mode == DriveMode.AUTO:
            await self._publish(self.topics.drive_setpoint(hardware_id), format_number(drivelog.setpoint))
            await self._publish(self.topics.drive_setpoint_availability(hardware_id), ONLINE)
        else:
            await self._publish(self.topics.drive_setpoint(hardware_id), "")
            await self._publish(self.topics.drive_setpoint_availability(hardware_id), OFFLINE)

        await self._publish(self.topics.drive_lidpaused(hardware_id), ON if drivelog.lidpaused else OFF)

    def next_interval(self) -> float:
        """Seconds to sleep before the next poll."""
        polling = self.cfg.polling
        if self.online_device_count > 0:
            if self.drive_enabled:
                # one extra drivelog request per device, stay under the rate limit
                return polling.base_interval_secs * 2
            return polling.base_interval_secs
        return polling.idle_interval_secs

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Poll forever (or max_cycles times)."""
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            await self.update()
            cycles += 1
            log.debug(f"there are {self.online_device_count} devices online")
            log.debug(f"drive support {'is' if self.drive_enabled else 'not'} enabled")
            sleep_duration = self.next_interval()
            log.debug(f"updating from fireboard cloud api in {sleep_duration} seconds")
            await asyncio.sleep(sleep_duration)
