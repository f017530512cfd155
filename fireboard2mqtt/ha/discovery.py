# discovery.py
import logging
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from fireboard2mqtt.constants import FIREBOARD_MANUFACTURER, OFF, OFFLINE, ON, ONLINE
from fireboard2mqtt.models import Device, DriveMode
from fireboard2mqtt.topics import TopicNamer

log = logging.getLogger("fireboard2mqtt.ha.discovery")

# seconds without a state update before HA marks the entity unavailable
CHANNEL_EXPIRE_AFTER_SECS = 600


class DiscoveryAvailabilityEntry(BaseModel):
    topic: str
    payload_available: Optional[str] = ONLINE
    payload_not_available: Optional[str] = OFFLINE


class DiscoveryDevice(BaseModel):
    configuration_url: Optional[str] = None
    connections: Optional[List[List[str]]] = None
    hw_version: Optional[str] = None
    identifiers: Optional[List[str]] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    name: Optional[str] = None
    serial_number: Optional[str] = None
    sw_version: Optional[str] = None


class _DiscoveryDocument(BaseModel):
    unique_id: str
    object_id: str
    name: Optional[str] = None
    availability: List[DiscoveryAvailabilityEntry] = Field(default_factory=list)
    device_class: Optional[str] = None
    enabled_by_default: bool = True
    encoding: str = "utf-8"
    suggested_display_precision: Optional[int] = None
    qos: int = 0
    json_attributes_topic: Optional[str] = None
    icon: Optional[str] = None
    # see https://www.home-assistant.io/integrations/sensor.mqtt/#state_topic
    state_topic: str
    device: Optional[DiscoveryDevice] = None

    def to_payload(self) -> bytes:
        # optional fields are left out entirely, HA treats null differently from absent
        return self.model_dump_json(exclude_none=True).encode("utf-8")


class DiscoverySensor(_DiscoveryDocument):
    options: Optional[List[str]] = None
    state_class: Optional[str] = "measurement"
    unit_of_measurement: Optional[str] = None
    suggested_unit_of_measurement: Optional[str] = None
    expire_after: Optional[int] = None


class DiscoveryBinarySensor(_DiscoveryDocument):
    payload_on: Optional[str] = None
    payload_off: Optional[str] = None


DiscoveryDocument = Union[DiscoverySensor, DiscoveryBinarySensor]


class HADiscoveryEmitter:
    """
    Builds the Home Assistant discovery documents for one FireBoard device.

    Entities chain their availability: bridge, then device, then the entity's
    own availability topic. HA only shows the entity as available when every
    topic in the chain reports online.
    """

    def __init__(self, topics: TopicNamer, drive_enabled: bool = False) -> None:
        self.topics = topics
        self.drive_enabled = drive_enabled

    def _device_block(self, device: Device) -> DiscoveryDevice:
        connections = [["mac", device.device_log.mac_nic]] if device.device_log.mac_nic else None
        return DiscoveryDevice(
            configuration_url=f"https://fireboard.io/devices/{device.id}/edit/",
            connections=connections,
            identifiers=[str(device.id), device.hardware_id, device.uuid],
            manufacturer=FIREBOARD_MANUFACTURER,
            model=device.model or None,
            name=device.title,
            serial_number=device.hardware_id,
            sw_version=device.version or None,
        )

    def _availability(self, device_id: str, *entity_topics: str) -> List[DiscoveryAvailabilityEntry]:
        chain = [self.topics.bridge_availability(), self.topics.device_availability(device_id), *entity_topics]
        return [DiscoveryAvailabilityEntry(topic=t) for t in chain]

    def build_discovery(self, device: Device) -> List[Tuple[str, DiscoveryDocument]]:
        hardware_id = device.hardware_id
        parent = self._device_block(device)
        unit = device.unit_of_measurement
        docs: List[Tuple[str, DiscoveryDocument]] = []

        battery_id = f"{hardware_id}_battery"
        docs.append((
            self.topics.device_battery_discovery(hardware_id),
            DiscoverySensor(
                unique_id=battery_id,
                object_id=battery_id,
                name="Battery",
                availability=self._availability(hardware_id),
                device_class="battery",
                state_topic=self.topics.device_battery(hardware_id),
                unit_of_measurement="%",
                device=parent,
            ),
        ))

        for channel in device.channels:
            channel_id = f"{hardware_id}_channel_{channel.channel}"
            docs.append((
                self.topics.channel_discovery(hardware_id, channel.channel),
                DiscoverySensor(
                    unique_id=channel_id,
                    object_id=channel_id,
                    name=channel.channel_label or f"Channel {channel.channel}",
                    availability=self._availability(
                        hardware_id, self.topics.channel_availability(hardware_id, channel.channel)
                    ),
                    device_class="temperature",
                    state_topic=self.topics.channel_state(hardware_id, channel.channel),
                    unit_of_measurement=unit,
                    suggested_unit_of_measurement=unit,
                    expire_after=CHANNEL_EXPIRE_AFTER_SECS,
                    device=parent,
                ),
            ))

        if self.drive_enabled:
            docs.extend(self._drive_discovery(device, parent))

        log.debug(f"Built {len(docs)} discovery documents for {hardware_id}")
        return docs

    def _drive_discovery(self, device: Device, parent: DiscoveryDevice) -> List[Tuple[str, DiscoveryDocument]]:
        hardware_id = device.hardware_id
        unit = device.unit_of_measurement
        drive_availability = self.topics.drive_availability(hardware_id)
        drive_id = f"{hardware_id}_drive"
        mode_id = f"{drive_id}_mode"
        setpoint_id = f"{drive_id}_setpoint"
        lidpaused_id = f"{drive_id}_lidpaused"

        return [
            (
                self.topics.drive_discovery(hardware_id),
                DiscoverySensor(
                    unique_id=drive_id,
                    object_id=drive_id,
                    name="Drive",
                    availability=self._availability(hardware_id, drive_availability),
                    icon="mdi:fan",
                    expire_after=CHANNEL_EXPIRE_AFTER_SECS,
                    state_topic=self.topics.drive_state(hardware_id),
                    unit_of_measurement="%",
                    json_attributes_topic=self.topics.drive_attributes(hardware_id),
                    device=parent,
                ),
            ),
            (
                self.topics.drive_mode_discovery(hardware_id),
                DiscoverySensor(
                    unique_id=mode_id,
                    object_id=mode_id,
                    name="Drive Mode",
                    availability=self._availability(hardware_id, drive_availability),
                    device_class="enum",
                    options=[mode.value for mode in DriveMode],
                    icon="mdi:fan-alert",
                    state_class=None,  # enum sensors can't be measurements
                    state_topic=self.topics.drive_mode(hardware_id),
                    device=parent,
                ),
            ),
            (
                self.topics.drive_setpoint_discovery(hardware_id),
                DiscoverySensor(
                    unique_id=setpoint_id,
                    object_id=setpoint_id,
                    name="Drive Setpoint",
                    availability=self._availability(
                        hardware_id, drive_availability, self.topics.drive_setpoint_availability(hardware_id)
                    ),
                    icon="mdi:thermometer-auto",
                    device_class="temperature",
                    state_topic=self.topics.drive_setpoint(hardware_id),
                    unit_of_measurement=unit,
                    suggested_unit_of_measurement=unit,
                    device=parent,
                ),
            ),
            (
                self.topics.drive_lidpaused_discovery(hardware_id),
                DiscoveryBinarySensor(
                    unique_id=lidpaused_id,
                    object_id=lidpaused_id,
                    name="Drive Lid Paused",
                    availability=self._availability(hardware_id, drive_availability),
                    state_topic=self.topics.drive_lidpaused(hardware_id),
                    payload_on=ON,
                    payload_off=OFF,
                    device=parent,
                ),
            ),
        ]
