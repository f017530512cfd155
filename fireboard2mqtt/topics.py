"""
Topic layout for everything the bridge publishes.

State topics live under ``<base>/<hardware_id>/...`` and Home Assistant
discovery documents under ``<discovery>/<component>/<hardware_id>/<object>/config``.
Every topic is a plain concatenation of the configured prefixes, the device
hardware id and, for channels, the 1-based channel index.
"""


class TopicNamer:
    def __init__(self, base_topic: str, discovery_topic: str) -> None:
        self.base_topic = base_topic.rstrip("/")
        self.discovery_topic = discovery_topic.rstrip("/")

    def bridge_availability(self) -> str:
        return f"{self.base_topic}/bridge/availability"

    # discovery

    def discovery_sensor_base(self, device_id: str) -> str:
        return f"{self.discovery_topic}/sensor/{device_id}"

    def discovery_binary_sensor_base(self, device_id: str) -> str:
        return f"{self.discovery_topic}/binary_sensor/{device_id}"

    def device_battery_discovery(self, device_id: str) -> str:
        return f"{self.discovery_sensor_base(device_id)}/battery/config"

    def channel_discovery(self, device_id: str, channel: int) -> str:
        return f"{self.discovery_sensor_base(device_id)}/channel_{channel}/config"

    def drive_discovery(self, device_id: str) -> str:
        return f"{self.discovery_sensor_base(device_id)}/drive/config"

    def drive_mode_discovery(self, device_id: str) -> str:
        return f"{self.discovery_sensor_base(device_id)}/drivemode/config"

    def drive_setpoint_discovery(self, device_id: str) -> str:
        return f"{self.discovery_sensor_base(device_id)}/drive_setpoint/config"

    def drive_lidpaused_discovery(self, device_id: str) -> str:
        return f"{self.discovery_binary_sensor_base(device_id)}/drive_lidpaused/config"

    # device state

    def device_base(self, device_id: str) -> str:
        return f"{self.base_topic}/{device_id}"

    def device_availability(self, device_id: str) -> str:
        return f"{self.device_base(device_id)}/availability"

    def device_battery(self, device_id: str) -> str:
        return f"{self.device_base(device_id)}/battery"

    def channel(self, device_id: str, channel: int) -> str:
        return f"{self.device_base(device_id)}/channel_{channel}"

    def channel_state(self, device_id: str, channel: int) -> str:
        return f"{self.channel(device_id, channel)}/state"

    def channel_availability(self, device_id: str, channel: int) -> str:
        return f"{self.channel(device_id, channel)}/availability"

    # drive

    def drive(self, device_id: str) -> str:
        return f"{self.device_base(device_id)}/drive"

    def drive_state(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/state"

    def drive_mode(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/mode"

    def drive_setpoint(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/setpoint"

    def drive_lidpaused(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/lidpaused"

    def drive_attributes(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/attributes"

    def drive_availability(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/availability"

    def drive_setpoint_availability(self, device_id: str) -> str:
        return f"{self.drive(device_id)}/setpoint_availability"
