from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class DegreeType(IntEnum):
    CELSIUS = 1
    FAHRENHEIT = 2


class DriveMode(str, Enum):
    OFF = "off"
    MANUAL = "manual"
    AUTO = "auto"


def format_degree_type(degreetype: DegreeType) -> str:
    """Unit of measurement string for a device's configured temperature unit."""
    return "°C" if degreetype == DegreeType.CELSIUS else "°F"


def derive_drive_mode(setpoint: float, driveper: float) -> DriveMode:
    """
    Drive mode as shown to Home Assistant.

    The mode reported by the API is not trusted; it is derived from the
    setpoint and the current drive output on every poll.
    """
    if setpoint >= 100.0:
        return DriveMode.AUTO
    if driveper > 0.0:
        return DriveMode.MANUAL
    return DriveMode.OFF


class TempReading(BaseModel):
    temp: float


class DeviceLog(BaseModel):
    date: datetime
    mac_nic: str = Field(default="", validation_alias=AliasChoices("macNIC", "mac_nic"))
    onboard_temp: Optional[float] = Field(default=None, validation_alias=AliasChoices("onboardTemp", "onboard_temp"))
    v_batt_per: float = Field(default=0.0, validation_alias=AliasChoices("vBattPer", "v_batt_per"))

    @field_validator("date")
    @classmethod
    def _assume_local_time(cls, value: datetime) -> datetime:
        # naive timestamps are local time
        if value.tzinfo is None:
            return value.astimezone()
        return value


class Channel(BaseModel):
    channel: int  # 1-based, stable per device
    channel_label: str = ""
    last_templog: Optional[TempReading] = None


class Device(BaseModel):
    id: int
    uuid: str
    title: str
    hardware_id: str
    version: str = ""
    channel_count: int = 0
    degreetype: DegreeType = DegreeType.FAHRENHEIT
    model: str = ""
    channels: List[Channel] = Field(default_factory=list)
    latest_temps: List[TempReading] = Field(default_factory=list)
    device_log: DeviceLog

    @property
    def unit_of_measurement(self) -> str:
        return format_degree_type(self.degreetype)


class DriveStatus(BaseModel):
    """Realtime drive log for one device."""
    setpoint: float
    driveper: float  # 0.0 - 1.0
    lidpaused: bool = False
    tiedchannel: int = 0
    modetype: Optional[str] = None  # as reported by the API, informational only

    @property
    def mode(self) -> DriveMode:
        return derive_drive_mode(self.setpoint, self.driveper)


class DriveAttributes(BaseModel):
    modetype: str
    setpoint: float
    tiedchannel: int
    lid_paused: bool

    @classmethod
    def from_drivelog(cls, drivelog: DriveStatus) -> "DriveAttributes":
        return cls(
            modetype=drivelog.mode.value,
            setpoint=drivelog.setpoint,
            tiedchannel=drivelog.tiedchannel,
            lid_paused=drivelog.lidpaused,
        )

    def to_payload(self) -> bytes:
        return self.model_dump_json().encode("utf-8")
