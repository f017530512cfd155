"""Wire tokens and timing defaults shared across the bridge."""

__version__ = "0.4.0"

ONLINE = "online"
OFFLINE = "offline"
ON = "on"
OFF = "off"

# a device log younger than this is still evidence the device is online
FIREBOARD_DEVICELOG_UPDATE_INTERVAL_MINUTES = 5

# The FireBoard cloud API allows 200 requests per hour, i.e. one request every
# 18 seconds. 20 seconds leaves some headroom.
DEFAULT_BASE_INTERVAL_SECS = 20
DEFAULT_IDLE_INTERVAL_SECS = 60

FIREBOARD_API_BASE = "https://fireboard.io/api/"
FIREBOARD_MANUFACTURER = "Fireboard Labs"
USER_AGENT = f"fireboard2mqtt/{__version__}"

DISCOVERY_PREFIX = "homeassistant"
BASE_TOPIC = "fireboard2mqtt"
