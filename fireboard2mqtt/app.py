import asyncio
import logging
import sys
from typing import Optional

from fireboard2mqtt.api import FireboardApiClient
from fireboard2mqtt.config import BridgeConfig
from fireboard2mqtt.mqtt import MqttAction, MqttSink
from fireboard2mqtt.watcher import FireboardWatcher

log = logging.getLogger(__name__)


class BridgeApp:
    """
    Wires the watcher, the outbound queue and the MQTT sink together.

    Three units run concurrently: the poll loop task, the sink task draining
    the queue, and paho's network thread. The bounded queue is the only thing
    they share.
    """

    def __init__(self, cfg: BridgeConfig, client: Optional[FireboardApiClient] = None, sink: Optional[MqttSink] = None):
        self.cfg = cfg
        self._configure_logging()
        self.queue: "asyncio.Queue[MqttAction]" = asyncio.Queue(maxsize=cfg.mqtt.queue_size)
        self.client = client or FireboardApiClient(cfg.fireboard.account_email, cfg.fireboard.account_password)
        self.watcher = FireboardWatcher(cfg, self.client, self.queue)
        self.sink = sink or MqttSink(cfg.mqtt, self.queue, last_will=self.watcher.get_last_will())

    def _configure_logging(self):
        """Configure logging based on config settings."""
        log_config = self.cfg.logging

        root_logger = logging.getLogger()
        log_level = getattr(logging, log_config.level.upper())
        root_logger.setLevel(log_level)

        # Configure console handler if not already configured
        if not root_logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(logging.Formatter(log_config.format))
            root_logger.addHandler(console_handler)

        logging.getLogger("fireboard2mqtt").setLevel(log_level)
        # library chatter is only interesting when something breaks
        logging.getLogger("paho").setLevel(logging.WARNING)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

        log.debug(f"Logging configured - Level: {log_config.level}")

    async def init(self):
        """Authenticate against the FireBoard cloud and announce the bridge."""
        await self.client.login()
        log.info("Authenticated with Fireboard cloud api")
        await self.watcher.init()
        log.info(
            f"Bridge initialised - base topic: {self.cfg.mqtt.base_topic}, "
            f"discovery topic: {self.cfg.mqtt.discovery_topic}, drive: {self.cfg.fireboard.enable_drive}"
        )

    async def run(self):
        """Run until one of the units fails; its exception propagates."""
        log.info("Starting fireboard2mqtt main loop")
        self.sink.start()
        sink_task = asyncio.create_task(self.sink.run(), name="mqtt-sink")
        watcher_task = asyncio.create_task(self.watcher.run(), name="fireboard-watcher")
        tasks = {sink_task, watcher_task}
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                # re-raises the failure of whichever unit stopped first
                task.result()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.sink.stop()
            await self.client.close()
