"""
MQTT sink: drains a bounded queue of MqttAction values into a paho client.

The paho network loop runs in its own thread (loop_start). Its callbacks only
hand state back to the asyncio loop through call_soon_threadsafe. The poll loop
never touches the client directly; it awaits queue.put() and so blocks when
the sink falls behind.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from paho.mqtt import client as mqtt
from paho.mqtt.properties import Properties

from fireboard2mqtt.config import MqttConfig
from fireboard2mqtt.exceptions import SinkError

log = logging.getLogger(__name__)

QOS_AT_MOST_ONCE = 0
QOS_AT_LEAST_ONCE = 1


@dataclass
class Publish:
    topic: str
    qos: int
    retain: bool
    payload: bytes
    props: Optional[Properties] = None


@dataclass
class Subscribe:
    topic: str
    qos: int
    props: Optional[Properties] = None


@dataclass
class Unsubscribe:
    topic: str
    props: Optional[Properties] = None


MqttAction = Union[Publish, Subscribe, Unsubscribe]


@dataclass
class LastWill:
    topic: str
    payload: bytes
    qos: int = QOS_AT_LEAST_ONCE
    retain: bool = True


def _check_rc(rc: int, what: str, topic: str) -> None:
    if rc != mqtt.MQTT_ERR_SUCCESS:
        raise SinkError(f"{what} to {topic} failed: {mqtt.error_string(rc)}")


class MqttSink:
    def __init__(self, cfg: MqttConfig, queue: "asyncio.Queue[MqttAction]", last_will: Optional[LastWill] = None):
        self.cfg = cfg
        self.queue = queue
        self.last_will = last_will
        self.cli = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=cfg.client_id,
            protocol=mqtt.MQTTv5,
        )
        if cfg.credentials:
            self.cli.username_pw_set(*cfg.credentials)
        if last_will:
            self.cli.will_set(last_will.topic, last_will.payload, qos=last_will.qos, retain=last_will.retain)
        self.cli.on_connect = self._on_connect
        self.cli.on_disconnect = self._on_disconnect
        self.cli.on_connect_fail = self._on_connect_fail
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._connected: Optional[asyncio.Event] = None
        self._failure: Optional[asyncio.Future] = None

    def start(self) -> None:
        """Connect in the background and start paho's network thread."""
        self._loop = asyncio.get_running_loop()
        self._connected = asyncio.Event()
        self._failure = self._loop.create_future()
        log.info(f"Connecting to mqtt broker {self.cfg.host}:{self.cfg.port} as {self.cfg.client_id}")
        self.cli.connect_async(self.cfg.host, self.cfg.port, keepalive=30, clean_start=True)
        self.cli.loop_start()

    def stop(self) -> None:
        self.cli.disconnect()
        self.cli.loop_stop()

    # paho callbacks, called from the network thread

    def _on_connect(self, _cli, _userdata, _flags, reason_code, _properties) -> None:
        if reason_code.is_failure:
            self._signal_failure(SinkError(f"mqtt connection refused: {reason_code}"))
            return
        self._loop.call_soon_threadsafe(self._connected.set)

    def _on_connect_fail(self, _cli, _userdata) -> None:
        # tcp connect, dns or tls failure before any CONNACK
        self._signal_failure(SinkError(f"mqtt connection to {self.cfg.host}:{self.cfg.port} failed"))

    def _on_disconnect(self, _cli, _userdata, _flags, reason_code, _properties) -> None:
        # reconnecting is not this bridge's job, any drop is fatal
        self._signal_failure(SinkError(f"mqtt connection lost: {reason_code}"))

    def _signal_failure(self, err: SinkError) -> None:
        def _set():
            if not self._failure.done():
                self._failure.set_result(err)
        self._loop.call_soon_threadsafe(_set)

    async def _until_failure(self, aw):
        """Await aw, raising the connection failure instead if that comes first."""
        task = asyncio.ensure_future(aw)
        done, _ = await asyncio.wait({task, self._failure}, return_when=asyncio.FIRST_COMPLETED)
        if self._failure in done:
            task.cancel()
            raise self._failure.result()
        return task.result()

    async def _wait_connected(self) -> None:
        await self._until_failure(self._connected.wait())
        log.info("connected to mqtt broker")

    def dispatch(self, action: MqttAction) -> None:
        """Hand one action to the paho client. Raises SinkError on any failure."""
        if self._failure is not None and self._failure.done():
            raise self._failure.result()
        if isinstance(action, Publish):
            log.debug("MQTT PUB %s %s", action.topic, action.payload)
            info = self.cli.publish(
                action.topic, action.payload, qos=action.qos, retain=action.retain, properties=action.props
            )
            _check_rc(info.rc, "publish", action.topic)
        elif isinstance(action, Subscribe):
            rc, _mid = self.cli.subscribe(action.topic, qos=action.qos, properties=action.props)
            _check_rc(rc, "subscribe", action.topic)
        elif isinstance(action, Unsubscribe):
            rc, _mid = self.cli.unsubscribe(action.topic, properties=action.props)
            _check_rc(rc, "unsubscribe", action.topic)
        else:
            raise SinkError(f"unknown mqtt action {action!r}")

    async def run(self) -> None:
        """Forward queued actions to the broker, in order, until a failure."""
        if self._loop is None:
            self.start()
        await self._wait_connected()
        while True:
            action = await self._until_failure(self.queue.get())
            try:
                self.dispatch(action)
            finally:
                self.queue.task_done()
