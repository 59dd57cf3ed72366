"""
Session driver.

connect -> arm barrier -> subscribe -> publish -> wait for drain -> disconnect
"""
import enum
import logging
import threading
from typing import Any, Callable, List, Optional, TextIO

import paho.mqtt.client as mqtt
from paho.mqtt.properties import Properties
from paho.mqtt.reasoncodes import ReasonCode

from mqtt_probe.barrier import CompletionBarrier
from mqtt_probe.client import create_client
from mqtt_probe.config import SessionConfig
from mqtt_probe.errors import ConnectError, ConnectTimeout, ProbeError
from mqtt_probe.pipeline import MessageHandler
from mqtt_probe.publish import publish_once
from mqtt_probe.subscriptions import subscribe_all

logger = logging.getLogger(__name__)

KEEPALIVE_S = 60


class SessionState(enum.Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    SUBSCRIPTIONS_ARMED = "subscriptions_armed"
    PUBLISHING = "publishing"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


class Session:
    def __init__(
        self,
        config: SessionConfig,
        client_factory: Optional[Callable[[SessionConfig], mqtt.Client]] = None,
        out: Optional[TextIO] = None,
    ):
        self.config = config
        self.client_factory = client_factory or create_client
        self.barrier = CompletionBarrier()
        self.handler = MessageHandler(config, self.barrier, out=out)
        self.state = SessionState.IDLE
        self.client: Optional[mqtt.Client] = None
        self._connected = threading.Event()
        self._connect_rc: Optional[ReasonCode] = None

    def on_connect(self, client: mqtt.Client, userdata: Any, flags: Any, rc: ReasonCode, properties: Optional[Properties]) -> None:
        """Callback for when the broker answers the CONNECT."""
        logger.debug(f"CONNECT response: rc={rc}, flags={flags}")
        self._connect_rc = rc
        self._connected.set()

    def on_subscribe(self, client: mqtt.Client, userdata: Any, mid: int, reason_codes: List[ReasonCode], properties: Optional[Properties]) -> None:
        """Callback for when the broker responds to a subscribe request."""
        for rc in reason_codes:
            if rc.is_failure:
                logger.error(f"Subscription {mid} rejected by broker with reason code: {rc}")
            else:
                logger.debug(f"Subscription {mid} granted with QoS: {rc}")

    def on_disconnect(self, client: mqtt.Client, userdata: Any, flags: Any, rc: ReasonCode, properties: Optional[Properties]) -> None:
        """Callback for when the client disconnects from the broker."""
        if rc != 0 and self.state not in (SessionState.DONE, SessionState.FAILED):
            logger.warning(f"Unexpected disconnection from MQTT broker: {rc}")

    def run(self) -> None:
        """
        Run the session to completion.

        Raises ConnectError or PublishError (both fatal) without waiting for
        pending messages. Blocks until the expected number of messages has been
        accepted otherwise.
        """
        try:
            self.connect()
            self.arm_and_subscribe()
            self.state = SessionState.PUBLISHING
            publish_once(
                self.client,
                self.config.pub_topic,
                self.config.pub_message,
                self.config.qos,
                self.config.publish_timeout,
            )
            self.state = SessionState.DRAINING
            self.barrier.await_drained()
        except ProbeError:
            self.state = SessionState.FAILED
            self._stop()
            raise
        except KeyboardInterrupt:
            logger.info("Interrupted, disconnecting")
            self.state = SessionState.FAILED
            self.disconnect()
            raise

        self.disconnect()
        self.state = SessionState.DONE
        logger.info("done.")

    def connect(self) -> None:
        logger.info("Starting mqtt client")
        broker = self.config.broker
        client = self.client_factory(self.config)
        client.on_connect = self.on_connect
        client.on_disconnect = self.on_disconnect
        client.on_subscribe = self.on_subscribe
        self.client = client

        try:
            client.connect(broker.host, broker.port, keepalive=KEEPALIVE_S)
        except (OSError, ValueError) as e:
            raise ConnectError(f"Could not connect to {self.config.url}: {e}") from e
        client.loop_start()

        if not self._connected.wait(self.config.connect_timeout):
            raise ConnectTimeout(f"No answer from {self.config.url} after {self.config.connect_timeout}s")
        if self._connect_rc != 0:
            raise ConnectError(f"Could not connect to {self.config.url}: {self._connect_rc}")
        if not client.is_connected():
            raise ConnectError("Not connected after timeout!")

        self.state = SessionState.CONNECTED
        logger.info("connected")

    def arm_and_subscribe(self) -> None:
        filters = self.config.topic_filters
        # armed before the first SUBSCRIBE so no delivery can race the count
        self.barrier.arm(self.config.expected_messages)
        if filters:
            subscribe_all(self.client, filters, self.config.qos, self.handler)
            logger.info(f"waiting for {self.config.expected_messages} msgs.")
        else:
            logger.info("No subscriptions...")
        self.state = SessionState.SUBSCRIPTIONS_ARMED

    def disconnect(self) -> None:
        if self.client is None:
            return
        self.client.disconnect()
        self.client.loop_stop()

    def _stop(self) -> None:
        if self.client is not None:
            self.client.loop_stop()
