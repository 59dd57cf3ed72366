import io
import logging
import threading
from typing import Dict, List, Optional, Tuple

import paho.mqtt.client as mqtt
import pytest
from paho.mqtt.enums import MQTTErrorCode

from mqtt_probe.config import SessionConfig
from mqtt_probe.logging_config import LOGGER_NAME


class FakeMessage:
    def __init__(self, topic: str, payload: bytes, retain: bool = False):
        self.topic = topic
        self.payload = payload
        self.retain = retain


class FakeMessageInfo:
    def __init__(self, rc=MQTTErrorCode.MQTT_ERR_SUCCESS, published=True, error: Optional[Exception] = None):
        self.rc = rc
        self.published = published
        self.error = error
        self.waited_for: Optional[float] = None

    def wait_for_publish(self, timeout=None):
        self.waited_for = timeout
        if self.error is not None:
            raise self.error

    def is_published(self):
        return self.published


class FakeClient:
    """
    Stand-in for paho.mqtt.client.Client.

    ``retained`` maps a topic filter to messages the "broker" delivers right
    after that filter is subscribed, from a background thread like paho's
    network loop would.
    """

    def __init__(
        self,
        connect_rc: Optional[int] = 0,
        connect_error: Optional[Exception] = None,
        connected_after: bool = True,
        retained: Optional[Dict[str, List[Tuple[str, bytes, bool]]]] = None,
        publish_info: Optional[FakeMessageInfo] = None,
    ):
        self.connect_rc = connect_rc
        self.connect_error = connect_error
        self.connected_after = connected_after
        self.retained = retained or {}
        self.publish_info = publish_info or FakeMessageInfo()

        self.on_connect = None
        self.on_disconnect = None
        self.on_subscribe = None
        self.callbacks: List[Tuple[str, object]] = []
        self.subscriptions: List[Tuple[str, int]] = []
        self.published: List[Tuple[str, str, int, bool]] = []
        self.connected_to = None
        self.loop_started = False
        self.loop_stopped = False
        self.disconnected = False
        self._threads: List[threading.Thread] = []

    def connect(self, host, port=1883, keepalive=60):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = (host, port)

    def loop_start(self):
        self.loop_started = True
        if self.connect_rc is not None:
            self.on_connect(self, None, {}, self.connect_rc, None)

    def loop_stop(self):
        self.loop_stopped = True
        for t in self._threads:
            t.join(timeout=5)

    def is_connected(self):
        return self.connect_rc == 0 and self.connected_after

    def disconnect(self):
        self.disconnected = True

    def message_callback_add(self, sub, callback):
        self.callbacks.append((sub, callback))

    def subscribe(self, topic, qos=0):
        self.subscriptions.append((topic, qos))
        pending = self.retained.get(topic, [])
        if pending:
            t = threading.Thread(target=self._deliver_all, args=(pending,), daemon=True)
            self._threads.append(t)
            t.start()
        return MQTTErrorCode.MQTT_ERR_SUCCESS, len(self.subscriptions)

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return self.publish_info

    def deliver(self, topic: str, payload: bytes, retain: bool = False) -> None:
        msg = FakeMessage(topic, payload, retain)
        for sub, callback in self.callbacks:
            if mqtt.topic_matches_sub(sub, topic):
                callback(self, None, msg)

    def _deliver_all(self, messages):
        for topic, payload, retain in messages:
            self.deliver(topic, payload, retain)


@pytest.fixture
def make_config():
    def _make(**kwargs):
        kwargs.setdefault("connect_timeout", 0.5)
        kwargs.setdefault("publish_timeout", 0.5)
        return SessionConfig(**kwargs)
    return _make


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def make_output() -> io.TextIOWrapper:
    """A text stream with a binary buffer underneath, like sys.stdout."""
    return io.TextIOWrapper(io.BytesIO(), encoding="utf-8")


def written(out: io.TextIOWrapper) -> bytes:
    out.flush()
    return out.buffer.getvalue()
