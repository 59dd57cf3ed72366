"""
Per-message processing shared by every subscription.

Filter -> Decoder -> report -> Barrier decrement.
"""
import logging
import threading
from typing import Any, Optional, TextIO

import paho.mqtt.client as mqtt
import typer

from mqtt_probe.barrier import CompletionBarrier
from mqtt_probe.config import SessionConfig
from mqtt_probe.decoder import decode_bytes
from mqtt_probe.errors import DecodeError
from mqtt_probe.filter import accept

logger = logging.getLogger(__name__)


def summary_line(retained: bool, topic: str, size: int) -> str:
    return f"retained={str(retained).lower()}, topic={topic}, size={size}"


class MessageHandler:
    """
    Callable registered for every topic filter.

    It can be invoked concurrently; the only shared state it mutates is the
    completion barrier. Output for one message is written under a lock so that
    the summary line and the payload of two messages never interleave.
    """

    def __init__(self, config: SessionConfig, barrier: CompletionBarrier, out: Optional[TextIO] = None):
        self.config = config
        self.barrier = barrier
        self.out = out
        self._output_lock = threading.Lock()

    def __call__(self, client: mqtt.Client, userdata: Any, msg: mqtt.MQTTMessage) -> None:
        """paho on_message callback."""
        self.handle(msg.topic, msg.payload, bool(msg.retain))

    def handle(self, topic: str, raw: bytes, retained: bool) -> bool:
        """Process one inbound message. Returns True if it was counted."""
        if not accept(retained, self.config.ignore_retained):
            logger.info("ignoring retained msg")
            return False

        try:
            payload = decode_bytes(topic, raw)
        except DecodeError as e:
            logger.error(f"{e}; reporting empty payload")
            payload = b""

        self.report(topic, payload, retained)
        self.barrier.decrement()
        return True

    def report(self, topic: str, payload: bytes, retained: bool) -> None:
        line = summary_line(retained, topic, len(payload))
        with self._output_lock:
            if self.config.ignore_payload:
                typer.echo(line, file=self.out)
            else:
                logger.info(line)
                # raw bytes, written verbatim to the binary stream
                typer.echo(payload, file=self.out)
