import logging
import ssl

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion, MQTTProtocolVersion

from mqtt_probe.config import SessionConfig

logger = logging.getLogger(__name__)


def create_tls_context(insecure: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if insecure:
        # no certificate or hostname validation
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def create_client(config: SessionConfig) -> mqtt.Client:
    """Build a paho client for the broker described by ``config``. Does not connect."""
    broker = config.broker
    client = mqtt.Client(
        callback_api_version=CallbackAPIVersion.VERSION2,
        client_id=config.client_id,
        protocol=MQTTProtocolVersion.MQTTv311,
        transport=broker.transport,
    )
    if config.username or config.password:
        client.username_pw_set(config.username or "", config.password or None)
    if broker.tls:
        client.tls_set_context(create_tls_context(config.insecure))
    if broker.transport == "websockets":
        client.ws_set_options(path=broker.path)
    client.connect_timeout = config.connect_timeout

    if config.debug:
        # Enable paho internal logging
        client.enable_logger(logging.getLogger("mqtt_probe.paho"))
    return client
