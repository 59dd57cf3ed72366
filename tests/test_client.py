import ssl

import paho.mqtt.client as mqtt

from mqtt_probe.client import create_client, create_tls_context
from mqtt_probe.config import SessionConfig


def test_insecure_tls_context_skips_validation():
    context = create_tls_context(insecure=True)
    assert context.verify_mode == ssl.CERT_NONE
    assert not context.check_hostname


def test_secure_tls_context_validates():
    context = create_tls_context(insecure=False)
    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.check_hostname


def test_create_client_does_not_connect():
    client = create_client(SessionConfig(url="wss://broker/ws", username="u", password="p", connect_timeout=3.0))
    assert isinstance(client, mqtt.Client)
    assert client.connect_timeout == 3.0
    assert not client.is_connected()
