import logging
from typing import Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import MQTTErrorCode

from mqtt_probe.errors import PublishError, PublishTimeout

logger = logging.getLogger(__name__)


def publish_once(client: mqtt.Client, topic: Optional[str], body: str, qos: int, timeout: float) -> bool:
    """
    Publish a single non-retained message and wait for the client to confirm it.

    Returns False if there was nothing to publish. Raises PublishError if the
    publish was rejected, or PublishTimeout if it was not confirmed within
    ``timeout`` seconds.
    """
    if not topic:
        logger.info("nothing to publish")
        return False

    info = client.publish(topic, body, qos=qos, retain=False)
    if info.rc != MQTTErrorCode.MQTT_ERR_SUCCESS:
        raise PublishError(f"Could not publish: {mqtt.error_string(info.rc)}")

    try:
        info.wait_for_publish(timeout)
        published = info.is_published()
    except (ValueError, RuntimeError) as e:
        raise PublishError(f"Could not publish: {e}") from e

    if not published:
        raise PublishTimeout(f"Publish to {topic} not confirmed after {timeout}s")

    logger.info("published message successfully")
    return True
