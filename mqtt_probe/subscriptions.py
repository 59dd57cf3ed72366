import logging
from typing import Any, Callable, Iterable, List, Tuple

import paho.mqtt.client as mqtt
from paho.mqtt.enums import MQTTErrorCode

from mqtt_probe.errors import SubscribeError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[mqtt.Client, Any, mqtt.MQTTMessage], None]


SHARED_PREFIX = "$share/"
QUEUE_PREFIX = "$queue/"


def split_filters(text: str) -> Tuple[str, ...]:
    """Split a comma separated list of topic filters, keeping their order."""
    return tuple(f.strip() for f in text.split(",") if f.strip())


def callback_filter(topic_filter: str) -> str:
    """
    Return the filter paho should match incoming topics against.

    Messages on a shared (`$share/<group>/...`) or `$queue/` subscription arrive
    on the plain topic, so the prefix has to be dropped for callback routing.
    """
    if topic_filter.startswith(SHARED_PREFIX):
        _, _, rest = topic_filter[len(SHARED_PREFIX):].partition("/")
        return rest
    if topic_filter.startswith(QUEUE_PREFIX):
        return topic_filter[len(QUEUE_PREFIX):]
    return topic_filter


def subscribe_all(client: mqtt.Client, filters: Iterable[str], qos: int, handler: MessageCallback) -> List[int]:
    """
    Subscribe to every filter, routing all of them to the same handler.

    The handler is attached before the SUBSCRIBE goes out so that retained
    messages delivered right after the SUBACK are not missed.
    Returns the message ids of the SUBSCRIBE packets.
    """
    mids = []
    for topic_filter in filters:
        client.message_callback_add(callback_filter(topic_filter), handler)
        result, mid = client.subscribe(topic_filter, qos=qos)
        if result != MQTTErrorCode.MQTT_ERR_SUCCESS:
            raise SubscribeError(f"Could not subscribe to {topic_filter}: {mqtt.error_string(result)}")
        logger.debug(f"Subscribed to topic: {topic_filter} with QoS {qos}, mid: {mid}")
        mids.append(mid)
    return mids
