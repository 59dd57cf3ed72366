"""Session configuration and broker URL parsing."""
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import urlparse

from mqtt_probe.errors import ConfigError

DEFAULT_URL = "tcp://localhost:1883"
# Effectively "wait forever"
UNBOUNDED_MESSAGE_COUNT = 2147483647
DEFAULT_TIMEOUT_S = 10.0

# scheme -> (transport, tls, default port)
SCHEMES = {
    "tcp": ("tcp", False, 1883),
    "mqtt": ("tcp", False, 1883),
    "ssl": ("tcp", True, 8883),
    "tls": ("tcp", True, 8883),
    "tcps": ("tcp", True, 8883),
    "mqtts": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    transport: str = "tcp"
    tls: bool = False
    path: str = "/mqtt"  # websockets only


def parse_broker_url(url: str) -> BrokerAddress:
    """Split a broker URL such as ``tcp://localhost:1883`` into its connection parameters."""
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in SCHEMES:
        raise ConfigError(f"unsupported broker URL scheme '{parsed.scheme}' in '{url}'")
    if not parsed.hostname:
        raise ConfigError(f"broker URL '{url}' has no host")

    transport, tls, default_port = SCHEMES[scheme]
    try:
        port = parsed.port or default_port
    except ValueError as e:
        raise ConfigError(f"invalid port in broker URL '{url}': {e}") from e

    return BrokerAddress(
        host=parsed.hostname,
        port=port,
        transport=transport,
        tls=tls,
        path=parsed.path or "/mqtt",
    )


@dataclass(frozen=True)
class SessionConfig:
    url: str = DEFAULT_URL
    topic_filters: Tuple[str, ...] = field(default_factory=tuple)
    client_id: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0
    insecure: bool = False
    ignore_retained: bool = False
    ignore_payload: bool = False
    message_count: int = UNBOUNDED_MESSAGE_COUNT
    pub_topic: Optional[str] = None
    pub_message: str = ""
    connect_timeout: float = DEFAULT_TIMEOUT_S
    publish_timeout: float = DEFAULT_TIMEOUT_S
    debug: bool = False

    def __post_init__(self):
        if self.qos not in (0, 1, 2):
            raise ConfigError(f"QoS must be 0, 1 or 2, got {self.qos}")
        if self.message_count < 0:
            raise ConfigError(f"message count must be >= 0, got {self.message_count}")
        if self.connect_timeout <= 0 or self.publish_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        # fail early on a bad URL rather than at connect time
        parse_broker_url(self.url)

    @property
    def broker(self) -> BrokerAddress:
        return parse_broker_url(self.url)

    @property
    def expected_messages(self) -> int:
        """Number of messages the session waits for; zero when nothing is subscribed."""
        return self.message_count if self.topic_filters else 0
