"""Exceptions raised by mqtt-probe."""

EXIT_CONNECT_FAILED = 1
EXIT_USAGE = 2
EXIT_PUBLISH_FAILED = 3


class ProbeError(Exception):
    """Base class for every error raised by mqtt-probe."""
    exit_code = 1


class ConfigError(ProbeError):
    """Invalid session configuration (bad broker URL, QoS out of range, ...)."""
    exit_code = EXIT_USAGE


class ConnectError(ProbeError):
    """The broker could not be reached, refused the connection or never confirmed it."""
    exit_code = EXIT_CONNECT_FAILED


class ConnectTimeout(ConnectError):
    """No CONNACK arrived within the connect timeout."""


class SubscribeError(ProbeError):
    """The client library refused to send a SUBSCRIBE."""
    exit_code = EXIT_CONNECT_FAILED


class PublishError(ProbeError):
    """The publish was rejected by the client library or failed to complete."""
    exit_code = EXIT_PUBLISH_FAILED


class PublishTimeout(PublishError):
    """The publish was not confirmed within the publish timeout."""


class DecodeError(ProbeError):
    """A compressed payload could not be decompressed."""

    def __init__(self, topic: str, reason: str):
        super().__init__(f"could not decode payload on topic {topic}: {reason}")
        self.topic = topic
        self.reason = reason
