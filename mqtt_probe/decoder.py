"""
Payload decoding.

Topics ending in ``.gz`` (any case) carry gzip-compressed payloads which are
decompressed transparently. Everything else is passed through untouched.
"""
import gzip
import zlib

from mqtt_probe.errors import DecodeError

GZIP_SUFFIX = ".gz"


def is_compressed_topic(topic: str) -> bool:
    return topic.lower().endswith(GZIP_SUFFIX)


def decode_bytes(topic: str, raw: bytes) -> bytes:
    """Return the logical payload bytes for a message received on ``topic``."""
    if not is_compressed_topic(topic):
        return raw
    try:
        return gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(topic, str(e) or type(e).__name__) from e


def decode(topic: str, raw: bytes) -> str:
    """Return the logical payload of a message as text."""
    return decode_bytes(topic, raw).decode("utf-8", errors="replace")
