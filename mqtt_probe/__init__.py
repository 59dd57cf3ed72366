"""
mqtt-probe: a one-shot MQTT diagnostic client.

Connects to a broker, optionally subscribes to topic filters and publishes one
message, then waits until the expected number of messages has been received.
"""

__version__ = "0.1.0"
