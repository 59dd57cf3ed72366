"""
Command line entry point.

Example:
    mqtt-probe --url tcp://localhost:1883 --sub 'sensors/#,logs/app.gz' --msg-count 2 \
        --pub sensors/ping --msg hello
"""
import logging
from pathlib import Path
from typing import Optional

import typer

from mqtt_probe.config import DEFAULT_TIMEOUT_S, DEFAULT_URL, UNBOUNDED_MESSAGE_COUNT, SessionConfig
from mqtt_probe.errors import ConfigError, ProbeError
from mqtt_probe.logging_config import setup_logging
from mqtt_probe.session import Session
from mqtt_probe.subscriptions import split_filters

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130

app = typer.Typer(add_completion=False)


@app.command()
def main(
    url: str = typer.Option(DEFAULT_URL, "--url", envvar="MQTT_URL", help="the server url to connect to"),
    sub: str = typer.Option("", "--sub", envvar="MQTT_SUB", help="the topic(s) to subscribe to (may be a comma separated list)"),
    client_id: str = typer.Option("", "--clientid", envvar="MQTT_CLIENT_ID", help="the mqtt clientid to use (optional)"),
    username: str = typer.Option("", "--username", envvar="MQTT_USERNAME", help="the mqtt username to use (optional)"),
    password: str = typer.Option("", "--password", envvar="MQTT_PASSWORD", help="the mqtt password to use (optional)"),
    qos: int = typer.Option(0, "--qos", envvar="MQTT_QOS", min=0, max=2, help="QoS for publishes and subscriptions"),
    insecure: bool = typer.Option(False, "--insecure", help="allow TLS connections without certificate and hostname validation"),
    ignore_retained: bool = typer.Option(False, "--ignore-retained", help="only consider live (non-retained) messages"),
    ignore_payload: bool = typer.Option(False, "--ignore-payload", help="only print a summary line per message"),
    msg_count: int = typer.Option(UNBOUNDED_MESSAGE_COUNT, "--msg-count", min=0, help="number of messages to receive before exiting"),
    pub: str = typer.Option("", "--pub", help="the topic to publish to (after subscriptions have been set up)"),
    msg: str = typer.Option("", "--msg", help="the message to publish on the --pub topic"),
    connect_timeout: float = typer.Option(DEFAULT_TIMEOUT_S, "--connect-timeout", help="seconds to wait for the broker to accept the connection"),
    publish_timeout: float = typer.Option(DEFAULT_TIMEOUT_S, "--publish-timeout", help="seconds to wait for the publish to be confirmed"),
    debug: bool = typer.Option(False, "--debug", help="display debug messages, including the mqtt client's own"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", envvar="MQTT_PROBE_LOG_FILE", help="also write diagnostics to this rotating log file"),
):
    """
    Connect to an MQTT broker, optionally subscribe and publish, and exit after
    --msg-count messages have been received.
    """
    setup_logging(debug=debug, log_file=str(log_file) if log_file else None)

    try:
        config = SessionConfig(
            url=url,
            topic_filters=split_filters(sub),
            client_id=client_id,
            username=username or None,
            password=password or None,
            qos=qos,
            insecure=insecure,
            ignore_retained=ignore_retained,
            ignore_payload=ignore_payload,
            message_count=msg_count,
            pub_topic=pub or None,
            pub_message=msg,
            connect_timeout=connect_timeout,
            publish_timeout=publish_timeout,
            debug=debug,
        )
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(e.exit_code)

    try:
        Session(config).run()
    except ProbeError as e:
        logger.error(f"FATAL: {e}")
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        raise typer.Exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    app()
