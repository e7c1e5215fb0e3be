"""MQTT data-plane connection used by the subscriber."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1883
KEEPALIVE_SECONDS = 60
LOOP_TIMEOUT_SECONDS = 1.0

MessageCallback = Callable[[bytes], object]


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``host[:port]`` into its parts, defaulting to the MQTT port."""
    candidate = address.strip()
    if "://" in candidate:
        candidate = candidate.split("://", 1)[1]
    host, sep, port = candidate.rpartition(":")
    if not sep:
        return candidate, DEFAULT_PORT
    if not host:
        raise ValueError(f"Missing host in server address {address!r}.")
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"Invalid port in server address {address!r}.") from exc


class MqttConnection:
    """One live session with a broker, subscribed to a single channel topic."""

    def __init__(self, client: mqtt.Client, address: str, topic: str) -> None:
        self._client = client
        self.address = address
        self.topic = topic

    def subscribe(self, callback: MessageCallback) -> None:
        """
        Deliver every message on the topic to ``callback`` on the calling thread.

        Blocks for the lifetime of the session and returns when the stream ends
        or the transport fails. Messages are handled one at a time.
        """

        def on_connect(client, _userdata, _flags, reason_code, _properties=None):
            if reason_code.is_failure:
                logger.warning(
                    "Broker refused session: %s",
                    reason_code,
                    extra={"server_address": self.address},
                )
                return
            client.subscribe(self.topic)
            logger.info("Subscribed to %s", self.topic, extra={"server_address": self.address})

        def on_message(_client, _userdata, message):
            try:
                callback(message.payload)
            except Exception:  # noqa: BLE001 - keep the session alive
                logger.exception("Message handler failed")

        def on_disconnect(_client, _userdata, _flags, reason_code, _properties=None):
            logger.warning(
                "Session closed: %s", reason_code, extra={"server_address": self.address}
            )

        self._client.on_connect = on_connect
        self._client.on_message = on_message
        self._client.on_disconnect = on_disconnect

        while True:
            try:
                rc = self._client.loop(timeout=LOOP_TIMEOUT_SECONDS)
            except OSError as exc:
                logger.warning("Transport error: %s", exc, extra={"server_address": self.address})
                return
            if rc != mqtt.MQTT_ERR_SUCCESS:
                logger.warning(
                    "Network loop ended: %s",
                    mqtt.error_string(rc),
                    extra={"server_address": self.address},
                )
                return

    def close(self) -> None:
        try:
            self._client.disconnect()
        except OSError as exc:
            logger.debug("Ignoring error on disconnect: %s", exc)


def connect_server(
    address: str, topic: str, client_id: str = ""
) -> Optional[MqttConnection]:
    """Open a session to ``address``; returns None if the broker is unreachable."""
    try:
        host, port = parse_address(address)
    except ValueError as exc:
        logger.error("%s", exc, extra={"server_address": address})
        return None

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
    try:
        client.connect(host, port, keepalive=KEEPALIVE_SECONDS)
    except OSError as exc:
        logger.error("Can't connect server: %s", exc, extra={"server_address": address})
        return None
    return MqttConnection(client, address=address, topic=topic)
