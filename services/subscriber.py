"""Self-healing subscribe loop."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from services.ingest import StoreService
from transport.mqtt import MqttConnection

logger = logging.getLogger(__name__)

Connector = Callable[[str], Optional[MqttConnection]]


class SubscriberState(str, Enum):
    """Connection lifecycle states of the subscriber."""

    connected = "connected"
    disconnected = "disconnected"
    reconnecting = "reconnecting"


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed backoff between reconnect attempts; ``max_attempts=None`` retries forever."""

    backoff_seconds: float = 5.0
    max_attempts: Optional[int] = None

    def allows(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts


class ReconnectingSubscriber:
    """
    Keeps a subscription open across transport failures.

    Every time ``subscribe`` returns the connection is considered broken: the
    handle is cleared, the worker sleeps for the backoff and a single new
    connection attempt is made, unless another caller repaired the handle in
    the meantime.
    """

    def __init__(
        self,
        service: StoreService,
        connect: Connector,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.service = service
        self.policy = policy or RetryPolicy()
        self._connect = connect
        self._sleep = sleep
        self.attempts = 0
        self.state = (
            SubscriberState.connected
            if service.connection is not None
            else SubscriberState.disconnected
        )

    def run(self) -> None:
        """Subscribe forever; returns only if the retry policy has a ceiling."""
        while True:
            connection = self._current_connection()
            if connection is not None:
                self._set_state(SubscriberState.connected)
                connection.subscribe(self.service.handle_message)
                logger.warning(
                    "Error on subscribe",
                    extra={"server_address": self.service.server_address},
                )
            else:
                logger.warning("No connection to subscribe with")

            self.attempts += 1
            if not self.policy.allows(self.attempts):
                logger.error(
                    "Giving up after reconnect limit",
                    extra={"attempt": self.attempts},
                )
                return
            self.reconnect()

    def reconnect(self) -> None:
        service = self.service
        with service.connection_lock:
            broken = service.connection
            if broken is not None:
                service.connection = None
                logger.info("Client reset")
        if broken is not None:
            broken.close()

        self._set_state(SubscriberState.reconnecting)
        self._sleep(self.policy.backoff_seconds)

        with service.connection_lock:
            if service.connection is None:
                fresh = self._connect(service.server_address)
                if fresh is not None:
                    service.connection = fresh
                    logger.info(
                        "Reconnect server",
                        extra={
                            "server_address": service.server_address,
                            "attempt": self.attempts,
                        },
                    )
                else:
                    logger.warning(
                        "Reconnect failed",
                        extra={
                            "server_address": service.server_address,
                            "attempt": self.attempts,
                        },
                    )
            else:
                logger.info("Use reconnected server")
            repaired = service.connection is not None

        self._set_state(
            SubscriberState.connected if repaired else SubscriberState.disconnected
        )

    def _current_connection(self) -> Optional[MqttConnection]:
        with self.service.connection_lock:
            return self.service.connection

    def _set_state(self, state: SubscriberState) -> None:
        if state is not self.state:
            logger.debug("Subscriber state change", extra={"state": state.value})
        self.state = state
