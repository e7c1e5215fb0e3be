"""Per-message ingestion pipeline and the state it shares with the subscriber."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from codec.decoder import DecodeError, EventDecoder
from codec.formatter import RecordFormatter
from storage.base import RecordStore
from transport.mqtt import MqttConnection

logger = logging.getLogger(__name__)


@dataclass
class IngestStatistics:
    messages_received: int = 0
    dropped_messages: int = 0
    lines_written: int = 0


class StoreService:
    """
    Owns the store, the connection handle and the lock guarding that handle.

    ``handle_message`` runs on the subscriber thread; the store is only ever
    touched from there.
    """

    def __init__(
        self,
        store: RecordStore,
        server_address: str,
        connection: Optional[MqttConnection] = None,
        decoder: Optional[EventDecoder] = None,
        formatter: Optional[RecordFormatter] = None,
    ) -> None:
        self.store = store
        self.server_address = server_address
        self.connection = connection
        self.connection_lock = Lock()
        self.decoder = decoder or EventDecoder()
        self.formatter = formatter or RecordFormatter()
        self.stats = IngestStatistics()

    def handle_message(self, payload: bytes) -> int:
        """Decode one payload and append a line per reading; returns lines written."""
        self.stats.messages_received += 1
        try:
            event = self.decoder.decode(payload)
        except DecodeError:
            # Malformed payloads are dropped without surfacing to the session.
            self.stats.dropped_messages += 1
            return 0

        written = 0
        for reading in event.readings:
            line = self.formatter.format(event, reading)
            if self.store.append(line):
                written += 1
        self.stats.lines_written += written
        logger.debug(
            "Stored event %d", event.seq, extra={"device_id": event.device_id, "lines": written}
        )
        return written
