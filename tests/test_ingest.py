"""Tests for the per-message ingestion pipeline."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import List

from services.ingest import StoreService
from storage.base import RecordStore
from storage.memory import InMemoryStore
from storage.rotating import RotatingFileStore


def _event(device_id: str, reading_ids: List[str]) -> bytes:
    return json.dumps(
        {
            "device_id": device_id,
            "ts": "2024-01-01T10:00:00Z",
            "hostname": "h1",
            "location": "L",
            "mac": "m",
            "ip": "i",
            "seq": 1,
            "readings": [
                {
                    "type": "t",
                    "id": reading_id,
                    "seq": index,
                    "ts": "2024-01-01T10:00:01Z",
                    "temps": [1.0, 2.0],
                    "audio": [],
                }
                for index, reading_id in enumerate(reading_ids, start=1)
            ],
        }
    ).encode("utf-8")


class RejectingStore(RecordStore):
    def __init__(self) -> None:
        self.attempts = 0

    def append(self, line: str) -> bool:
        self.attempts += 1
        return False


def test_one_append_per_reading_in_order() -> None:
    store = InMemoryStore()
    service = StoreService(store=store, server_address="broker:1883")

    written = service.handle_message(_event("d1", ["r1", "r2", "r3"]))

    assert written == 3
    assert [line.split(",")[9] for line in store.lines] == ["r1", "r2", "r3"]
    assert [line.split(",")[10] for line in store.lines] == ["1", "2", "3"]


def test_event_without_readings_writes_nothing() -> None:
    store = InMemoryStore()
    service = StoreService(store=store, server_address="broker:1883")

    assert service.handle_message(_event("d1", [])) == 0
    assert store.lines == []
    assert service.stats.dropped_messages == 0


def test_malformed_messages_are_dropped_without_halting() -> None:
    store = InMemoryStore()
    service = StoreService(store=store, server_address="broker:1883")
    batch = [
        _event("d1", ["a", "b"]),
        b"{broken",
        _event("d2", ["c"]),
        b'{"seq": "NaN-ish"}',
        _event("d3", ["d", "e", "f"]),
    ]

    for payload in batch:
        service.handle_message(payload)

    assert len(store.lines) == 6
    assert [line.split(",")[1] for line in store.lines] == ["d1", "d1", "d2", "d3", "d3", "d3"]
    assert service.stats.messages_received == 5
    assert service.stats.dropped_messages == 2
    assert service.stats.lines_written == 6


def test_dropped_store_lines_are_not_counted() -> None:
    store = RejectingStore()
    service = StoreService(store=store, server_address="broker:1883")

    assert service.handle_message(_event("d1", ["a", "b"])) == 0
    assert store.attempts == 2
    assert service.stats.lines_written == 0


def test_scenario_event_lands_in_dated_file(tmp_path: Path) -> None:
    store = RotatingFileStore(tmp_path / "store", today=lambda: date(2024, 1, 1))
    service = StoreService(store=store, server_address="broker:1883")

    service.handle_message(_event("d1", ["r1"]))
    store.close()

    content = (tmp_path / "store" / "2024-01-01.csv").read_text()
    assert content == (
        "2024-01-01T10:00:00Z,d1,h1,L,m,i,1,2024-01-01T10:00:01Z,t,r1,1,[1 2],[]\n"
    )
