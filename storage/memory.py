from __future__ import annotations

from typing import List

from storage.base import RecordStore


class InMemoryStore(RecordStore):
    """Keeps appended lines in a list; used for dry runs and tests."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.closed = False

    def append(self, line: str) -> bool:
        self.lines.append(line)
        return True

    def close(self) -> None:
        self.closed = True
