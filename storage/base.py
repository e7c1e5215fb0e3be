"""Narrow capability shared by record store backends."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RecordStore(ABC):
    """Append-only sink for formatted record lines."""

    @abstractmethod
    def append(self, line: str) -> bool:
        """
        Persist one record line.

        Returns:
            True if the line was written, False if it was dropped
        """

    def close(self) -> None:
        """Release any held resources."""
