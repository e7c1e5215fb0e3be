"""Date-partitioned CSV file store."""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, TextIO

from settings import get_settings, resolve_base_dir
from storage.base import RecordStore

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
FILE_SUFFIX = ".csv"


class RotatingFileStore(RecordStore):
    """
    Appends lines to ``<base_dir>/<YYYY-MM-DD>.csv`` for the current local date.

    At most one file is open at a time. The file is opened lazily on the first
    append and is closed only when an append observes that the date changed.
    Not thread safe: callers must append from a single thread.
    """

    def __init__(
        self,
        base_dir: Path,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.base_dir = base_dir
        self._today = today
        self._handle: Optional[TextIO] = None
        self._date: Optional[str] = None

    @property
    def current_date(self) -> Optional[str]:
        return self._date if self._handle is not None else None

    @property
    def current_path(self) -> Optional[Path]:
        if self._handle is None or self._date is None:
            return None
        return self.base_dir / f"{self._date}{FILE_SUFFIX}"

    def append(self, line: str) -> bool:
        today = self._today().strftime(DATE_FORMAT)

        if self._handle is not None and self._date != today:
            logger.info(
                "Date changed, closing %s", self.current_path, extra={"date": today}
            )
            self._close_handle()

        if self._handle is None and not self._open(today):
            return False

        assert self._handle is not None
        try:
            self._handle.write(line + "\n")
        except OSError as exc:
            logger.error(
                "Can't write record: %s", exc, extra={"path": self.current_path}
            )
            return False
        return True

    def close(self) -> None:
        if self._handle is not None:
            self._close_handle()

    def _open(self, today: str) -> bool:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                "Can't make dir: %s", exc, extra={"path": self.base_dir}
            )
            return False

        path = self.base_dir / f"{today}{FILE_SUFFIX}"
        try:
            handle = path.open("a", encoding="utf-8", buffering=1)
        except OSError as exc:
            logger.error("Can't open file: %s", exc, extra={"path": path})
            return False

        self._handle = handle
        self._date = today
        logger.info("Opened store file", extra={"path": path, "date": today})
        return True

    def _close_handle(self) -> None:
        assert self._handle is not None
        try:
            self._handle.close()
        except OSError as exc:
            logger.warning(
                "Error closing store file: %s", exc, extra={"path": self.current_path}
            )
        finally:
            self._handle = None
            self._date = None


@lru_cache
def build_default_store(base_dir: Optional[str] = None) -> RotatingFileStore:
    settings = get_settings()
    configured = settings.base_dir if base_dir is None else base_dir
    return RotatingFileStore(base_dir=resolve_base_dir(configured))
