"""Process-wide shutdown hooks bound to termination signals."""

from __future__ import annotations

import logging
import signal
import sys
from threading import Lock
from typing import Callable, List

logger = logging.getLogger(__name__)


class ShutdownHooks:
    """Cleanup callbacks run once, last registered first, when the process stops."""

    def __init__(self) -> None:
        self._hooks: List[Callable[[], object]] = []
        self._lock = Lock()
        self._ran = False

    def register(self, hook: Callable[[], object]) -> None:
        with self._lock:
            self._hooks.append(hook)

    def run(self) -> None:
        with self._lock:
            if self._ran:
                return
            self._ran = True
            hooks = list(reversed(self._hooks))

        for hook in hooks:
            try:
                hook()
            except Exception:  # noqa: BLE001 - remaining hooks must still run
                logger.exception("Shutdown hook %r failed", hook)

    def install_signal_handlers(self) -> None:
        def handler(signum: int, _frame: object) -> None:
            logger.info("Received %s, shutting down", signal.Signals(signum).name)
            self.run()
            sys.exit(0)

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)
