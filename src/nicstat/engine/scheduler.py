from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class TickScheduler:
    interval_seconds: float
    count: int | None = 1  # None runs until stopped
    _stop: threading.Event = field(default_factory=threading.Event)
    _log: Any = None

    def __post_init__(self) -> None:
        self._log = logging.getLogger("nicstat.scheduler")

    def ticks(self) -> Iterator[int]:
        """
        Yields 1, 2, ... waiting interval_seconds between ticks.
        Stops after ``count`` ticks or once request_stop() is called.
        No wait follows the last tick.
        """
        n = 0
        while not self._stop.is_set():
            n += 1
            yield n
            if self.count is not None and n >= self.count:
                return
            if self._stop.wait(self.interval_seconds):
                self._log.debug("stopped after %d ticks", n)
                return

    def request_stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()
