from __future__ import annotations

import logging
import time

import psutil

from nicstat.core.exceptions import CounterSourceError
from nicstat.sources.base import CounterSource, InterfaceSnapshot, is_loopback

_BITS_PER_MEGABIT = 1_000_000


class PsutilCounterSource(CounterSource):
    name = "psutil"

    def __init__(self, *, include_loopback: bool = False) -> None:
        self.include_loopback = include_loopback
        self._log = logging.getLogger("nicstat.sources.psutil")

    def fetch(self) -> list[InterfaceSnapshot]:
        try:
            counters = psutil.net_io_counters(pernic=True, nowrap=True)
            stats = psutil.net_if_stats()
        except (OSError, RuntimeError) as exc:
            raise CounterSourceError(f"psutil counter read failed: {exc}") from exc
        now = time.monotonic()

        out: list[InterfaceSnapshot] = []
        for name, c in sorted(counters.items()):
            if not self.include_loopback and is_loopback(name):
                continue
            st = stats.get(name)
            speed_mbit = int(getattr(st, "speed", 0) or 0)
            out.append(
                InterfaceSnapshot(
                    name=name,
                    read_bytes=int(c.bytes_recv),
                    write_bytes=int(c.bytes_sent),
                    read_packets=int(c.packets_recv),
                    write_packets=int(c.packets_sent),
                    speed=max(speed_mbit, 0) * _BITS_PER_MEGABIT,
                    saturation_events=int(c.dropin) + int(c.dropout),
                    timestamp=now,
                )
            )
        self._log.debug("fetched %d interfaces", len(out))
        return out

    def boot_time(self) -> float | None:
        return monotonic_boot_time()


def monotonic_boot_time() -> float | None:
    """Boot instant expressed on the time.monotonic() clock."""
    try:
        uptime = time.time() - float(psutil.boot_time())
    except (OSError, RuntimeError):
        return None
    if uptime <= 0:
        return None
    return time.monotonic() - uptime
