from __future__ import annotations

import logging
from collections.abc import Container
from dataclasses import dataclass

from nicstat.engine.store import SampleStore
from nicstat.sources.base import InterfaceSnapshot

BYTES_PER_KB = 1024
BITS_PER_BYTE = 8


@dataclass(frozen=True)
class DerivedMetrics:
    name: str
    read_kbps: float
    write_kbps: float
    read_pktps: float
    write_pktps: float
    read_avg_size: float  # bytes/packet
    write_avg_size: float
    utilization_pct: float
    saturation_per_sec: float
    suppressible: bool
    elapsed: float


class RateEngine:
    """
    Turns successive cumulative snapshots into per-second rates.

    Every evaluated snapshot replaces the stored prior for its interface,
    whether or not a row comes out. Counter decreases (resets, wraparound)
    are passed through as negative rates.
    """

    def __init__(self, store: SampleStore | None = None) -> None:
        self.store = store if store is not None else SampleStore()
        self._log = logging.getLogger("nicstat.engine")

    def evaluate(
        self,
        current: InterfaceSnapshot,
        allow: Container[str] | None = None,
    ) -> DerivedMetrics | None:
        if allow is not None and current.name not in allow:
            return None

        prior = self.store.get(current.name)
        self.store.put(current)

        if prior is None:
            self._log.debug("bootstrap %s", current.name)
            return None

        elapsed = current.timestamp - prior.timestamp
        if elapsed <= 0:
            self._log.debug("non-advancing interval for %s (%.6fs)", current.name, elapsed)
            return None

        return derive(prior, current, elapsed, log=self._log)


def derive(
    prior: InterfaceSnapshot,
    current: InterfaceSnapshot,
    elapsed: float,
    *,
    log: logging.Logger | None = None,
) -> DerivedMetrics:
    read_delta = current.read_bytes - prior.read_bytes
    write_delta = current.write_bytes - prior.write_bytes
    if log is not None and (read_delta < 0 or write_delta < 0):
        log.debug("counter decreased on %s, reporting negative rate", current.name)

    read_bps = read_delta / elapsed
    write_bps = write_delta / elapsed
    read_pktps = (current.read_packets - prior.read_packets) / elapsed
    write_pktps = (current.write_packets - prior.write_packets) / elapsed

    read_avg = read_bps / read_pktps if read_pktps > 0 else 0.0
    write_avg = write_bps / write_pktps if write_pktps > 0 else 0.0

    if current.speed > 0:
        util = (read_bps + write_bps) * BITS_PER_BYTE * 100 / current.speed
        util = min(util, 100.0)
    else:
        util = 0.0

    return DerivedMetrics(
        name=current.name,
        read_kbps=read_bps / BYTES_PER_KB,
        write_kbps=write_bps / BYTES_PER_KB,
        read_pktps=read_pktps,
        write_pktps=write_pktps,
        read_avg_size=read_avg,
        write_avg_size=write_avg,
        utilization_pct=util,
        saturation_per_sec=(current.saturation_events - prior.saturation_events) / elapsed,
        suppressible=(read_bps + write_bps) == 0,
        elapsed=elapsed,
    )
