from __future__ import annotations

import logging
import time
from pathlib import Path

from nicstat.core.exceptions import CounterSourceError, SourceUnavailableError
from nicstat.sources.base import CounterSource, InterfaceSnapshot, is_loopback
from nicstat.sources.psutil_source import monotonic_boot_time

SATURATION_STATS = ("rx_fifo_errors", "tx_fifo_errors", "rx_missed_errors", "rx_over_errors")


def _read_int(path: Path) -> int | None:
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except OSError:
        # e.g. EINVAL reading speed of a link that is down
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class SysfsCounterSource(CounterSource):
    """Linux /sys/class/net/<if>/statistics reader."""

    name = "sysfs"

    def __init__(self, *, root: str | Path = "/sys/class/net", include_loopback: bool = False) -> None:
        self.root = Path(root)
        self.include_loopback = include_loopback
        self._log = logging.getLogger("nicstat.sources.sysfs")
        if not self.root.is_dir():
            raise SourceUnavailableError(f"sysfs network directory not found: {self.root}")

    def fetch(self) -> list[InterfaceSnapshot]:
        try:
            ifaces = sorted(p for p in self.root.iterdir() if (p / "statistics").is_dir())
        except OSError as exc:
            raise CounterSourceError(f"cannot list {self.root}: {exc}") from exc
        now = time.monotonic()

        out: list[InterfaceSnapshot] = []
        for iface in ifaces:
            if not self.include_loopback and is_loopback(iface.name):
                continue
            out.append(self._read_interface(iface, now))
        self._log.debug("fetched %d interfaces", len(out))
        return out

    def _read_interface(self, iface: Path, now: float) -> InterfaceSnapshot:
        stats = iface / "statistics"

        def stat(name: str) -> int:
            return _read_int(stats / name) or 0

        speed_mbit = _read_int(iface / "speed")
        # -1 means unknown
        speed = speed_mbit * 1_000_000 if speed_mbit and speed_mbit > 0 else 0
        return InterfaceSnapshot(
            name=iface.name,
            read_bytes=stat("rx_bytes"),
            write_bytes=stat("tx_bytes"),
            read_packets=stat("rx_packets"),
            write_packets=stat("tx_packets"),
            speed=speed,
            saturation_events=sum(stat(s) for s in SATURATION_STATS),
            timestamp=now,
        )

    def boot_time(self) -> float | None:
        return monotonic_boot_time()
