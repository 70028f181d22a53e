from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Mapping

from nicstat.core.exceptions import CounterSourceError, SourceUnavailableError
from nicstat.sources.base import CounterSource, InterfaceSnapshot, is_loopback

KSTAT_COMMAND = ("kstat", "-p", "-c", "net")
SATURATION_STATS = ("defer", "nocanput", "norcvbuf", "noxmtbuf")

KstatKey = tuple[str, str, str]  # (module, instance, name)


def parse_kstat_output(text: str) -> dict[KstatKey, dict[str, str]]:
    """
    Parse ``kstat -p`` lines (``module:instance:name:statistic<ws>value``)
    into {(module, instance, name): {statistic: value}}. Lines that do not
    match are ignored.
    """
    out: dict[KstatKey, dict[str, str]] = {}
    for line in text.splitlines():
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        key, value = parts
        fields = key.split(":")
        if len(fields) != 4:
            continue
        module, instance, name, statistic = fields
        if not name or not statistic:
            continue
        out.setdefault((module, instance, name), {})[statistic] = value.strip()
    return out


def is_link_kstat(module: str, instance: str, name: str) -> bool:
    """
    True for kstats that describe one network link: the driver's own
    ``e1000g:0:e1000g0`` or the ``link:0:e1000g0`` view. Per-instance
    ``mac`` statistics and other class ``net`` kstats are not links.
    """
    if name == "mac":
        return False
    return module == "link" or name == f"{module}{instance}"


def link_kstats(parsed: Mapping[KstatKey, Mapping[str, str]]) -> dict[str, Mapping[str, str]]:
    """Statistics per link name. The ``link`` module wins over the driver kstat."""
    out: dict[str, Mapping[str, str]] = {}
    for (module, instance, name), stats in sorted(parsed.items()):
        if not is_link_kstat(module, instance, name):
            continue
        if name in out and module != "link":
            continue
        out[name] = stats
    return out


def _num(stats: Mapping[str, str], key: str) -> int | None:
    raw = stats.get(key)
    if raw is None:
        return None
    # int() first: 64-bit counters do not survive a trip through float
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return int(float(raw))
    except ValueError:
        return None


def _first(stats: Mapping[str, str], *keys: str) -> int:
    for key in keys:
        v = _num(stats, key)
        if v is not None:
            return v
    return 0


def snapshot_from_kstat(name: str, stats: Mapping[str, str]) -> InterfaceSnapshot | None:
    # Only real interfaces publish opackets
    if "opackets" not in stats:
        return None

    if "obytes64" in stats:
        read_bytes, write_bytes = _first(stats, "rbytes64"), _first(stats, "obytes64")
    elif "obytes" in stats:
        read_bytes, write_bytes = _first(stats, "rbytes"), _first(stats, "obytes")
    else:
        read_bytes = write_bytes = 0

    if "opackets64" in stats:
        read_packets = _first(stats, "ipackets64", "ipackets")
        write_packets = _first(stats, "opackets64")
    else:
        read_packets = _first(stats, "ipackets")
        write_packets = _first(stats, "opackets")

    saturation = 0
    if "nocanput" in stats or "norcvbuf" in stats:
        saturation = sum(_first(stats, s) for s in SATURATION_STATS)

    try:
        timestamp = float(stats.get("snaptime", "0"))
    except ValueError:
        timestamp = 0.0

    return InterfaceSnapshot(
        name=name,
        read_bytes=read_bytes,
        write_bytes=write_bytes,
        read_packets=read_packets,
        write_packets=write_packets,
        speed=max(_first(stats, "ifspeed"), 0),
        saturation_events=saturation,
        timestamp=timestamp,
    )


class KstatCounterSource(CounterSource):
    """Solaris / illumos source built on ``kstat -p`` output."""

    name = "kstat"

    def __init__(self, *, include_loopback: bool = False, command_timeout: float = 5.0) -> None:
        self.include_loopback = include_loopback
        self.command_timeout = float(command_timeout)
        self._log = logging.getLogger("nicstat.sources.kstat")
        if shutil.which(KSTAT_COMMAND[0]) is None:
            raise SourceUnavailableError("kstat command not found")

    def fetch(self) -> list[InterfaceSnapshot]:
        try:
            p = subprocess.run(
                list(KSTAT_COMMAND),
                capture_output=True,
                text=True,
                timeout=self.command_timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise SourceUnavailableError("kstat command not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise CounterSourceError(f"kstat timed out after {self.command_timeout}s") from exc
        except OSError as exc:
            raise CounterSourceError(f"kstat failed: {exc}") from exc
        if p.returncode != 0:
            raise CounterSourceError(f"kstat exited {p.returncode}: {p.stderr.strip()}")

        out: list[InterfaceSnapshot] = []
        for name, stats in sorted(link_kstats(parse_kstat_output(p.stdout)).items()):
            if not self.include_loopback and is_loopback(name):
                continue
            snap = snapshot_from_kstat(name, stats)
            if snap is not None:
                out.append(snap)
        self._log.debug("fetched %d interfaces", len(out))
        return out

    def boot_time(self) -> float | None:
        # snaptime counts seconds since boot
        return 0.0
