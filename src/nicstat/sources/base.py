from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

LOOPBACK_NAME = re.compile(r"lo\d*")  # lo on Linux, lo0 on BSD and Solaris


@dataclass(frozen=True)
class InterfaceSnapshot:
    name: str
    read_bytes: int = 0
    write_bytes: int = 0
    read_packets: int = 0
    write_packets: int = 0
    speed: int = 0  # bits/s, 0 is unknown
    saturation_events: int = 0
    timestamp: float = 0.0  # monotonic seconds

    def zeroed(self, timestamp: float) -> "InterfaceSnapshot":
        """Same interface and speed with all counters reset, at ``timestamp``."""
        return replace(
            self,
            read_bytes=0,
            write_bytes=0,
            read_packets=0,
            write_packets=0,
            saturation_events=0,
            timestamp=timestamp,
        )


def is_loopback(name: str) -> bool:
    return LOOPBACK_NAME.fullmatch(name) is not None


class CounterSource(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch(self) -> list[InterfaceSnapshot]:
        """One snapshot per known interface. Raises CounterSourceError."""

    def boot_time(self) -> float | None:
        """Boot instant on the same clock as snapshot timestamps, if known."""
        return None

    def close(self) -> None:
        return None
