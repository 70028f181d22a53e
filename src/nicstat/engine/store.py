from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from nicstat.sources.base import InterfaceSnapshot


@dataclass
class SampleStore:
    """
    Last processed snapshot per interface name.

    Entries live for the whole run; an interface that disappears from the
    source keeps its stale entry.
    """

    _prior: dict[str, InterfaceSnapshot] = field(default_factory=dict)

    def get(self, name: str) -> InterfaceSnapshot | None:
        return self._prior.get(name)

    def put(self, snapshot: InterfaceSnapshot) -> None:
        self._prior[snapshot.name] = snapshot

    def prime(self, snapshots: Iterable[InterfaceSnapshot]) -> int:
        """Store baselines for names not yet seen. Returns how many were added."""
        added = 0
        for snap in snapshots:
            if snap.name not in self._prior:
                self._prior[snap.name] = snap
                added += 1
        return added

    def names(self) -> list[str]:
        return sorted(self._prior)

    def __contains__(self, name: object) -> bool:
        return name in self._prior

    def __len__(self) -> int:
        return len(self._prior)
