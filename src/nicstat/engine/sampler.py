from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from nicstat.core.config import AppConfig
from nicstat.core.exceptions import CounterSourceError, SourceUnavailableError
from nicstat.engine.rates import DerivedMetrics, RateEngine
from nicstat.engine.store import SampleStore
from nicstat.sources.base import CounterSource, InterfaceSnapshot
from nicstat.sources.retry import call_with_retries


@dataclass(frozen=True)
class TickResult:
    taken_at: datetime
    fetched: int
    rows: list[DerivedMetrics] = field(default_factory=list)


class Sampler:
    """
    One tick: fetch a snapshot, apply the allow-list, evaluate each
    interface and drop zero-traffic rows when skip-zero is on.

    Skip-zero only filters what is returned; stored state is the same
    either way.
    """

    def __init__(
        self,
        source: CounterSource,
        *,
        allow: Iterable[str] | None = None,
        skip_zero: bool = False,
        since_boot: bool = False,
        max_attempts: int = 1,
        backoff_seconds: list[float] | None = None,
        store: SampleStore | None = None,
    ) -> None:
        self.source = source
        self.allow = frozenset(allow) if allow else None
        self.skip_zero = skip_zero
        self.since_boot = since_boot
        self.max_attempts = max_attempts
        self.backoff_seconds = list(backoff_seconds or [])
        self.engine = RateEngine(store)
        self._primed = False
        self._log = logging.getLogger("nicstat.sampler")

    @classmethod
    def from_config(cls, source: CounterSource, config: AppConfig) -> "Sampler":
        return cls(
            source,
            allow=config.filters.allow_list(),
            skip_zero=config.filters.skip_zero,
            since_boot=config.sampling.since_boot,
            max_attempts=config.source.retries.max_attempts,
            backoff_seconds=config.source.retries.backoff_seconds,
        )

    @property
    def store(self) -> SampleStore:
        return self.engine.store

    def tick(self) -> TickResult | None:
        """Fetch and process one snapshot. None when the fetch failed."""
        try:
            snapshots = call_with_retries(
                self.source.fetch,
                max_attempts=self.max_attempts,
                backoff_seconds=self.backoff_seconds,
            )
        except SourceUnavailableError:
            raise
        except CounterSourceError as exc:
            self._log.warning("skipping tick, counter fetch failed: %s", exc)
            return None
        rows = self.process(snapshots)
        return TickResult(taken_at=datetime.now(), fetched=len(snapshots), rows=rows)

    def process(self, snapshots: Iterable[InterfaceSnapshot]) -> list[DerivedMetrics]:
        snapshots = [s for s in snapshots if self.allow is None or s.name in self.allow]
        if self.since_boot and not self._primed:
            self._prime(snapshots)

        rows: list[DerivedMetrics] = []
        for snap in snapshots:
            metrics = self.engine.evaluate(snap, self.allow)
            if metrics is None:
                continue
            if self.skip_zero and metrics.suppressible:
                continue
            rows.append(metrics)
        return rows

    def _prime(self, snapshots: list[InterfaceSnapshot]) -> None:
        self._primed = True
        boot = self.source.boot_time()
        if boot is None:
            self._log.info("source %s has no boot time, first tick is a baseline", self.source.name)
            return
        added = self.store.prime(s.zeroed(boot) for s in snapshots)
        self._log.debug("primed %d interfaces with since-boot baseline", added)
