from __future__ import annotations

import dataclasses
import sys
from abc import ABC, abstractmethod
from typing import TextIO

from nicstat.core.utils import local_hms, safe_json_dumps
from nicstat.engine.rates import DerivedMetrics
from nicstat.engine.sampler import TickResult
from nicstat.report.formatting import fmt_neat, full_header, summary_header


class Reporter(ABC):
    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    @abstractmethod
    def render(self, result: TickResult) -> None:
        ...

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()


class TableReporter(Reporter):
    """
    Classic paged text output. The header repeats after ``page_size`` rows,
    and on every tick that reports more than one interface.
    """

    def __init__(self, stream: TextIO | None = None, *, summary: bool = False, page_size: int = 20) -> None:
        super().__init__(stream)
        self.summary = summary
        self.page_size = page_size
        self._lines = page_size

    def header(self) -> str:
        return summary_header() if self.summary else full_header()

    def format_row(self, hms: str, m: DerivedMetrics) -> str:
        if self.summary:
            return "%8s %8s %14.3f %14.3f" % (hms, m.name, m.read_kbps, m.write_kbps)
        cells = [
            fmt_neat(m.read_kbps),
            fmt_neat(m.write_kbps),
            fmt_neat(m.read_pktps),
            fmt_neat(m.write_pktps),
            fmt_neat(m.read_avg_size),
            fmt_neat(m.write_avg_size),
        ]
        return "%8s %7s %s %7.2f %6.2f" % (
            hms,
            m.name,
            " ".join(cells),
            m.utilization_pct,
            m.saturation_per_sec,
        )

    def render(self, result: TickResult) -> None:
        if not result.rows:
            return
        if self._lines >= self.page_size:
            self._write(self.header())
            self._lines = 0
        hms = local_hms(result.taken_at)
        for m in result.rows:
            self._write(self.format_row(hms, m))
            self._lines += 1
        # Counts reported rows, not fetched interfaces, so a -z tick left with
        # one row pages like a single-interface host.
        if len(result.rows) > 1:
            self._lines += self.page_size


class JsonLinesReporter(Reporter):
    def render(self, result: TickResult) -> None:
        for m in result.rows:
            payload = {"time": result.taken_at.isoformat(timespec="seconds")}
            payload.update(dataclasses.asdict(m))
            self._write(safe_json_dumps(payload))


def make_reporter(style: str, stream: TextIO | None = None, *, page_size: int = 20) -> Reporter:
    if style == "json":
        return JsonLinesReporter(stream)
    return TableReporter(stream, summary=(style == "summary"), page_size=page_size)
