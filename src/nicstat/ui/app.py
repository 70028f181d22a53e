from __future__ import annotations

from textual.app import App
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Static

from nicstat.core.exceptions import SourceUnavailableError
from nicstat.core.utils import local_hms
from nicstat.engine.rates import DerivedMetrics
from nicstat.engine.sampler import Sampler
from nicstat.report.formatting import FULL_COLUMNS, fmt_neat, fmt_pct


class NicstatApp(App):
    CSS = """
    Screen { padding: 1; }
    #nic_table { height: 1fr; }
    #status { height: 1; }
    """

    BINDINGS = [
        ("r", "refresh", "Sample now"),
        ("q", "quit_app", "Quit"),
    ]

    def __init__(self, *, sampler: Sampler, interval_seconds: float, count: int | None = None) -> None:
        super().__init__()
        self.sampler = sampler
        self.interval_seconds = interval_seconds
        self.count = count
        self.ticks = 0
        self.latest: dict[str, DerivedMetrics] = {}
        self._refresh_timer = None

    def compose(self):
        yield Header(show_clock=True)
        with Vertical():
            yield Static("", id="status")
            yield DataTable(id="nic_table")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#nic_table", DataTable)
        table.add_columns(*FULL_COLUMNS)
        table.cursor_type = "row"
        self._tick_refresh()
        self._refresh_timer = self.set_interval(self.interval_seconds, self._tick_refresh)

    def _tick_refresh(self) -> None:
        if self.count is not None and self.ticks >= self.count:
            if self._refresh_timer is not None:
                self._refresh_timer.stop()
            return
        self.ticks += 1
        status = self.query_one("#status", Static)
        try:
            result = self.sampler.tick()
        except SourceUnavailableError as exc:
            if self._refresh_timer is not None:
                self._refresh_timer.stop()
            status.update(f"Counter source unavailable: {exc}")
            return
        if result is None:
            status.update(f"Tick {self.ticks}: counter fetch failed, see log")
            return
        self.latest = {m.name: m for m in result.rows}
        self._render_table(local_hms(result.taken_at))
        status.update(
            f"Source: {self.sampler.source.name} | Tick {self.ticks} | "
            f"Interfaces: {result.fetched} | Rows: {len(result.rows)}"
        )

    def _render_table(self, hms: str) -> None:
        table = self.query_one("#nic_table", DataTable)
        table.clear()
        for name in sorted(self.latest):
            m = self.latest[name]
            table.add_row(
                hms,
                name,
                fmt_neat(m.read_kbps).strip(),
                fmt_neat(m.write_kbps).strip(),
                fmt_neat(m.read_pktps).strip(),
                fmt_neat(m.write_pktps).strip(),
                fmt_neat(m.read_avg_size).strip(),
                fmt_neat(m.write_avg_size).strip(),
                fmt_pct(m.utilization_pct),
                f"{m.saturation_per_sec:.2f}",
                key=name,
            )

    def action_refresh(self) -> None:
        self._tick_refresh()

    def action_quit_app(self) -> None:
        self.exit()
