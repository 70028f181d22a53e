from __future__ import annotations

import pytest

from nicstat.core.config import AppConfig
from nicstat.core.exceptions import CounterSourceError, SourceUnavailableError
from nicstat.engine.sampler import Sampler
from nicstat.sources.base import CounterSource, InterfaceSnapshot


class _ScriptedSource(CounterSource):
    name = "scripted"

    def __init__(self, ticks: list[list[InterfaceSnapshot] | Exception], boot: float | None = None) -> None:
        self._ticks = list(ticks)
        self._boot = boot
        self.calls = 0

    def fetch(self) -> list[InterfaceSnapshot]:
        self.calls += 1
        item = self._ticks.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def boot_time(self) -> float | None:
        return self._boot


def _snap(name: str, t: float, rb: int = 0, wb: int = 0) -> InterfaceSnapshot:
    return InterfaceSnapshot(name=name, read_bytes=rb, write_bytes=wb, read_packets=rb // 100, timestamp=t)


def _sequence() -> list[list[InterfaceSnapshot] | Exception]:
    return [
        [_snap("eth0", 0.0, 1000), _snap("eth1", 0.0, 500)],
        [_snap("eth0", 1.0, 1000), _snap("eth1", 1.0, 1524)],
        [_snap("eth0", 2.0, 3048), _snap("eth1", 2.0, 1524)],
    ]


def test_first_tick_bootstraps_every_interface() -> None:
    sampler = Sampler(_ScriptedSource(_sequence()))
    result = sampler.tick()

    assert result is not None
    assert result.rows == []
    assert result.fetched == 2
    assert sampler.store.names() == ["eth0", "eth1"]


def test_skip_zero_drops_idle_rows() -> None:
    sampler = Sampler(_ScriptedSource(_sequence()), skip_zero=True)
    sampler.tick()
    second = sampler.tick()

    assert second is not None
    assert [m.name for m in second.rows] == ["eth1"]


def test_skip_zero_does_not_change_stored_state() -> None:
    plain = Sampler(_ScriptedSource(_sequence()))
    skipping = Sampler(_ScriptedSource(_sequence()), skip_zero=True)
    for _ in range(3):
        plain.tick()
        skipping.tick()

    for name in ("eth0", "eth1"):
        assert plain.store.get(name) == skipping.store.get(name)


def test_allow_list_limits_evaluation_and_state() -> None:
    sampler = Sampler(_ScriptedSource(_sequence()), allow=["eth1"])
    sampler.tick()
    result = sampler.tick()

    assert result is not None
    assert [m.name for m in result.rows] == ["eth1"]
    assert "eth0" not in sampler.store


def test_since_boot_priming_reports_on_first_tick() -> None:
    source = _ScriptedSource([[_snap("eth0", 100.0, 102_400)]], boot=0.0)
    sampler = Sampler(source, since_boot=True)
    result = sampler.tick()

    assert result is not None
    assert len(result.rows) == 1
    assert result.rows[0].read_kbps == pytest.approx(1.0)
    assert result.rows[0].elapsed == pytest.approx(100.0)


def test_since_boot_without_boot_time_is_plain_bootstrap() -> None:
    source = _ScriptedSource([[_snap("eth0", 100.0, 102_400)]], boot=None)
    sampler = Sampler(source, since_boot=True)
    result = sampler.tick()

    assert result is not None
    assert result.rows == []


def test_interface_appearing_later_bootstraps_normally() -> None:
    source = _ScriptedSource(
        [
            [_snap("eth0", 10.0, 1000)],
            [_snap("eth0", 11.0, 2024), _snap("eth2", 11.0, 50_000)],
        ],
        boot=0.0,
    )
    sampler = Sampler(source, since_boot=True)
    sampler.tick()
    result = sampler.tick()

    assert result is not None
    assert [m.name for m in result.rows] == ["eth0"]
    assert "eth2" in sampler.store


def test_vanished_interface_keeps_stale_state() -> None:
    source = _ScriptedSource([[_snap("eth0", 0.0), _snap("eth1", 0.0)], [_snap("eth0", 1.0)]])
    sampler = Sampler(source)
    sampler.tick()
    sampler.tick()

    stale = sampler.store.get("eth1")
    assert stale is not None
    assert stale.timestamp == 0.0


def test_fetch_failure_is_retried_then_processed() -> None:
    source = _ScriptedSource([CounterSourceError("busy"), [_snap("eth0", 0.0)]])
    sampler = Sampler(source, max_attempts=2, backoff_seconds=[0.0])
    result = sampler.tick()

    assert source.calls == 2
    assert result is not None
    assert "eth0" in sampler.store


def test_persistent_fetch_failure_skips_tick() -> None:
    source = _ScriptedSource([CounterSourceError("down"), [_snap("eth0", 0.0)]])
    sampler = Sampler(source)

    assert sampler.tick() is None
    assert len(sampler.store) == 0
    assert sampler.tick() is not None


def test_unavailable_source_propagates() -> None:
    sampler = Sampler(_ScriptedSource([SourceUnavailableError("gone")]), max_attempts=3)
    with pytest.raises(SourceUnavailableError):
        sampler.tick()


def test_from_config_wires_filters() -> None:
    cfg = AppConfig.model_validate(
        {"filters": {"interfaces": ["eth0"], "skip_zero": True}, "sampling": {"since_boot": False}}
    )
    sampler = Sampler.from_config(_ScriptedSource([]), cfg)

    assert sampler.allow == frozenset({"eth0"})
    assert sampler.skip_zero is True
    assert sampler.since_boot is False


def test_default_config_keeps_first_tick_silent_even_with_boot_time() -> None:
    sampler = Sampler.from_config(_ScriptedSource(_sequence(), boot=-100.0), AppConfig())
    result = sampler.tick()

    assert sampler.since_boot is False
    assert result is not None
    assert result.rows == []
