from __future__ import annotations

import doctor
from nicstat.core.exceptions import SourceUnavailableError
from nicstat.sources.base import CounterSource, InterfaceSnapshot


class _StepSource(CounterSource):
    name = "step"

    def __init__(self) -> None:
        self.t = 0.0

    def fetch(self) -> list[InterfaceSnapshot]:
        self.t += 1.0
        return [InterfaceSnapshot(name="eth0", read_bytes=int(self.t) * 1024, speed=10_000_000, timestamp=self.t)]


def test_doctor_reports_sources_and_probe(monkeypatch, capsys) -> None:
    monkeypatch.delenv("NICSTAT_CONFIG", raising=False)

    def fake_make_source(cfg):
        if cfg.kind == "kstat":
            raise SourceUnavailableError("kstat command not found")
        return _StepSource()

    monkeypatch.setattr(doctor, "make_source", fake_make_source)
    rc = doctor.main(["--wait", "0"], sleep=lambda _s: None)

    out = capsys.readouterr().out
    assert rc == 0
    assert "[OK] psutil: 1 interfaces" in out
    assert "[--] kstat: unavailable" in out
    assert "eth0: speed=10 Mb/s" in out
    assert "eth0: rKB/s=1.00" in out


def test_doctor_fails_when_configured_source_missing(monkeypatch, capsys) -> None:
    monkeypatch.delenv("NICSTAT_CONFIG", raising=False)

    def unavailable(cfg):
        raise SourceUnavailableError("nothing here")

    monkeypatch.setattr(doctor, "make_source", unavailable)
    assert doctor.main([], sleep=lambda _s: None) == 2
    assert "[FAIL] Configured source psutil unavailable" in capsys.readouterr().out
