from __future__ import annotations

from pathlib import Path

import pytest

from nicstat.core.config import AppConfig, load_config
from nicstat.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.delenv("NICSTAT_CONFIG", raising=False)
    monkeypatch.delenv("NICSTAT_LOG_LEVEL", raising=False)


def test_defaults_are_one_shot_without_priming() -> None:
    cfg = load_config(None)

    assert cfg.sampling.count == 1
    assert cfg.sampling.since_boot is False
    assert cfg.filters.allow_list() is None
    assert cfg.output.style == "full"
    assert cfg.output.page_size == 20
    assert cfg.source.kind == "psutil"


def test_yaml_file_and_overrides(tmp_path: Path) -> None:
    path = tmp_path / "nicstat.yaml"
    path.write_text(
        "sampling:\n  interval_seconds: 5\n  count: 10\nfilters:\n  interfaces: [eth0, ' eth1 ', '']\n",
        encoding="utf-8",
    )
    cfg = load_config(path, overrides={"sampling": {"count": 3}, "output": {"style": "summary"}})

    assert cfg.sampling.interval_seconds == 5
    assert cfg.sampling.count == 3
    assert cfg.filters.interfaces == ["eth0", "eth1"]
    assert cfg.filters.allow_list() == frozenset({"eth0", "eth1"})
    assert cfg.output.style == "summary"


def test_config_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "env.yaml"
    path.write_text("filters:\n  skip_zero: true\n", encoding="utf-8")
    monkeypatch.setenv("NICSTAT_CONFIG", str(path))
    monkeypatch.setenv("NICSTAT_LOG_LEVEL", "DEBUG")

    cfg = load_config(None)
    assert cfg.filters.skip_zero is True
    assert cfg.logging.level == "DEBUG"


def test_count_none_runs_forever() -> None:
    cfg = AppConfig.model_validate({"sampling": {"count": None}})
    assert cfg.sampling.count is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"sampling": {"interval_seconds": 0}},
        {"sampling": {"count": 0}},
        {"output": {"page_size": 0}},
        {"output": {"style": "xml"}},
        {"source": {"kind": "snmp"}},
        {"source": {"retries": {"max_attempts": 0}}},
    ],
)
def test_invalid_values_raise_config_error(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        load_config(None, overrides=overrides)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
