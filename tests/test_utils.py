from __future__ import annotations

import json
import logging
from pathlib import Path

from nicstat.core.utils import JsonFormatter, safe_json_dumps, setup_logging
from nicstat.sources.base import InterfaceSnapshot


def test_json_formatter_includes_extras() -> None:
    record = logging.LogRecord("nicstat.test", logging.WARNING, __file__, 1, "fetch %s", ("failed",), None)
    record.attempt = 2

    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "fetch failed"
    assert payload["level"] == "WARNING"
    assert payload["attempt"] == 2
    assert "lineno" not in payload


def test_safe_json_dumps_handles_dataclasses() -> None:
    out = json.loads(safe_json_dumps({"snap": InterfaceSnapshot(name="eth0", speed=10)}))
    assert out["snap"]["name"] == "eth0"
    assert out["snap"]["speed"] == 10


def test_setup_logging_writes_rotating_files(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = (list(root.handlers), root.level)
    try:
        setup_logging("INFO", tmp_path / "logs")
        logging.getLogger("nicstat.test").info("hello", extra={"tick": 3})
        for h in root.handlers:
            h.flush()

        text = (tmp_path / "logs" / "nicstat.log").read_text(encoding="utf-8")
        line = (tmp_path / "logs" / "nicstat.jsonl").read_text(encoding="utf-8").splitlines()[-1]
        assert "hello" in text
        assert json.loads(line)["tick"] == 3
    finally:
        for h in root.handlers:
            h.close()
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])


def test_setup_logging_without_dir_is_console_only() -> None:
    root = logging.getLogger()
    saved = (list(root.handlers), root.level)
    try:
        setup_logging("DEBUG")
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
