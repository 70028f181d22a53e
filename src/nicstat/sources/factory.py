from __future__ import annotations

from nicstat.core.config import SourceConfig
from nicstat.sources.base import CounterSource
from nicstat.sources.kstat_source import KstatCounterSource
from nicstat.sources.psutil_source import PsutilCounterSource
from nicstat.sources.sysfs_source import SysfsCounterSource

SOURCE_KINDS = ("psutil", "sysfs", "kstat")


def make_source(cfg: SourceConfig) -> CounterSource:
    """Build the configured source. Raises SourceUnavailableError."""
    if cfg.kind == "sysfs":
        return SysfsCounterSource(root=cfg.sysfs_root, include_loopback=cfg.include_loopback)
    if cfg.kind == "kstat":
        return KstatCounterSource(
            include_loopback=cfg.include_loopback,
            command_timeout=cfg.command_timeout,
        )
    return PsutilCounterSource(include_loopback=cfg.include_loopback)
