from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from nicstat.core.exceptions import ConfigError

CONFIG_ENV_VAR = "NICSTAT_CONFIG"
LOG_LEVEL_ENV_VAR = "NICSTAT_LOG_LEVEL"


class SamplingConfig(BaseModel):
    interval_seconds: float = 1.0
    count: int | None = 1  # None runs until stopped
    since_boot: bool = False

    @field_validator("interval_seconds")
    @classmethod
    def _interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval_seconds must be > 0")
        return v

    @field_validator("count")
    @classmethod
    def _count_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("count must be >= 1")
        return v


class FilterConfig(BaseModel):
    interfaces: list[str] = Field(default_factory=list)
    skip_zero: bool = False

    @field_validator("interfaces")
    @classmethod
    def _strip_names(cls, v: list[str]) -> list[str]:
        return [name.strip() for name in v if name and name.strip()]

    def allow_list(self) -> frozenset[str] | None:
        return frozenset(self.interfaces) if self.interfaces else None


class SourceRetries(BaseModel):
    max_attempts: int = 1
    backoff_seconds: list[float] = Field(default_factory=lambda: [0.5])

    @field_validator("max_attempts")
    @classmethod
    def _attempts_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be >= 1")
        return v


class SourceConfig(BaseModel):
    kind: Literal["psutil", "sysfs", "kstat"] = "psutil"
    include_loopback: bool = False
    command_timeout: float = 5.0
    sysfs_root: str = "/sys/class/net"
    retries: SourceRetries = Field(default_factory=SourceRetries)


class OutputConfig(BaseModel):
    style: Literal["full", "summary", "json"] = "full"
    page_size: int = 20

    @field_validator("page_size")
    @classmethod
    def _page_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page_size must be >= 1")
        return v


class UIConfig(BaseModel):
    enabled: bool = False


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    log_dir: str | None = None


class AppConfig(BaseModel):
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed reading config yaml: {path}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return raw


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the effective configuration.

    Precedence, lowest first: model defaults, the YAML file (explicit path or
    $NICSTAT_CONFIG), $NICSTAT_LOG_LEVEL, then ``overrides`` (command line).
    """
    load_dotenv(override=False)
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR) or None

    raw: dict[str, Any] = load_yaml(Path(config_path)) if config_path else {}

    env_level = os.getenv(LOG_LEVEL_ENV_VAR)
    if env_level:
        raw = _deep_merge_dicts(raw, {"logging": {"level": env_level}})
    if overrides:
        raw = _deep_merge_dicts(raw, overrides)

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def _deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge_dicts(out[k], v)
        else:
            out[k] = v
    return out
