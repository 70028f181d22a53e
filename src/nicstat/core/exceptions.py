from __future__ import annotations


class NicstatError(Exception):
    """Base error for nicstat."""


class ConfigError(NicstatError):
    pass


class CounterSourceError(NicstatError):
    pass


class SourceUnavailableError(CounterSourceError):
    """The counter source cannot run on this host."""
