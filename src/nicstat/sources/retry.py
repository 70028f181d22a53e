from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from nicstat.core.exceptions import CounterSourceError, SourceUnavailableError

T = TypeVar("T")

_log = logging.getLogger("nicstat.sources.retry")


def call_with_retries(
    fn: Callable[[], T],
    *,
    max_attempts: int,
    backoff_seconds: list[float],
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    last_exc: CounterSourceError | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except SourceUnavailableError:
            raise
        except CounterSourceError as exc:
            last_exc = exc
            if attempt >= max_attempts:
                break
            delay = backoff_seconds[min(attempt - 1, len(backoff_seconds) - 1)] if backoff_seconds else 1.0
            _log.info("fetch failed, retrying", extra={"attempt": attempt, "delay": delay, "error": str(exc)})
            sleep(float(delay))
    assert last_exc is not None
    raise last_exc
