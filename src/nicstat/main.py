from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any

from nicstat.core.config import AppConfig, load_config
from nicstat.core.exceptions import ConfigError, SourceUnavailableError
from nicstat.core.utils import platform_summary, setup_logging
from nicstat.engine.sampler import Sampler
from nicstat.engine.scheduler import TickScheduler
from nicstat.report.reporters import Reporter, make_reporter
from nicstat.sources.factory import SOURCE_KINDS, make_source

EPILOG = """\
examples:
  nicstat --boot-summary  # print summary since boot
  nicstat 1             # print continually every 1 second
  nicstat 1 5           # print 5 times, every 1 second
  nicstat -s            # summary output
  nicstat -i hme0       # print hme0 only

fields:
  Int    interface        rKB/s  read Kbytes/s     wKB/s  write Kbytes/s
  rPk/s  read packets/s   wPk/s  write packets/s   rAvs   read average size, bytes
  wAvs   write average size, bytes                 %Util  utilisation (r+w/ifspeed)
  Sat    saturation (defer, nocanput, norecvbuf, noxmtbuf) per second
"""


def _positive_float(raw: str) -> float:
    try:
        v = float(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {raw}") from exc
    if v <= 0:
        raise argparse.ArgumentTypeError("interval must be > 0")
    return v


def _positive_int(raw: str) -> int:
    try:
        v = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {raw}") from exc
    if v < 1:
        raise argparse.ArgumentTypeError("count must be >= 1")
    return v


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="nicstat",
        description="Print network traffic, Kbyte/s read and written, per interface.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("interval", nargs="?", type=_positive_float, help="Seconds between samples")
    p.add_argument("count", nargs="?", type=_positive_int, help="Number of samples (default: forever)")
    p.add_argument("-s", dest="summary", action="store_true", help="Print summary output")
    p.add_argument("-z", dest="skip_zero", action="store_true", help="Skip zero lines")
    p.add_argument("-i", dest="interfaces", type=str, default=None, help="Print these instances only (int[,int...])")
    p.add_argument("--json", action="store_true", help="Print one JSON object per row")
    p.add_argument("--ui", action="store_true", help="Live terminal dashboard")
    p.add_argument("--source", choices=SOURCE_KINDS, default=None, help="Counter source")
    p.add_argument(
        "--boot-summary",
        action="store_true",
        help="Report averages since boot on the first tick instead of using it as a baseline",
    )
    p.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    p.add_argument("--log-level", type=str, default=None)
    p.add_argument("--log-dir", type=str, default=None, help="Also write rotating logs here")
    return p.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    out: dict[str, Any] = {}

    def put(section: str, key: str, value: Any) -> None:
        out.setdefault(section, {})[key] = value

    if args.interval is not None:
        put("sampling", "interval_seconds", args.interval)
        put("sampling", "count", args.count)
    elif args.ui:
        put("sampling", "count", None)
    if args.boot_summary:
        put("sampling", "since_boot", True)
    if args.interfaces is not None:
        put("filters", "interfaces", args.interfaces.split(","))
    if args.skip_zero:
        put("filters", "skip_zero", True)
    if args.summary:
        put("output", "style", "summary")
    if args.json:
        put("output", "style", "json")
    if args.ui:
        put("ui", "enabled", True)
    if args.source:
        put("source", "kind", args.source)
    if args.log_level:
        put("logging", "level", args.log_level)
    if args.log_dir:
        put("logging", "log_dir", args.log_dir)
    return out


def run(sampler: Sampler, scheduler: TickScheduler, reporter: Reporter) -> int:
    log = logging.getLogger("nicstat")
    try:
        for _ in scheduler.ticks():
            result = sampler.tick()
            if result is not None:
                reporter.render(result)
    except SourceUnavailableError as exc:
        log.error("counter source became unavailable: %s", exc)
        return 1
    finally:
        sampler.source.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config: AppConfig = load_config(args.config, overrides=_overrides(args))
    except ConfigError as exc:
        print(f"nicstat: {exc}", file=sys.stderr)
        return 2

    setup_logging(config.logging.level, config.logging.log_dir)
    log = logging.getLogger("nicstat")
    log.info("starting", extra={"platform": dict(platform_summary()), "source": config.source.kind})

    try:
        source = make_source(config.source)
    except SourceUnavailableError as exc:
        log.error("counter source %s unavailable: %s", config.source.kind, exc)
        return 1

    sampler = Sampler.from_config(source, config)

    if config.ui.enabled:
        from nicstat.ui.app import NicstatApp

        app = NicstatApp(
            sampler=sampler,
            interval_seconds=config.sampling.interval_seconds,
            count=config.sampling.count,
        )
        app.run()
        source.close()
        return 0

    scheduler = TickScheduler(
        interval_seconds=config.sampling.interval_seconds,
        count=config.sampling.count,
    )

    def _handle_sig(signum: int, _frame: object) -> None:
        if scheduler.stopped:
            return
        log.info("shutdown requested", extra={"signal": signum})
        scheduler.request_stop()

    prev_int = signal.signal(signal.SIGINT, _handle_sig)
    prev_term = signal.signal(signal.SIGTERM, _handle_sig)

    reporter = make_reporter(config.output.style, page_size=config.output.page_size)
    try:
        rc = run(sampler, scheduler, reporter)
    finally:
        signal.signal(signal.SIGINT, prev_int)
        signal.signal(signal.SIGTERM, prev_term)
    log.info("stopped")
    return rc


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
