from __future__ import annotations

import argparse
import sys
import time

from dotenv import load_dotenv

from nicstat.core.config import load_config
from nicstat.core.exceptions import ConfigError, CounterSourceError, SourceUnavailableError
from nicstat.engine.sampler import Sampler
from nicstat.sources.factory import SOURCE_KINDS, make_source


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="doctor")
    p.add_argument("--config", type=str, default=None)
    p.add_argument("--wait", type=float, default=1.0, help="Seconds between the two probe samples")
    return p.parse_args(argv)


def main(argv: list[str] | None = None, *, sleep=time.sleep) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    load_dotenv(override=False)

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"[FAIL] Config: {exc}")
        return 2
    print(f"[OK] Config loaded: source={cfg.source.kind} style={cfg.output.style}")

    for kind in SOURCE_KINDS:
        try:
            src = make_source(cfg.source.model_copy(update={"kind": kind}))
            snaps = src.fetch()
        except SourceUnavailableError as exc:
            print(f"[--] {kind}: unavailable ({exc})")
            continue
        except CounterSourceError as exc:
            print(f"[WARN] {kind}: fetch failed ({exc})")
            continue
        print(f"[OK] {kind}: {len(snaps)} interfaces, boot_time={src.boot_time()}")
        for s in snaps:
            speed = f"{s.speed // 1_000_000} Mb/s" if s.speed > 0 else "unknown"
            print(f"  - {s.name}: speed={speed} sat={s.saturation_events}")

    try:
        source = make_source(cfg.source)
    except SourceUnavailableError as exc:
        print(f"[FAIL] Configured source {cfg.source.kind} unavailable: {exc}")
        return 2

    sampler = Sampler(source, allow=cfg.filters.allow_list())
    sampler.tick()
    sleep(float(args.wait))
    result = sampler.tick()
    if result is None:
        print("[FAIL] Probe sample failed")
        return 2
    print(f"[OK] Rate probe over {args.wait:.1f}s: {len(result.rows)} rows")
    for m in result.rows:
        print(f"  - {m.name}: rKB/s={m.read_kbps:.2f} wKB/s={m.write_kbps:.2f} util={m.utilization_pct:.2f}%")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
