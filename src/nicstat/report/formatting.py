from __future__ import annotations

FULL_COLUMNS = ("Time", "Int", "rKB/s", "wKB/s", "rPk/s", "wPk/s", "rAvs", "wAvs", "%Util", "Sat")
SUMMARY_COLUMNS = ("Time", "Int", "rKB/s", "wKB/s")


def fmt_neat(v: float) -> str:
    """Seven characters wide, with fewer decimals as the value grows."""
    x = float(v)
    if x >= 100000:
        return f"{int(x):7d}"
    if x >= 100:
        return f"{x:7.1f}"
    return f"{x:7.2f}"


def fmt_pct(v: float | None) -> str:
    if v is None:
        return "N/A"
    return f"{v:.2f}%"


def full_header() -> str:
    return "%8s %7s %7s %7s %7s %7s %7s %7s %7s %6s" % FULL_COLUMNS


def summary_header() -> str:
    return "%8s %8s %14s %14s" % SUMMARY_COLUMNS
