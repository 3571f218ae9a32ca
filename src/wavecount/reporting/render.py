from __future__ import annotations

import datetime
from typing import List, Optional

from wavecount.ew.core.model import AnalysisResult, FibTarget, Wave
from wavecount.run.batch import JobResult


def _fmt_ts(ts: Optional[int]) -> str:
    if ts is None:
        return "open"
    return datetime.datetime.fromtimestamp(ts / 1000.0, tz=datetime.timezone.utc).strftime("%Y-%m-%d")


def _fmt_wave(w: Wave) -> str:
    end = f"{w.end_price:g}" if w.end_price is not None else "..."
    arrow = "up" if w.direction > 0 else "down"
    return f"{w.label.value}({arrow} {w.start_price:g}->{end})"


def _fmt_target(t: FibTarget) -> str:
    flags = ""
    if t.is_confluence:
        flags += " confluence"
    if t.is_critical:
        flags += " critical"
    return f"{t.text} @ {t.price:.4f} [{t.label}]{flags}"


def _compact_line(symbol: str, r: AnalysisResult) -> str:
    cur = r.current_wave.label.value if r.current_wave else "-"
    labels = "".join(w.label.value for w in r.waves) or "-"
    return (
        f"{symbol} trend={r.trend.value} waves={labels} current={cur} "
        f"invalid={len(r.invalid_waves)} impulse={int(r.impulse_pattern)} corrective={int(r.corrective_pattern)} "
        f"targets={len(r.fib_targets)} price={r.current_price:g}"
    )


def _pretty_lines(symbol: str, r: AnalysisResult) -> List[str]:
    lines: List[str] = []
    lines.append(f"{symbol}: {r.trend.value} @ {r.current_price:g}")
    if not r.confirmed:
        lines.append("  no confirmed wave 3 yet")
    if r.waves:
        lines.append("  waves:")
        for w in r.waves:
            lines.append(f"   - {_fmt_wave(w)} {_fmt_ts(w.start_ts)}..{_fmt_ts(w.end_ts)}")
    if r.current_wave:
        lines.append(f"  current: {_fmt_wave(r.current_wave)} since {_fmt_ts(r.current_wave.start_ts)}")
    if r.fib_targets:
        lines.append("  targets:")
        for t in r.fib_targets:
            lines.append(f"   - {_fmt_target(t)}")
    if r.invalid_waves:
        seen = []
        for w in r.invalid_waves:
            if w.invalidation is not None and w.invalidation not in seen:
                seen.append(w.invalidation)
        lines.append(f"  invalidations: {len(seen)}")
        for inv in seen:
            lines.append(f"   - {inv.rule} at {_fmt_ts(inv.ts)}: {inv.reason}")
    flags = []
    if r.impulse_pattern:
        flags.append("impulse 1-5")
    if r.corrective_pattern:
        flags.append("corrective A-C")
    if flags:
        lines.append("  complete: " + ", ".join(flags))
    return lines


def render_result(symbol: str, result: AnalysisResult, fmt: str = "compact") -> str:
    """Render one analysis.

    fmt:
      - compact: one line (default)
      - pretty : multi-line
    Unknown formats fall back to compact.
    """
    fmt = (fmt or "compact").strip().lower()
    if fmt == "pretty":
        return "\n".join(_pretty_lines(symbol, result))
    return _compact_line(symbol, result)


def render_batch(results: List[JobResult], fmt: str = "compact", now: Optional[datetime.datetime] = None) -> str:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    failed = sum(1 for r in results if not r.ok)
    lines: List[str] = [f"wavecount {now.strftime('%Y-%m-%d %H:%M UTC')} jobs={len(results)} failed={failed}"]
    for jr in results:
        if jr.result is None:
            lines.append(f"{jr.symbol} error={jr.error_kind}: {jr.error}")
            continue
        lines.append(render_result(jr.symbol, jr.result, fmt))
    return "\n".join(lines)
