from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from wavecount.ew.core.model import (
    CORRECTIVE_LABELS,
    IMPULSE_LABELS,
    AnalysisResult,
    FibTarget,
    Trend,
    Wave,
    WaveLabel,
)
from wavecount.ew.core.sequencer import WaveCount


def _has_run(cycle: Sequence[Wave], labels: Sequence[WaveLabel]) -> bool:
    got = [w.label for w in cycle if w.is_complete and w.is_valid]
    return all(lbl in got for lbl in labels)


def classify_trend(count: WaveCount, current_price: float) -> Trend:
    if not count.has_confirmed_wave3:
        return Trend.NEUTRAL
    w1: Optional[Wave] = count.cycle[0] if count.cycle else None
    if w1 is None:
        return Trend.NEUTRAL
    if current_price > w1.start_price:
        return Trend.BULLISH
    if current_price < w1.start_price:
        return Trend.BEARISH
    return Trend.NEUTRAL


def assemble(
    count: WaveCount,
    targets: Sequence[FibTarget],
    current_price: float,
    meta: Optional[Dict[str, Any]] = None,
) -> AnalysisResult:
    cycles = count.cycles()
    return AnalysisResult(
        waves=count.waves,
        invalid_waves=count.invalid,
        current_wave=count.current,
        fib_targets=tuple(targets),
        trend=classify_trend(count, current_price),
        impulse_pattern=any(_has_run(c, IMPULSE_LABELS) for c in cycles),
        corrective_pattern=any(_has_run(c, CORRECTIVE_LABELS) for c in cycles),
        current_price=current_price,
        confirmed=count.has_confirmed_wave3,
        meta=dict(meta or {}),
    )
