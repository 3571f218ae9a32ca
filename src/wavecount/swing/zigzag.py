"""ZigZag pivot extraction.

Reduces a bar series to alternating swing pivots:
- peaks sit on bar highs, troughs on bar lows;
- a running candidate extremum is replaced while price extends it and is
  confirmed as a pivot only once price reverses by at least `pct` percent;
- the final (unconfirmed) candidate closes the list, so the last pivot is the
  most extreme point near the end of the series.

`extract_pivots` raises DegeneratePivotSequence when fewer than two pivots
survive, after trying the configured fallback thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from wavecount.data.bars import BarSeries
from wavecount.errors import DegeneratePivotSequence
from wavecount.logging import get_logger

log = get_logger("wavecount.zigzag")


class PivotKind(str, Enum):
    PEAK = "peak"
    TROUGH = "trough"


@dataclass(frozen=True)
class Pivot:
    index: int  # bar position
    ts: int
    price: float
    kind: PivotKind

    @property
    def is_peak(self) -> bool:
        return self.kind == PivotKind.PEAK


@dataclass(frozen=True)
class ZigZagConfig:
    pct: float = 3.0


def _is_more_extreme(a: Pivot, b: Pivot) -> bool:
    """True when b goes further than a in their shared direction."""
    return b.price > a.price if a.is_peak else b.price < a.price


def merge_same_kind(pivots: Sequence[Pivot]) -> List[Pivot]:
    """Collapse runs of same-kind pivots, keeping the most extreme (earliest on ties)."""
    out: List[Pivot] = []
    for p in pivots:
        if out and out[-1].kind == p.kind:
            if _is_more_extreme(out[-1], p):
                out[-1] = p
            continue
        out.append(p)
    return out


def zigzag(bars: BarSeries, cfg: ZigZagConfig) -> List[Pivot]:
    """Single zigzag pass at a fixed threshold. May return fewer than two pivots."""
    if cfg.pct <= 0:
        raise ValueError("zigzag pct must be > 0")
    thr = float(cfg.pct) / 100.0
    df = bars.df
    ts = df["ts"].tolist()
    hi = df["high"].tolist()
    lo = df["low"].tolist()
    n = len(ts)
    if n == 0:
        return []

    pivots: List[Pivot] = []

    # seed: walk until the high/low range since the start clears the threshold
    hi_i, lo_i = 0, 0
    cand: Optional[Pivot] = None
    i = 1
    while i < n and cand is None:
        if hi[i] > hi[hi_i]:
            hi_i = i
        if lo[i] < lo[lo_i]:
            lo_i = i
        if hi_i != lo_i and hi[hi_i] >= lo[lo_i] * (1.0 + thr):
            if lo_i < hi_i:
                pivots.append(Pivot(lo_i, ts[lo_i], lo[lo_i], PivotKind.TROUGH))
                cand = Pivot(hi_i, ts[hi_i], hi[hi_i], PivotKind.PEAK)
            else:
                pivots.append(Pivot(hi_i, ts[hi_i], hi[hi_i], PivotKind.PEAK))
                cand = Pivot(lo_i, ts[lo_i], lo[lo_i], PivotKind.TROUGH)
        i += 1

    if cand is None:
        return pivots

    # resume right after the candidate; bars between it and i only matter if they extend it
    i = cand.index + 1
    while i < n:
        if cand.is_peak:
            if hi[i] > cand.price:
                cand = Pivot(i, ts[i], hi[i], PivotKind.PEAK)
            elif lo[i] <= cand.price * (1.0 - thr):
                pivots.append(cand)
                cand = Pivot(i, ts[i], lo[i], PivotKind.TROUGH)
        else:
            if lo[i] < cand.price:
                cand = Pivot(i, ts[i], lo[i], PivotKind.TROUGH)
            elif hi[i] >= cand.price * (1.0 + thr):
                pivots.append(cand)
                cand = Pivot(i, ts[i], hi[i], PivotKind.PEAK)
        i += 1

    pivots.append(cand)
    return merge_same_kind(pivots)


def extract_pivots(
    bars: BarSeries,
    cfg: ZigZagConfig,
    *,
    fallback_pcts: Sequence[float] = (),
    min_pivots: int = 0,
) -> Tuple[List[Pivot], float]:
    """Run the zigzag, retrying lower thresholds when too few pivots come out.

    Returns (pivots, pct_used). Among the runs tried, the one with the most
    pivots wins; ties keep the earlier (larger) threshold.
    """
    best = zigzag(bars, cfg)
    best_pct = float(cfg.pct)
    if len(best) < min_pivots:
        for pct in fallback_pcts:
            alt = zigzag(bars, ZigZagConfig(pct=float(pct)))
            log.debug("zigzag fallback", extra={"pct": pct, "pivots": len(alt), "had": len(best)})
            if len(alt) > len(best):
                best, best_pct = alt, float(pct)
            if len(best) >= min_pivots:
                break

    if len(best) < 2:
        raise DegeneratePivotSequence(len(best), best_pct)

    log.debug("zigzag done", extra={"bars": len(bars), "pivots": len(best), "pct": best_pct})
    return best, best_pct
