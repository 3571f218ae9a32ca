from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from wavecount.ew.core.model import FibTarget, Wave, WaveLabel, WaveRole
from wavecount.ew.core.options import EngineConfig
from wavecount.ew.core.sequencer import WaveCount
from wavecount.logging import get_logger

log = get_logger("wavecount.fibonacci")


def retracement_level(prev: Wave, ratio: float) -> float:
    return prev.end_price - (prev.end_price - prev.start_price) * ratio


def extension_level(current: Wave, reference: Wave, ratio: float) -> float:
    return current.start_price + current.direction * reference.extent * ratio


def support_or_resistance(level: float, price: float, direction: int) -> str:
    if level < price:
        return "support"
    if level > price:
        return "resistance"
    # exactly at price: the level the wave is heading into
    return "resistance" if direction > 0 else "support"


def _preceding(count: WaveCount, current: Wave) -> Optional[Wave]:
    if not count.waves:
        return None
    prev = count.waves[-1]
    # after a rewind the last closed wave may belong to an older cycle
    if prev.end_ts != current.start_ts:
        return None
    return prev


def _cycle_wave1(count: WaveCount) -> Optional[Wave]:
    return next((w for w in count.cycle if w.label == WaveLabel.W1 and w.is_complete), None)


def merge_confluent(targets: Sequence[FibTarget], tolerance_pct: float) -> List[FibTarget]:
    """Fold each level into an earlier kept level within `tolerance_pct` percent of it."""
    kept: List[FibTarget] = []
    for t in targets:
        for j, k in enumerate(kept):
            if abs(k.price - t.price) <= abs(k.price) * tolerance_pct / 100.0:
                kept[j] = replace(
                    k,
                    is_confluence=True,
                    confluent_ratios=k.confluent_ratios + (t.ratio,),
                    is_critical=k.is_critical or t.is_critical,
                )
                break
        else:
            kept.append(t)
    return kept


def fib_targets(count: WaveCount, current_price: float, cfg: EngineConfig) -> Tuple[FibTarget, ...]:
    """Retracement and extension levels for the open wave, sorted by price."""
    current = count.current
    if current is None:
        return ()
    prev = _preceding(count, current)
    if prev is None:
        return ()

    raw: List[FibTarget] = []
    for r in cfg.retracement_ratios:
        px = retracement_level(prev, r)
        raw.append(
            FibTarget(
                price=px,
                ratio=r,
                label=support_or_resistance(px, current_price, current.direction),
                is_retracement=True,
                is_extension=False,
                is_critical=current.label == WaveLabel.W2 and r == 1.0,
            )
        )

    w1 = _cycle_wave1(count)
    if current.role == WaveRole.IMPULSIVE and current.label != WaveLabel.W1 and w1 is not None:
        for r in cfg.extension_ratios:
            px = extension_level(current, w1, r)
            raw.append(
                FibTarget(
                    price=px,
                    ratio=r,
                    label=support_or_resistance(px, current_price, current.direction),
                    is_retracement=False,
                    is_extension=True,
                )
            )

    merged = merge_confluent(raw, cfg.confluence_pct)
    out = tuple(sorted(merged, key=lambda t: t.price))
    log.debug("fib targets", extra={"wave": current.label.value, "levels": len(out), "raw": len(raw)})
    return out
