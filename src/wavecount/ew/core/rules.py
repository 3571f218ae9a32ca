from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from wavecount.ew.core.model import Wave, WaveLabel

RULE_WAVE3_UNCONFIRMED = "wave3-unconfirmed"
RULE_WAVE2_RETRACEMENT = "wave2-retracement"
RULE_WAVE4_OVERLAP = "wave4-overlap"
RULE_WAVE3_NOT_LONGEST = "wave3-not-longest"
RULE_WAVE4_WAVE1_OVERLAP = "wave4-wave1-overlap"


@dataclass(frozen=True)
class RuleViolation:
    """First failed rule of a cycle, with the prices that broke it.

    `ts`/`price` locate the offending wave end; `violated_label` and
    `violated_price` name the level that was crossed.
    """

    rule: str
    reason: str
    ts: int
    price: float
    violated_label: WaveLabel
    violated_price: float

    @property
    def percent_violation(self) -> float:
        if self.violated_price == 0:
            return 0.0
        return abs(self.price - self.violated_price) / abs(self.violated_price) * 100.0


def _closed_by_label(cycle: Sequence[Wave]) -> Dict[WaveLabel, Wave]:
    return {w.label: w for w in cycle if w.is_complete}


def wave3_confirmed(cycle: Sequence[Wave], tip: Optional[float] = None) -> bool:
    """Wave 3 has moved past wave 1's end.

    An open wave 3 counts when `tip` (its running extreme) is beyond wave 1's end.
    """
    w1 = next((w for w in cycle if w.label == WaveLabel.W1 and w.is_complete), None)
    w3 = next((w for w in cycle if w.label == WaveLabel.W3), None)
    if w1 is None or w3 is None:
        return False
    end = w3.end_price if w3.is_complete else tip
    if end is None:
        return False
    return w1.direction * (end - w1.end_price) > 0


def _check_wave3_gate(w: Dict[WaveLabel, Wave]) -> Optional[RuleViolation]:
    w1, w3 = w.get(WaveLabel.W1), w.get(WaveLabel.W3)
    if w1 is None or w3 is None:
        return None
    d = w1.direction
    if d * (w3.end_price - w1.end_price) <= 0:
        return RuleViolation(
            rule=RULE_WAVE3_UNCONFIRMED,
            reason=f"wave 3 ended at {w3.end_price} without passing wave 1 end {w1.end_price}",
            ts=w3.end_ts,
            price=w3.end_price,
            violated_label=WaveLabel.W1,
            violated_price=w1.end_price,
        )
    return None


def _check_wave2_retracement(w: Dict[WaveLabel, Wave]) -> Optional[RuleViolation]:
    w1, w2 = w.get(WaveLabel.W1), w.get(WaveLabel.W2)
    if w1 is None or w2 is None:
        return None
    if w1.direction * (w2.end_price - w1.start_price) <= 0:
        return RuleViolation(
            rule=RULE_WAVE2_RETRACEMENT,
            reason=f"wave 2 retraced to {w2.end_price}, past wave 1 start {w1.start_price}",
            ts=w2.end_ts,
            price=w2.end_price,
            violated_label=WaveLabel.W1,
            violated_price=w1.start_price,
        )
    return None


def _check_wave4_overlap(w: Dict[WaveLabel, Wave]) -> Optional[RuleViolation]:
    w1, w4 = w.get(WaveLabel.W1), w.get(WaveLabel.W4)
    if w1 is None or w4 is None:
        return None
    if w1.direction * (w4.end_price - w1.end_price) < 0:
        return RuleViolation(
            rule=RULE_WAVE4_OVERLAP,
            reason=f"wave 4 ended at {w4.end_price}, inside wave 1 territory (end {w1.end_price})",
            ts=w4.end_ts,
            price=w4.end_price,
            violated_label=WaveLabel.W1,
            violated_price=w1.end_price,
        )
    return None


def _check_wave3_longest(w: Dict[WaveLabel, Wave]) -> Optional[RuleViolation]:
    w1, w3, w5 = w.get(WaveLabel.W1), w.get(WaveLabel.W3), w.get(WaveLabel.W5)
    if w1 is None or w3 is None or w5 is None:
        return None
    if w3.extent < w1.extent or w3.extent < w5.extent:
        longer = w1 if w1.extent >= w5.extent else w5
        return RuleViolation(
            rule=RULE_WAVE3_NOT_LONGEST,
            reason=f"wave 3 extent {w3.extent:g} is shorter than wave {longer.label.value} extent {longer.extent:g}",
            ts=w5.end_ts,
            price=w5.end_price,
            violated_label=WaveLabel.W3,
            violated_price=w3.end_price,
        )
    return None


def _check_wave4_wave1_overlap(w: Dict[WaveLabel, Wave]) -> Optional[RuleViolation]:
    w1, w4 = w.get(WaveLabel.W1), w.get(WaveLabel.W4)
    if w1 is None or w4 is None:
        return None
    lo1, hi1 = sorted((w1.start_price, w1.end_price))
    lo4, hi4 = sorted((w4.start_price, w4.end_price))
    if max(lo1, lo4) <= min(hi1, hi4):
        return RuleViolation(
            rule=RULE_WAVE4_WAVE1_OVERLAP,
            reason=f"wave 4 range [{lo4}, {hi4}] overlaps wave 1 range [{lo1}, {hi1}]",
            ts=w4.end_ts,
            price=w4.end_price,
            violated_label=WaveLabel.W1,
            violated_price=w1.end_price,
        )
    return None


CHECKS: Tuple[Tuple[str, Callable[[Dict[WaveLabel, Wave]], Optional[RuleViolation]]], ...] = (
    (RULE_WAVE3_UNCONFIRMED, _check_wave3_gate),
    (RULE_WAVE2_RETRACEMENT, _check_wave2_retracement),
    (RULE_WAVE4_OVERLAP, _check_wave4_overlap),
    (RULE_WAVE3_NOT_LONGEST, _check_wave3_longest),
    (RULE_WAVE4_WAVE1_OVERLAP, _check_wave4_wave1_overlap),
)


def validate_count(cycle: Sequence[Wave]) -> Optional[RuleViolation]:
    """Run the impulse rules over one cycle's closed waves, in order.

    Returns the first violation or None. Open waves and corrective labels are
    ignored; a cycle with fewer closed waves than a rule needs simply passes it.
    """
    closed = _closed_by_label(cycle)
    for _name, check in CHECKS:
        v = check(closed)
        if v is not None:
            return v
    return None
