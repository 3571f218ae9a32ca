"""Wave sequencer: labels zigzag pivots as 1-2-3-4-5-A-B-C cycles.

Consuming pivot i closes the open wave at pivot i-1 and opens the next label
from pivot i-1 towards pivot i. After every step the current cycle is run
through `validate_count`. On a violation the whole cycle (open wave included)
is moved to the invalid list and the count rewinds: a new wave 1 starts at
the pivot where wave 2 of the discarded cycle ended.

The rewind pointer only ever moves forward (by two pivots per restart), so a
run is bounded by the number of pivots.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from wavecount.ew.core.model import Invalidation, Wave, WaveLabel
from wavecount.ew.core.rules import RuleViolation, validate_count, wave3_confirmed
from wavecount.logging import get_logger
from wavecount.swing.zigzag import Pivot

log = get_logger("wavecount.sequencer")


class SequencerState(str, Enum):
    AWAITING_WAVE1 = "awaiting_wave1"
    IN_WAVE_1 = "in_wave_1"
    IN_WAVE_2 = "in_wave_2"
    IN_WAVE_3 = "in_wave_3"
    IN_WAVE_4 = "in_wave_4"
    IN_WAVE_5 = "in_wave_5"
    IN_WAVE_A = "in_wave_a"
    IN_WAVE_B = "in_wave_b"
    IN_WAVE_C = "in_wave_c"
    CYCLE_COMPLETE = "cycle_complete"


_IN_WAVE: Dict[WaveLabel, SequencerState] = {
    WaveLabel.W1: SequencerState.IN_WAVE_1,
    WaveLabel.W2: SequencerState.IN_WAVE_2,
    WaveLabel.W3: SequencerState.IN_WAVE_3,
    WaveLabel.W4: SequencerState.IN_WAVE_4,
    WaveLabel.W5: SequencerState.IN_WAVE_5,
    WaveLabel.A: SequencerState.IN_WAVE_A,
    WaveLabel.B: SequencerState.IN_WAVE_B,
    WaveLabel.C: SequencerState.IN_WAVE_C,
}


@dataclass(frozen=True)
class WaveCount:
    """Outcome of one sequencer run.

    `waves` holds every closed wave of the live count in order, earlier
    complete cycles first. `cycle` is the live cycle (closed waves plus the
    open one). `tip` is the open wave's tentative end (the last pivot).
    """

    waves: Tuple[Wave, ...]
    current: Optional[Wave]
    cycle: Tuple[Wave, ...]
    invalid: Tuple[Wave, ...]
    state: SequencerState
    tip: Optional[Pivot] = None
    restarts: int = 0

    def cycles(self) -> List[Tuple[Wave, ...]]:
        """Closed waves grouped per cycle (a new cycle starts at each wave 1)."""
        out: List[List[Wave]] = []
        for w in self.waves:
            if w.label == WaveLabel.W1 or not out:
                out.append([])
            out[-1].append(w)
        return [tuple(c) for c in out]

    @property
    def has_confirmed_wave3(self) -> bool:
        # a closed wave 3 in the live count has already passed the gate rule
        if any(w.label == WaveLabel.W3 for w in self.waves):
            return True
        tip = self.tip.price if self.tip is not None else None
        return wave3_confirmed(self.cycle, tip)


class WaveSequencer:
    def __init__(self, pivots: Sequence[Pivot]):
        self.pivots: List[Pivot] = list(pivots)
        self.state = SequencerState.AWAITING_WAVE1
        self.cycle_start = 0
        self.restarts = 0
        self._done: List[Wave] = []
        self._cycle: List[Wave] = []
        self._invalid: List[Wave] = []

    def run(self) -> WaveCount:
        self.state = SequencerState.AWAITING_WAVE1
        self.cycle_start = 0
        self.restarts = 0
        self._done, self._cycle, self._invalid = [], [], []

        i = 1
        while i < len(self.pivots):
            self._consume(i)
            v = validate_count(self._cycle)
            if v is None:
                i += 1
                continue
            i = self._rewind(v) + 1
        return self._snapshot()

    def _consume(self, i: int) -> None:
        prev, cur = self.pivots[i - 1], self.pivots[i]
        if self._cycle:
            last = self._cycle[-1]
            self._cycle[-1] = last.closed(prev.ts, prev.price)
            label = last.label.next()
        else:
            label = WaveLabel.W1

        if label == WaveLabel.W1 and self._cycle:
            self.state = SequencerState.CYCLE_COMPLETE
            self._done.extend(self._cycle)
            self._cycle = []
            self.cycle_start = i - 1

        direction = 1 if cur.price > prev.price else -1
        self._cycle.append(Wave(label=label, direction=direction, start_ts=prev.ts, start_price=prev.price))
        self.state = _IN_WAVE[label]

    def _rewind(self, v: RuleViolation) -> int:
        restart = self.cycle_start + 2
        pivot = self.pivots[restart]
        inv = Invalidation(
            rule=v.rule,
            ts=v.ts,
            price=v.price,
            reason=v.reason,
            violated_label=v.violated_label.value,
            violated_price=v.violated_price,
            percent_violation=v.percent_violation,
            restart_ts=pivot.ts,
        )
        self._invalid.extend(w.discarded(inv) for w in self._cycle)
        log.debug(
            "count invalidated",
            extra={"rule": v.rule, "discarded": len(self._cycle), "restart_ts": pivot.ts, "restart_price": pivot.price},
        )
        self._cycle = []
        self.cycle_start = restart
        self.restarts += 1
        self.state = SequencerState.AWAITING_WAVE1
        return restart

    def _snapshot(self) -> WaveCount:
        closed = [w for w in self._cycle if w.is_complete]
        current = self._cycle[-1] if self._cycle and not self._cycle[-1].is_complete else None
        return WaveCount(
            waves=tuple(self._done + closed),
            current=current,
            cycle=tuple(self._cycle),
            invalid=tuple(self._invalid),
            state=self.state,
            tip=self.pivots[-1] if self.pivots else None,
            restarts=self.restarts,
        )


def sequence_waves(pivots: Sequence[Pivot]) -> WaveCount:
    return WaveSequencer(pivots).run()
