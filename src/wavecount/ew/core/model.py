"""Wave engine value types.

Everything here is a frozen dataclass. Waves are "closed" or "discarded" by
building a replacement (`Wave.closed`, `Wave.discarded`); nothing is edited in
place, so a returned AnalysisResult can be shared freely.

`to_dict()` emits the JSON contract consumed by the UI (camelCase keys).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class WaveRole(str, Enum):
    IMPULSIVE = "impulsive"
    CORRECTIVE = "corrective"


class WaveLabel(str, Enum):
    W1 = "1"
    W2 = "2"
    W3 = "3"
    W4 = "4"
    W5 = "5"
    A = "A"
    B = "B"
    C = "C"

    def next(self) -> "WaveLabel":
        i = CYCLE.index(self)
        return CYCLE[(i + 1) % len(CYCLE)]

    @property
    def role(self) -> WaveRole:
        # trend-aligned legs are impulsive; B moves with the larger trend
        if self in (WaveLabel.W1, WaveLabel.W3, WaveLabel.W5, WaveLabel.B):
            return WaveRole.IMPULSIVE
        return WaveRole.CORRECTIVE


CYCLE: Tuple[WaveLabel, ...] = tuple(WaveLabel)
IMPULSE_LABELS: Tuple[WaveLabel, ...] = CYCLE[:5]
CORRECTIVE_LABELS: Tuple[WaveLabel, ...] = CYCLE[5:]


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Invalidation:
    """Why a wave count was thrown away."""
    rule: str
    ts: int
    price: float
    reason: str
    violated_label: str
    violated_price: float
    percent_violation: float
    restart_ts: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "timestamp": self.ts,
            "price": self.price,
            "reason": self.reason,
            "violatedWave": {"number": self.violated_label, "price": self.violated_price},
            "percentViolation": round(self.percent_violation, 4),
            "restartFromTimestamp": self.restart_ts,
        }


@dataclass(frozen=True)
class Wave:
    label: WaveLabel
    direction: int  # +1 up, -1 down
    start_ts: int
    start_price: float
    end_ts: Optional[int] = None
    end_price: Optional[float] = None
    is_valid: bool = True
    invalidation: Optional[Invalidation] = None

    @property
    def role(self) -> WaveRole:
        return self.label.role

    @property
    def is_complete(self) -> bool:
        return self.end_ts is not None

    @property
    def extent(self) -> Optional[float]:
        if self.end_price is None:
            return None
        return abs(self.end_price - self.start_price)

    def closed(self, ts: int, price: float) -> "Wave":
        return replace(self, end_ts=ts, end_price=price)

    def discarded(self, inv: Invalidation) -> "Wave":
        return replace(self, is_valid=False, invalidation=inv)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.label.value,
            "type": self.role.value,
            "direction": "up" if self.direction > 0 else "down",
            "startTimestamp": self.start_ts,
            "startPrice": self.start_price,
            "endTimestamp": self.end_ts,
            "endPrice": self.end_price,
            "isComplete": self.is_complete,
            "isValid": self.is_valid,
            "invalidation": self.invalidation.to_dict() if self.invalidation else None,
        }


@dataclass(frozen=True)
class FibTarget:
    price: float
    ratio: float
    label: str  # "support" | "resistance"
    is_retracement: bool
    is_extension: bool
    is_confluence: bool = False
    confluent_ratios: Tuple[float, ...] = ()
    is_critical: bool = False

    @property
    def text(self) -> str:
        kind = "extension" if self.is_extension else "retracement"
        return f"{self.ratio * 100:.1f}% {kind}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.ratio,
            "price": round(self.price, 6),
            "label": self.label,
            "text": self.text,
            "isRetracement": self.is_retracement,
            "isExtension": self.is_extension,
            "isConfluence": self.is_confluence,
            "confluentLevels": list(self.confluent_ratios),
            "isCritical": self.is_critical,
        }


@dataclass(frozen=True)
class AnalysisResult:
    waves: Tuple[Wave, ...]
    invalid_waves: Tuple[Wave, ...]
    current_wave: Optional[Wave]
    fib_targets: Tuple[FibTarget, ...]
    trend: Trend
    impulse_pattern: bool
    corrective_pattern: bool
    current_price: float
    # False is the "no confirmed wave 3" outcome: a valid result, just empty-handed
    confirmed: bool = False
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def completed_waves(self) -> Tuple[Wave, ...]:
        return self.waves

    def to_dict(self) -> Dict[str, Any]:
        return {
            "waves": [w.to_dict() for w in self.waves],
            "invalidWaves": [w.to_dict() for w in self.invalid_waves],
            "currentWave": self.current_wave.to_dict() if self.current_wave else None,
            "fibTargets": [t.to_dict() for t in self.fib_targets],
            "trend": self.trend.value,
            "impulsePattern": self.impulse_pattern,
            "correctivePattern": self.corrective_pattern,
            "currentPrice": self.current_price,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)
