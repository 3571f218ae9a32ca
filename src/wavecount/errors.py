"""Failure kinds raised by the wave engine.

All of them derive from ValueError so callers that only care about "bad input"
can catch one type. Rule violations during wave counting are *not* errors; they
are recorded on the result's invalid waves.
"""

from __future__ import annotations

from typing import Optional


class WaveAnalysisError(ValueError):
    """Base class for every fatal engine outcome."""


class InsufficientData(WaveAnalysisError):
    def __init__(self, got: int, need: int):
        super().__init__(f"need at least {need} bars, got {got}")
        self.got = got
        self.need = need


class InvalidBar(WaveAnalysisError):
    def __init__(self, index: Optional[int], reason: str):
        where = f"bar[{index}]" if index is not None else "bars"
        super().__init__(f"{where}: {reason}")
        self.index = index
        self.reason = reason


class DegeneratePivotSequence(WaveAnalysisError):
    def __init__(self, pivots: int, pct: float):
        super().__init__(f"only {pivots} pivot(s) found at zigzag threshold {pct}%")
        self.pivots = pivots
        self.pct = pct
