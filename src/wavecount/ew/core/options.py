"""EngineConfig / tuning knobs.

Kept small and explicit; `from_mapping` reads the `engine` section of a loaded
config dict and ignores keys it does not know.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class EngineConfig:
    zigzag_pct: float = 3.0
    fallback_pcts: Tuple[float, ...] = (2.0,)
    min_pivots: int = 5
    min_bars: int = 50

    retracement_ratios: Tuple[float, ...] = (0.382, 0.5, 0.618, 1.0)
    extension_ratios: Tuple[float, ...] = (1.618, 2.0, 2.618)
    confluence_pct: float = 0.05

    def __post_init__(self) -> None:
        if self.zigzag_pct <= 0 or any(p <= 0 for p in self.fallback_pcts):
            raise ValueError("zigzag thresholds must be > 0")
        if self.min_bars < 1:
            raise ValueError("min_bars must be >= 1")
        if self.confluence_pct < 0:
            raise ValueError("confluence_pct must be >= 0")

    @staticmethod
    def from_mapping(cfg: Mapping[str, Any]) -> "EngineConfig":
        section = cfg.get("engine", cfg) or {}
        known = {f.name for f in fields(EngineConfig)}
        kw = {}
        for k, v in section.items():
            if k not in known:
                continue
            if k.endswith(("_pcts", "_ratios")):
                v = tuple(float(x) for x in (v if isinstance(v, (list, tuple)) else [v]))
            elif k in ("min_pivots", "min_bars"):
                v = int(v)
            else:
                v = float(v)
            kw[k] = v
        return EngineConfig(**kw)
