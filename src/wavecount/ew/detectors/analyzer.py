"""Wave analyzer: bars -> AnalysisResult.

Pipeline:
- validate the bar contract (InsufficientData / InvalidBar);
- zigzag pivots with threshold fallback (DegeneratePivotSequence);
- sequence pivots into a live wave count, rewinding on rule violations;
- Fibonacci targets for the open wave;
- assemble the result.

Pure function of its inputs: no I/O, no state kept between calls.
"""

from __future__ import annotations

from typing import Sequence, Union

from wavecount.data.bars import Bar, BarSeries, validate_bars
from wavecount.ew.core.assembler import assemble
from wavecount.ew.core.fibonacci import fib_targets
from wavecount.ew.core.model import AnalysisResult
from wavecount.ew.core.options import EngineConfig
from wavecount.ew.core.sequencer import sequence_waves
from wavecount.logging import get_logger
from wavecount.swing.zigzag import ZigZagConfig, extract_pivots

log = get_logger("wavecount.analyzer")


def analyze_waves(
    bars: Union[BarSeries, Sequence[Bar]],
    cfg: EngineConfig = EngineConfig(),
) -> AnalysisResult:
    series = validate_bars(bars, min_bars=cfg.min_bars)
    log.debug("analyzer start", extra={"bars": len(series), "zigzag_pct": cfg.zigzag_pct})

    pivots, pct = extract_pivots(
        series,
        ZigZagConfig(pct=cfg.zigzag_pct),
        fallback_pcts=cfg.fallback_pcts,
        min_pivots=cfg.min_pivots,
    )
    count = sequence_waves(pivots)
    price = series.last_close
    targets = fib_targets(count, price, cfg)

    result = assemble(
        count,
        targets,
        price,
        meta={"bars": len(series), "pivots": len(pivots), "zigzag_pct": pct, "restarts": count.restarts},
    )
    log.debug(
        "analyzer done",
        extra={
            "pivots": len(pivots),
            "waves": len(result.waves),
            "invalid": len(result.invalid_waves),
            "restarts": count.restarts,
            "trend": result.trend.value,
        },
    )
    return result
