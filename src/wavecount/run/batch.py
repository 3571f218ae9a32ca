"""Batch runner: an explicit FIFO queue of analysis jobs.

The caller owns the queue; each job calls the stateless engine once. Engine
failures (WaveAnalysisError) are recorded on the job result and the queue keeps
going; anything else propagates.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterable, List, Optional

from wavecount.data.bars import BarSeries
from wavecount.errors import WaveAnalysisError
from wavecount.ew.core.model import AnalysisResult
from wavecount.ew.core.options import EngineConfig
from wavecount.ew.detectors.analyzer import analyze_waves
from wavecount.logging import get_logger

log = get_logger("wavecount.batch")


@dataclass(frozen=True)
class AnalysisJob:
    symbol: str
    bars: BarSeries


@dataclass
class JobResult:
    symbol: str
    bars: int
    result: Optional[AnalysisResult] = None
    error: str = ""
    error_kind: str = ""

    @property
    def ok(self) -> bool:
        return self.result is not None

    def summary(self) -> Dict[str, Any]:
        r = self.result
        return {
            "symbol": self.symbol,
            "bars": self.bars,
            "ok": self.ok,
            "error": self.error,
            "error_kind": self.error_kind,
            "waves": len(r.waves) if r else 0,
            "invalid_waves": len(r.invalid_waves) if r else 0,
            "current_wave": r.current_wave.label.value if r and r.current_wave else None,
            "trend": r.trend.value if r else None,
            "impulse": r.impulse_pattern if r else False,
            "corrective": r.corrective_pattern if r else False,
        }


def run_job(job: AnalysisJob, cfg: EngineConfig, max_bars: int = 365) -> JobResult:
    bars = job.bars.tail(max_bars) if max_bars > 0 else job.bars
    log.debug("batch run_job start", extra={"symbol": job.symbol, "bars": len(bars), "max_bars": max_bars})
    try:
        result = analyze_waves(bars, cfg)
    except WaveAnalysisError as e:
        log.warning("analysis failed", extra={"symbol": job.symbol, "kind": type(e).__name__, "error": str(e)})
        return JobResult(symbol=job.symbol, bars=len(bars), error=str(e), error_kind=type(e).__name__)
    log.debug("batch run_job done", extra={"symbol": job.symbol, "waves": len(result.waves), "trend": result.trend.value})
    return JobResult(symbol=job.symbol, bars=len(bars), result=result)


def run_batch(jobs: Iterable[AnalysisJob], cfg: EngineConfig = EngineConfig(), max_bars: int = 365) -> List[JobResult]:
    queue: Deque[AnalysisJob] = deque(jobs)
    out: List[JobResult] = []
    while queue:
        out.append(run_job(queue.popleft(), cfg, max_bars=max_bars))
    log.debug("batch done", extra={"jobs": len(out), "failed": sum(1 for r in out if not r.ok)})
    return out


def to_dict(results: List[JobResult]) -> List[Dict[str, Any]]:
    return [
        {
            "symbol": r.symbol,
            "bars": r.bars,
            "error": r.error,
            "error_kind": r.error_kind,
            "result": r.result.to_dict() if r.result else None,
        }
        for r in results
    ]
