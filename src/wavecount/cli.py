"""wavecount CLI.

Reads one or more OHLC CSV files, runs the wave engine on each (as a batch
queue) and prints a compact/pretty summary or the JSON result contract.

Exit code is 0 when every file was analyzed, 1 otherwise.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from wavecount.config import load_config
from wavecount.data.loader import read_csv_bars
from wavecount.ew.core.options import EngineConfig
from wavecount.logging import LogConfig, get_logger, setup_logging
from wavecount.reporting.render import render_batch
from wavecount.run.batch import AnalysisJob, JobResult, run_batch, to_dict

log = get_logger("wavecount.cli")


# ----------------------------- helpers -----------------------------

def _ensure_dir(p: str) -> None:
    Path(p).parent.mkdir(parents=True, exist_ok=True)


def _symbol_for(path: str) -> str:
    return Path(path).stem


def _engine_config(cfg: Dict[str, Any], args: argparse.Namespace) -> EngineConfig:
    section = dict(cfg.get("engine") or {})
    if args.zigzag_pct is not None:
        section["zigzag_pct"] = args.zigzag_pct
    if args.min_bars is not None:
        section["min_bars"] = args.min_bars
    return EngineConfig.from_mapping({"engine": section})


def _load_jobs(paths: Sequence[str]) -> tuple[List[AnalysisJob], List[JobResult]]:
    jobs: List[AnalysisJob] = []
    failed: List[JobResult] = []
    for path in paths:
        sym = _symbol_for(path)
        try:
            bars = read_csv_bars(path)
        except (OSError, ValueError) as e:
            log.error("could not load bars", extra={"path": path, "error": str(e)})
            failed.append(JobResult(symbol=sym, bars=0, error=str(e), error_kind=type(e).__name__))
            continue
        jobs.append(AnalysisJob(symbol=sym, bars=bars))
    return jobs, failed


# ----------------------------- main -----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="wavecount")

    p.add_argument("--csv", action="append", default=[], help="OHLC CSV file (repeatable)")

    # engine
    p.add_argument("--zigzag_pct", type=float, default=None, help="pivot reversal threshold in percent")
    p.add_argument("--min_bars", type=int, default=None)
    p.add_argument("--max_bars", type=int, default=None, help="analyze only the most recent N bars")

    # output
    p.add_argument("--format", default="compact", choices=["compact", "pretty", "json"])
    p.add_argument("--export_report", default="", help="write full JSON results here")
    p.add_argument("--export_report_csv", default="", help="write one summary row per file here")

    # logging/config
    p.add_argument("--config", default="")
    p.add_argument("--log_level", default=None)
    p.add_argument("--log_json", action="store_true")

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config(file_path=args.config or None)
    log_cfg = cfg.get("log") or {}
    setup_logging(
        LogConfig(
            level=str(args.log_level or log_cfg.get("level", "info")),
            json=bool(args.log_json or log_cfg.get("json", False)),
        )
    )

    if not args.csv:
        log.error("no input files; pass --csv PATH")
        return 1

    engine_cfg = _engine_config(cfg, args)
    max_bars = int(args.max_bars if args.max_bars is not None else (cfg.get("batch") or {}).get("max_bars", 365))

    jobs, failed = _load_jobs(args.csv)
    results = failed + run_batch(jobs, engine_cfg, max_bars=max_bars)
    order = {_symbol_for(p): i for i, p in enumerate(args.csv)}
    results.sort(key=lambda r: order.get(r.symbol, len(order)))

    if args.format == "json":
        print(json.dumps(to_dict(results), ensure_ascii=False, indent=2))
    else:
        print(render_batch(results, fmt=args.format))

    # exports
    if args.export_report:
        _ensure_dir(args.export_report)
        with open(args.export_report, "w", encoding="utf-8") as f:
            json.dump(to_dict(results), f, ensure_ascii=False, indent=2)

    if args.export_report_csv:
        _ensure_dir(args.export_report_csv)
        pd.DataFrame([r.summary() for r in results]).to_csv(args.export_report_csv, index=False)

    n_failed = sum(1 for r in results if not r.ok)
    if n_failed:
        log.warning("some files failed", extra={"failed": n_failed, "jobs": len(results)})
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
