"""Caller-side normalization of historical data into canonical bars.

Price exports come with different timestamp columns (`ts`, `timestamp`,
`time`, `date`) and units (epoch seconds, epoch ms, date strings). The engine
only accepts `Bar` with integer ms timestamps, so all of that guessing lives
here and never inside the engine.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from wavecount.data.bars import Bar, BarSeries, PRICE_COLS
from wavecount.logging import get_logger

log = get_logger("wavecount.loader")

_TS_COLUMNS = ("ts", "timestamp", "time", "date", "datetime")

# epoch values below this are taken as seconds (1e11 s is year 5138)
_SECONDS_CUTOFF = 100_000_000_000


def _ts_to_ms(col: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(col):
        dt = pd.to_datetime(col, utc=True)
        return (dt - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)
    if pd.api.types.is_numeric_dtype(col):
        num = col.astype("float64")
        scale = 1000.0 if num.abs().max() < _SECONDS_CUTOFF else 1.0
        return (num * scale).round().astype("int64")
    dt = pd.to_datetime(col, utc=True)
    return (dt - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)


def bars_from_frame(df: pd.DataFrame) -> BarSeries:
    """Build a BarSeries from a frame with OHLC columns and a time column or DatetimeIndex."""
    frame = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    missing = [c for c in PRICE_COLS if c not in frame.columns]
    if missing:
        raise ValueError(f"frame missing columns: {missing}")

    ts_col = next((c for c in _TS_COLUMNS if c in frame.columns), None)
    if ts_col is not None:
        ts = _ts_to_ms(frame[ts_col])
    elif isinstance(frame.index, pd.DatetimeIndex):
        ts = _ts_to_ms(frame.index.to_series())
    else:
        raise ValueError(f"frame needs one of {list(_TS_COLUMNS)} or a DatetimeIndex")

    out = pd.DataFrame({"ts": ts.to_numpy()})
    for c in PRICE_COLS:
        out[c] = pd.to_numeric(frame[c], errors="coerce").to_numpy()
    out["volume"] = pd.to_numeric(frame["volume"], errors="coerce").to_numpy() if "volume" in frame.columns else float("nan")

    n0 = len(out)
    out = out.sort_values("ts", kind="stable").drop_duplicates(subset="ts", keep="last")
    if len(out) != n0:
        log.debug("dropped duplicate timestamps", extra={"dropped": n0 - len(out)})

    bars = [
        Bar(
            ts=int(r.ts),
            open=float(r.open),
            high=float(r.high),
            low=float(r.low),
            close=float(r.close),
            volume=None if pd.isna(r.volume) else float(r.volume),
        )
        for r in out.itertuples(index=False)
    ]
    return BarSeries.from_bars(bars)


def read_csv_bars(path: Union[str, Path]) -> BarSeries:
    df = pd.read_csv(path)
    bars = bars_from_frame(df)
    log.debug("csv loaded", extra={"path": str(path), "bars": len(bars)})
    return bars
