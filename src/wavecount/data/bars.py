"""OHLC bar models and the engine's input contract.

The engine accepts exactly one bar shape: `Bar` with an integer millisecond
timestamp. Anything looser (date strings, alternative field names, frames) is
normalized by the caller, see `wavecount.data.loader`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Union

import pandas as pd

from wavecount.errors import InsufficientData, InvalidBar

PRICE_COLS = ["open", "high", "low", "close"]


@dataclass(frozen=True)
class Bar:
    ts: int  # milliseconds since epoch (UTC)
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


class BarSeries:
    def __init__(self, bars: Sequence[Bar]):
        self.bars: List[Bar] = list(bars)
        self._df: Optional[pd.DataFrame] = None

    @staticmethod
    def from_bars(bars: Iterable[Bar]) -> "BarSeries":
        return BarSeries(list(bars))

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def __getitem__(self, i: int) -> Bar:
        return self.bars[i]

    @property
    def df(self) -> pd.DataFrame:
        if self._df is None:
            idx = pd.to_datetime([int(b.ts) for b in self.bars], unit="ms", utc=True)
            self._df = pd.DataFrame(
                {
                    "ts": [int(b.ts) for b in self.bars],
                    "open": [float(b.open) for b in self.bars],
                    "high": [float(b.high) for b in self.bars],
                    "low": [float(b.low) for b in self.bars],
                    "close": [float(b.close) for b in self.bars],
                    "volume": [float(b.volume) if b.volume is not None else float("nan") for b in self.bars],
                },
                index=idx,
            )
        return self._df

    def to_df(self) -> pd.DataFrame:
        return self.df.copy()

    def tail(self, n: int) -> "BarSeries":
        if n <= 0 or n >= len(self.bars):
            return self
        return BarSeries(self.bars[-n:])

    @property
    def last_close(self) -> float:
        return float(self.bars[-1].close)

    @property
    def start_time(self):
        if not self.bars:
            return None
        return pd.to_datetime(int(self.bars[0].ts), unit="ms", utc=True)

    @property
    def end_time(self):
        if not self.bars:
            return None
        return pd.to_datetime(int(self.bars[-1].ts), unit="ms", utc=True)


def _first_true(mask: pd.Series) -> int:
    return int(mask.reset_index(drop=True).idxmax())


def validate_bars(bars: Union[BarSeries, Sequence[Bar]], min_bars: int = 1) -> BarSeries:
    """Check the input contract and return the bars as a BarSeries.

    Raises InsufficientData when there are fewer than `min_bars` bars and
    InvalidBar for the first bar that is not a `Bar`, has a non-integer
    timestamp, a non-finite or non-positive price, high below low, or a
    timestamp that does not strictly increase.
    """
    series = bars if isinstance(bars, BarSeries) else BarSeries(list(bars))
    need = max(1, int(min_bars))
    if len(series) < need:
        raise InsufficientData(len(series), need)

    for i, b in enumerate(series.bars):
        if not isinstance(b, Bar):
            raise InvalidBar(i, f"expected Bar, got {type(b).__name__}")
        if isinstance(b.ts, bool) or not isinstance(b.ts, int):
            raise InvalidBar(i, f"timestamp must be integer milliseconds, got {b.ts!r}")

    try:
        df = series.df
    except (TypeError, ValueError) as e:
        raise InvalidBar(None, f"non-numeric price: {e}") from e

    px = df[PRICE_COLS]
    ok = (px.notna() & (px.abs() != float("inf")) & (px > 0)).all(axis=1)
    if not ok.all():
        i = _first_true(~ok)
        raise InvalidBar(i, f"prices must be finite and positive: {series.bars[i]}")

    inverted = df["high"] < df["low"]
    if inverted.any():
        i = _first_true(inverted)
        raise InvalidBar(i, f"high {series.bars[i].high} below low {series.bars[i].low}")

    steps = df["ts"].diff()
    steps.iloc[0] = 1
    if (steps <= 0).any():
        i = _first_true(steps <= 0)
        raise InvalidBar(i, f"timestamp {series.bars[i].ts} does not increase after {series.bars[i - 1].ts}")

    return series
