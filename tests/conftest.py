from __future__ import annotations

from typing import List, Sequence

import pytest

from wavecount.data.bars import Bar, BarSeries

T0 = 1_700_000_000_000
DAY = 86_400_000


def bars_from_prices(prices: Sequence[float], t0: int = T0, step: int = DAY) -> BarSeries:
    return BarSeries([Bar(ts=t0 + i * step, open=p, high=p, low=p, close=p) for i, p in enumerate(prices)])


def path_through(pivots: Sequence[float], steps: int) -> List[float]:
    """Prices moving linearly between pivot prices, `steps` bars per leg."""
    out: List[float] = []
    for a, b in zip(pivots, pivots[1:]):
        for k in range(steps):
            out.append(a + (b - a) * k / steps)
    out.append(float(pivots[-1]))
    return out


def bars_through(pivots: Sequence[float], steps: int) -> BarSeries:
    return bars_from_prices(path_through(pivots, steps))


# 5 up, 3 down, then a new wave 1 under way
SCENARIO_B = [100, 200, 150, 320, 250, 330, 260, 300, 220, 280]
# wave 4 (180) drops into wave 1 territory (100..200)
SCENARIO_C = [100, 200, 150, 320, 180, 400, 340, 420, 380]


@pytest.fixture
def rising_bars() -> BarSeries:
    return bars_from_prices([100.0 + i for i in range(60)])


@pytest.fixture
def five_three_bars() -> BarSeries:
    return bars_through(SCENARIO_B, 6)


@pytest.fixture
def overlap_bars() -> BarSeries:
    return bars_through(SCENARIO_C, 7)


@pytest.fixture
def wave2_bars() -> BarSeries:
    return bars_through([100, 200, 170], 25)
