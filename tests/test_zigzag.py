import pytest

from conftest import SCENARIO_B, bars_from_prices, bars_through, path_through
from wavecount.errors import DegeneratePivotSequence
from wavecount.swing.zigzag import Pivot, PivotKind, ZigZagConfig, extract_pivots, merge_same_kind, zigzag


def test_zigzag_basic():
    bars = bars_from_prices([100, 102, 105, 100, 98, 103])
    pts = zigzag(bars, ZigZagConfig(pct=3.0))
    assert [p.price for p in pts] == [100, 105, 98, 103]
    assert [p.kind for p in pts] == [PivotKind.TROUGH, PivotKind.PEAK, PivotKind.TROUGH, PivotKind.PEAK]


def test_zigzag_recovers_hand_built_pivots():
    bars = bars_through(SCENARIO_B, 6)
    pts = zigzag(bars, ZigZagConfig(pct=3.0))
    assert [p.price for p in pts] == [float(x) for x in SCENARIO_B]
    assert [p.index for p in pts] == [6 * i for i in range(len(SCENARIO_B))]


def test_zigzag_alternates_and_uses_high_low():
    from wavecount.data.bars import Bar, BarSeries

    closes = path_through([100, 130, 110, 140, 120], 5)
    bars = BarSeries([Bar(ts=i, open=c, high=c + 1, low=c - 1, close=c) for i, c in enumerate(closes)])
    pts = zigzag(bars, ZigZagConfig(pct=3.0))
    for a, b in zip(pts, pts[1:]):
        assert a.kind != b.kind
    peaks = [p.price for p in pts if p.is_peak]
    troughs = [p.price for p in pts if not p.is_peak]
    assert peaks == [131, 141]
    assert troughs == [99, 109, 119]


def test_zigzag_starts_with_peak_on_falling_open():
    bars = bars_from_prices(path_through([200, 150, 180], 5))
    pts = zigzag(bars, ZigZagConfig(pct=3.0))
    assert pts[0].kind == PivotKind.PEAK
    assert [p.price for p in pts] == [200, 150, 180]


def test_zigzag_ignores_moves_below_threshold():
    bars = bars_from_prices(path_through([100, 102.5, 100, 102.5, 100, 102.5], 2))
    assert zigzag(bars, ZigZagConfig(pct=3.0)) == []
    assert len(zigzag(bars, ZigZagConfig(pct=2.0))) == 6


def test_zigzag_rejects_nonpositive_pct():
    with pytest.raises(ValueError):
        zigzag(bars_from_prices([1, 2]), ZigZagConfig(pct=0))


def test_merge_same_kind_keeps_most_extreme():
    pts = [
        Pivot(0, 0, 100.0, PivotKind.TROUGH),
        Pivot(1, 1, 110.0, PivotKind.PEAK),
        Pivot(2, 2, 115.0, PivotKind.PEAK),
        Pivot(3, 3, 112.0, PivotKind.PEAK),
        Pivot(4, 4, 105.0, PivotKind.TROUGH),
        Pivot(5, 5, 105.0, PivotKind.TROUGH),
    ]
    out = merge_same_kind(pts)
    assert [(p.index, p.price) for p in out] == [(0, 100.0), (2, 115.0), (4, 105.0)]


def test_extract_pivots_falls_back_to_lower_threshold():
    bars = bars_from_prices(path_through([100, 102.5, 100, 102.5, 100, 102.5], 2))
    pts, pct = extract_pivots(bars, ZigZagConfig(pct=3.0), fallback_pcts=(2.0,), min_pivots=5)
    assert pct == 2.0
    assert len(pts) == 6


def test_extract_pivots_keeps_primary_when_enough():
    bars = bars_through(SCENARIO_B, 6)
    pts, pct = extract_pivots(bars, ZigZagConfig(pct=3.0), fallback_pcts=(2.0,), min_pivots=5)
    assert pct == 3.0
    assert len(pts) == len(SCENARIO_B)


def test_extract_pivots_degenerate_raises():
    bars = bars_from_prices([100.0] * 60)
    with pytest.raises(DegeneratePivotSequence) as ei:
        extract_pivots(bars, ZigZagConfig(pct=3.0), fallback_pcts=(2.0,), min_pivots=5)
    assert ei.value.pivots == 0
