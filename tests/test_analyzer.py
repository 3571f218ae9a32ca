import json
import math

import pytest

from conftest import DAY, SCENARIO_B, bars_from_prices, bars_through
from wavecount import analyze_waves
from wavecount.data.bars import Bar, BarSeries
from wavecount.errors import DegeneratePivotSequence, InsufficientData, InvalidBar
from wavecount.ew.core.model import CYCLE, Trend, WaveLabel
from wavecount.ew.core.options import EngineConfig


def labels(waves):
    return [w.label.value for w in waves]


def test_rising_series_has_no_confirmed_count(rising_bars):
    r = analyze_waves(rising_bars)
    assert r.waves == ()
    assert r.trend == Trend.NEUTRAL
    assert not r.impulse_pattern and not r.corrective_pattern
    assert not r.confirmed
    assert r.current_wave.label == WaveLabel.W1
    assert r.current_wave.start_price == 100.0
    assert r.fib_targets == ()


def test_five_up_three_down(five_three_bars):
    r = analyze_waves(five_three_bars)
    assert labels(r.waves) == ["1", "2", "3", "4", "5", "A", "B", "C"]
    assert all(w.is_complete and w.is_valid for w in r.waves)
    assert r.impulse_pattern and r.corrective_pattern
    assert r.invalid_waves == ()
    assert r.current_wave.label == WaveLabel.W1 and not r.current_wave.is_complete
    assert r.trend == Trend.BULLISH
    assert r.confirmed
    assert r.current_price == 280.0


def test_wave4_overlap_invalidates_and_restarts(overlap_bars):
    r = analyze_waves(overlap_bars)
    assert r.invalid_waves
    assert {w.invalidation.rule for w in r.invalid_waves} == {"wave4-overlap"}
    restart_ts = overlap_bars[14].ts  # bar of the wave 2 low (150)
    assert all(w.invalidation.restart_ts == restart_ts for w in r.invalid_waves)
    assert r.waves[0].label == WaveLabel.W1
    assert r.waves[0].start_ts == restart_ts and r.waves[0].start_price == 150.0
    assert labels(r.waves) == ["1", "2", "3", "4", "5"]
    assert r.current_wave.label == WaveLabel.A
    assert r.impulse_pattern and not r.corrective_pattern


def test_wave2_fib_targets(wave2_bars):
    r = analyze_waves(wave2_bars)
    assert r.current_wave.label == WaveLabel.W2
    by_ratio = {t.ratio: t for t in r.fib_targets}
    assert by_ratio[0.618].price == pytest.approx(138.2, abs=1e-6)
    assert by_ratio[0.618].label == "support"
    assert by_ratio[1.0].is_critical
    assert r.trend == Trend.NEUTRAL


def test_bearish_trend():
    bars = bars_through([400, 300, 350, 150, 250, 100, 160], 9)
    r = analyze_waves(bars)
    assert labels(r.waves)[:5] == ["1", "2", "3", "4", "5"]
    assert r.waves[0].direction == -1
    assert r.trend == Trend.BEARISH


def test_same_input_same_output(five_three_bars):
    a = analyze_waves(five_three_bars).to_json()
    b = analyze_waves(BarSeries(list(five_three_bars))).to_json()
    assert a == b


def test_trailing_bar_keeps_completed_waves(five_three_bars):
    before = analyze_waves(five_three_bars)
    last = five_three_bars[-1]
    extended = BarSeries(list(five_three_bars) + [Bar(ts=last.ts + DAY, open=285.0, high=285.0, low=285.0, close=285.0)])
    after = analyze_waves(extended)
    assert after.waves == before.waves
    assert after.current_wave.label == before.current_wave.label
    assert after.current_wave.start_ts == before.current_wave.start_ts
    assert after.current_price == 285.0


def _noisy(n=400):
    return [100 + 20 * math.sin(i / 7.0) + 8 * math.sin(i / 2.3) + 0.15 * i for i in range(n)]


def test_noisy_series_properties():
    r = analyze_waves(bars_from_prices(_noisy()))
    assert len(r.waves) + len(r.invalid_waves) > 0
    if r.waves:
        assert r.waves[0].label == WaveLabel.W1
    for a, b in zip(r.waves, r.waves[1:]):
        assert b.label == a.label.next()
        assert a.end_ts == b.start_ts
    if r.current_wave is not None and r.waves:
        assert r.current_wave.label == r.waves[-1].label.next()

    # group by cycle and check the impulse rules that must hold on every kept count
    groups, cur = [], []
    for w in r.waves:
        if w.label == WaveLabel.W1 and cur:
            groups.append(cur)
            cur = []
        cur.append(w)
    groups.append(cur)
    for g in groups:
        by = {w.label: w for w in g}
        w1 = by[WaveLabel.W1]
        d = w1.direction
        if WaveLabel.W2 in by:
            assert d * (by[WaveLabel.W2].end_price - w1.start_price) > 0
        if WaveLabel.W5 in by:
            w3, w5 = by[WaveLabel.W3], by[WaveLabel.W5]
            assert w3.extent >= w1.extent and w3.extent >= w5.extent

    for w in r.invalid_waves:
        assert not w.is_valid and w.invalidation is not None


def test_json_contract(five_three_bars):
    d = json.loads(analyze_waves(five_three_bars).to_json())
    assert set(d) == {
        "waves",
        "invalidWaves",
        "currentWave",
        "fibTargets",
        "trend",
        "impulsePattern",
        "correctivePattern",
        "currentPrice",
    }
    w = d["waves"][0]
    assert w["number"] == "1" and w["type"] == "impulsive" and w["direction"] == "up"
    assert d["waves"][5]["number"] == "A" and d["waves"][5]["type"] == "corrective"
    assert d["waves"][6]["type"] == "impulsive"
    assert d["currentWave"]["endTimestamp"] is None and d["currentWave"]["isComplete"] is False


def test_invalidation_in_json(overlap_bars):
    d = analyze_waves(overlap_bars).to_dict()
    inv = d["invalidWaves"][0]["invalidation"]
    assert inv["rule"] == "wave4-overlap"
    assert inv["violatedWave"] == {"number": "1", "price": 200.0}
    assert inv["restartFromTimestamp"] == overlap_bars[14].ts


def test_too_short():
    with pytest.raises(InsufficientData):
        analyze_waves(bars_from_prices([100.0 + i for i in range(20)]))


def test_min_bars_is_configurable():
    r = analyze_waves(bars_from_prices([100.0, 110.0, 100.0]), EngineConfig(min_bars=3))
    assert r.current_wave.label == WaveLabel.W2


def test_flat_series_is_degenerate():
    with pytest.raises(DegeneratePivotSequence):
        analyze_waves(bars_from_prices([100.0] * 60))


def test_bad_bar_rejected_before_analysis():
    bars = list(bars_through(SCENARIO_B, 6))
    bars[10] = Bar(ts=bars[10].ts, open=1.0, high=1.0, low=0.0, close=1.0)
    with pytest.raises(InvalidBar):
        analyze_waves(bars)


def test_cycle_constant():
    assert [lbl.value for lbl in CYCLE] == ["1", "2", "3", "4", "5", "A", "B", "C"]
    assert WaveLabel.C.next() == WaveLabel.W1
