from wavecount.ew.core.model import Wave, WaveLabel
from wavecount.ew.core.rules import (
    RULE_WAVE2_RETRACEMENT,
    RULE_WAVE3_NOT_LONGEST,
    RULE_WAVE3_UNCONFIRMED,
    RULE_WAVE4_OVERLAP,
    RULE_WAVE4_WAVE1_OVERLAP,
    validate_count,
    wave3_confirmed,
)

LABELS = list(WaveLabel)


def cycle(prices, closed=None):
    """Waves between consecutive prices; the last one is left open unless closed=True."""
    waves = []
    n = len(prices) - 1
    for k in range(n):
        a, b = prices[k], prices[k + 1]
        w = Wave(label=LABELS[k], direction=1 if b > a else -1, start_ts=k, start_price=a)
        if closed or k < n - 1:
            w = w.closed(k + 1, b)
        waves.append(w)
    return waves


def test_valid_impulse_passes():
    assert validate_count(cycle([100, 200, 150, 320, 250, 330], closed=True)) is None


def test_open_wave_is_not_checked():
    # wave 2 tip below wave 1 start, but still open
    assert validate_count(cycle([100, 200, 90])) is None


def test_wave2_retracement():
    v = validate_count(cycle([100, 200, 90, 250]))
    assert v.rule == RULE_WAVE2_RETRACEMENT
    assert v.price == 90 and v.violated_price == 100
    assert v.violated_label == WaveLabel.W1
    assert round(v.percent_violation, 6) == 10.0


def test_wave2_exactly_at_wave1_start_is_invalid():
    assert validate_count(cycle([100, 200, 100, 250])).rule == RULE_WAVE2_RETRACEMENT


def test_wave3_gate_only_when_closed():
    assert validate_count(cycle([100, 200, 150, 190])) is None
    v = validate_count(cycle([100, 200, 150, 190, 170]))
    assert v.rule == RULE_WAVE3_UNCONFIRMED


def test_gate_runs_before_retracement():
    v = validate_count(cycle([100, 200, 90, 180, 150]))
    assert v.rule == RULE_WAVE3_UNCONFIRMED


def test_wave4_overlap():
    v = validate_count(cycle([100, 200, 150, 320, 180, 400]))
    assert v.rule == RULE_WAVE4_OVERLAP
    assert v.ts == 4 and v.price == 180 and v.violated_price == 200


def test_wave4_touching_wave1_end():
    v = validate_count(cycle([100, 200, 150, 320, 200, 400]))
    assert v.rule == RULE_WAVE4_WAVE1_OVERLAP


def test_wave3_not_longest():
    v = validate_count(cycle([100, 200, 150, 260, 230, 380, 300]))
    assert v.rule == RULE_WAVE3_NOT_LONGEST
    assert v.violated_label == WaveLabel.W3


def test_wave3_not_longest_needs_wave5_closed():
    assert validate_count(cycle([100, 200, 150, 260, 230, 380])) is None


def test_bearish_cycle_mirrors():
    assert validate_count(cycle([300, 200, 250, 80, 150, 60], closed=True)) is None
    v = validate_count(cycle([300, 200, 250, 80, 210, 60]))
    assert v.rule == RULE_WAVE4_OVERLAP
    v = validate_count(cycle([300, 200, 310, 150]))
    assert v.rule == RULE_WAVE2_RETRACEMENT


def test_corrective_waves_carry_no_rules():
    # A-B-C wildly overlapping the impulse is fine
    assert validate_count(cycle([100, 200, 150, 320, 250, 330, 90, 400, 50], closed=True)) is None


def test_wave3_confirmed_with_open_tip():
    c = cycle([100, 200, 150, 190])
    assert not wave3_confirmed(c, 190)
    assert wave3_confirmed(c, 210)
    assert not wave3_confirmed(cycle([100, 200]), 300)
