import math

import pytest

from hand_cursor.one_euro_filter import OneEuroFilter, _alpha


def test_first_sample_passes_through():
    f = OneEuroFilter(min_cutoff=6.0, beta=0.2)
    assert f.filter(0.42, 1.0) == 0.42
    assert f.has_state


def test_constant_input_stays_constant():
    f = OneEuroFilter(min_cutoff=6.0, beta=0.2)
    for i in range(20):
        out = f.filter(0.3, 1.0 + i / 30.0)
    assert out == pytest.approx(0.3)


def test_step_is_smoothed_and_converges():
    f = OneEuroFilter(min_cutoff=1.0, beta=0.0)
    f.filter(0.0, 0.0)

    first = f.filter(1.0, 1 / 30.0)
    assert 0.0 < first < 1.0

    previous = first
    for i in range(2, 120):
        out = f.filter(1.0, i / 30.0)
        assert out >= previous
        previous = out
    assert previous == pytest.approx(1.0, abs=1e-3)


def test_alpha_matches_time_constant():
    te = 1 / 30.0
    cutoff = 6.0
    tau = 1.0 / (2.0 * math.pi * cutoff)
    assert _alpha(te, cutoff) == pytest.approx(1.0 / (1.0 + tau / te))


def test_higher_beta_reduces_lag_on_fast_motion():
    slow = OneEuroFilter(min_cutoff=1.0, beta=0.0)
    fast = OneEuroFilter(min_cutoff=1.0, beta=5.0)
    for f in (slow, fast):
        f.filter(0.0, 0.0)

    for i in range(1, 6):
        x = i * 0.1
        out_slow = slow.filter(x, i / 30.0)
        out_fast = fast.filter(x, i / 30.0)

    assert abs(0.5 - out_fast) < abs(0.5 - out_slow)


def test_repeated_timestamp_stays_finite():
    f = OneEuroFilter()
    f.filter(0.2, 1.0)
    out = f.filter(0.8, 1.0)
    assert math.isfinite(out)
    assert 0.2 <= out <= 0.8


def test_reset_restarts_from_next_sample():
    f = OneEuroFilter(min_cutoff=1.0, beta=0.0)
    f.filter(0.0, 0.0)
    f.filter(0.1, 0.033)
    f.reset()
    assert not f.has_state
    assert f.filter(0.9, 0.066) == 0.9
