import math

import numpy as np
import pytest

from runeaim.curve_fitter import (
    BIG_INITIAL_PARAMS,
    QUEUE_LOWER_LIMIT,
    CurveFitter,
    Direction,
    MotionType,
    big_rune_curve,
    small_rune_curve,
)


def _small_truth(t, sign=1):
    return 1.045 * t * sign


def _big_truth(t):
    a, omega, b, c, d = BIG_INITIAL_PARAMS
    return -(a / omega) * math.cos(omega * (t + d)) + b * (t + d) + c


def _feed(fitter, func, count=QUEUE_LOWER_LIMIT, dt=0.02):
    times = [k * dt for k in range(count)]
    for t in times:
        fitter.update(t, func(t))
    return times


def test_small_curve_sign_flips_result():
    assert small_rune_curve(2.0, 3.0, 1.0, 4.0, -1) == -small_rune_curve(2.0, 3.0, 1.0, 4.0, 1)


def test_big_curve_at_origin():
    assert big_rune_curve(0.0, 1.0, 1.0, 0.0, 1.0, 0.0, 1) == pytest.approx(0.0)


def test_big_curve_accepts_arrays():
    xs = np.array([0.0, 0.5, 1.0])
    values = big_rune_curve(xs, 0.9, 1.9, 1.1, 0.0, 0.0, 1)
    assert values.shape == (3,)
    assert values[1] == pytest.approx(big_rune_curve(0.5, 0.9, 1.9, 1.1, 0.0, 0.0, 1))


def test_not_enough_samples_is_not_verified():
    fitter = CurveFitter(MotionType.UNKNOWN)
    _feed(fitter, _small_truth, count=QUEUE_LOWER_LIMIT - 1)
    assert not fitter.status_verified()
    assert fitter.predict(1.0) == 0.0
    assert fitter.debug_text() == "Unknown"


def test_small_fit_predicts_linear_motion():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.set_type(MotionType.SMALL)
    times = _feed(fitter, _small_truth)
    assert fitter.status_verified()
    assert fitter.direction is Direction.ANTI_CLOCKWISE
    for t in (times[10], times[-1], 1.5):
        assert fitter.predict(t) == pytest.approx(_small_truth(t), abs=1e-3)


def test_clockwise_small_fit():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.set_type(MotionType.SMALL)
    _feed(fitter, lambda t: _small_truth(t, -1))
    assert fitter.direction is Direction.CLOCKWISE
    assert fitter.predict(1.2) == pytest.approx(_small_truth(1.2, -1), abs=1e-3)
    assert fitter.debug_text().startswith("V: -")


def test_static_target_returns_last_angle():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.auto_type_determined = True
    _feed(fitter, lambda t: 0.3)
    assert fitter.motion_type is MotionType.SMALL
    assert fitter.predict(100.0) == 0.3
    assert fitter.debug_text() == "V: 0.00"
    assert fitter.status_verified()


def test_auto_type_detects_big_rune():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.auto_type_determined = True
    times = _feed(fitter, _big_truth, dt=0.05)
    assert fitter.motion_type is MotionType.BIG
    for t in (times[5], times[25], times[-1]):
        assert fitter.predict(t) == pytest.approx(_big_truth(t), abs=1e-3)


def test_auto_type_detects_small_rune():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.auto_type_determined = True
    _feed(fitter, _small_truth, dt=0.05)
    assert fitter.motion_type is MotionType.SMALL
    assert fitter.predict(2.0) == pytest.approx(_small_truth(2.0), abs=1e-3)


def test_set_type_ignored_when_auto_determined():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.auto_type_determined = True
    fitter.set_type(MotionType.BIG)
    assert fitter.motion_type is MotionType.UNKNOWN


def test_set_type_big_resets_parameters():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.set_type(MotionType.BIG)
    assert fitter.motion_type is MotionType.BIG
    assert "0.91 sin( 1.94 (x - 0.00) )" in fitter.debug_text()


def test_reset_forgets_everything():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.set_type(MotionType.SMALL)
    _feed(fitter, _small_truth)
    assert fitter.status_verified()
    fitter.reset()
    assert not fitter.status_verified()
    assert fitter.motion_type is MotionType.UNKNOWN
    assert fitter.direction is Direction.UNKNOWN
    assert fitter.debug_text() == "Unknown"


def test_predict_static_on_empty_history_after_reset_raises():
    fitter = CurveFitter(MotionType.UNKNOWN)
    fitter.auto_type_determined = True
    _feed(fitter, lambda t: 0.1)
    fitter.reset()
    with pytest.raises(IndexError):
        fitter.predict(1.0)