"""Fitting and predicting the rotation angle of a rune over time."""

from __future__ import annotations

import logging
import math
import threading
import time as _time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as _wait_futures
from enum import Enum, IntEnum

import numpy as np
from scipy.optimize import least_squares

_log = logging.getLogger("runeaim.rune_solver")

QUEUE_UPPER_LIMIT = 500
QUEUE_LOWER_LIMIT = 50
PARALLEL_THRESHOLD = 300
STATIC_ANGLE_THRESHOLD = 2 * math.pi / 180
CAUCHY_SCALE = 0.5

SMALL_INITIAL_PARAMS = (1.045, 0.0, 0.0, 0.0, 0.0)
BIG_INITIAL_PARAMS = (0.9125, 1.942, 2.090 - 0.9125, 0.0, 0.0)

_BIG_LOWER = np.array([0.780 * 0.5, 1.884 * 0.5, (2.090 - 1.045) * 0.5, -np.inf, -np.inf])
_BIG_UPPER = np.array([1.045 * 1.5, 2.000 * 1.5, (2.090 - 0.780) * 1.5, np.inf, np.inf])
_SMALL_LOWER = np.array([1.045 * 0.5, -np.inf, -np.inf])
_SMALL_UPPER = np.array([1.045 * 1.5, np.inf, np.inf])


class MotionType(Enum):
    """How the rune rotates."""

    SMALL = "small"
    BIG = "big"
    UNKNOWN = "unknown"


class Direction(IntEnum):
    """Sense of rotation; the value is the sign applied to the curve."""

    CLOCKWISE = -1
    ANTI_CLOCKWISE = 1
    UNKNOWN = 0


def big_rune_curve(x, a, omega, b, c, d, sign):
    """Angle of the big rune: the integral of ``a sin(omega t) + b``, signed."""
    return (-(a / omega * np.cos(omega * (x + d))) + b * (x + d) + c) * sign


def small_rune_curve(x, a, b, c, sign):
    """Angle of the small rune: constant angular velocity ``a``, signed."""
    return (a * (x + b) + c) * sign


def _solve_big(x0, times, angles, sign):
    start = np.clip(np.asarray(x0, dtype=float), _BIG_LOWER, _BIG_UPPER)

    def residuals(p):
        return angles - big_rune_curve(times, p[0], p[1], p[2], p[3], p[4], sign)

    result = least_squares(
        residuals,
        start,
        bounds=(_BIG_LOWER, _BIG_UPPER),
        loss="cauchy",
        f_scale=CAUCHY_SCALE,
        method="trf",
    )
    return tuple(float(v) for v in result.x), float(result.cost)


def _solve_small(x0, times, angles, sign):
    x0 = tuple(x0)
    start = np.clip(np.asarray(x0[:3], dtype=float), _SMALL_LOWER, _SMALL_UPPER)

    def residuals(p):
        return angles - small_rune_curve(times, p[0], p[1], p[2], sign)

    result = least_squares(
        residuals,
        start,
        bounds=(_SMALL_LOWER, _SMALL_UPPER),
        loss="cauchy",
        f_scale=CAUCHY_SCALE,
        method="trf",
    )
    return tuple(float(v) for v in result.x) + x0[3:], float(result.cost)


class CurveFitter:
    """Fits the rune's angle history to a small or big rune curve.

    Fitting starts once ``QUEUE_LOWER_LIMIT`` samples have been collected.
    The first fit runs to completion inside ``update``; later fits run in the
    background, one at a time. With ``auto_type_determined`` set, both curves
    are fitted and the one with the lower cost decides the motion type.
    """

    def __init__(self, motion_type: MotionType = MotionType.UNKNOWN) -> None:
        self._type = motion_type
        self._params: tuple[float, ...] = SMALL_INITIAL_PARAMS
        self._direction = Direction.UNKNOWN
        self._is_static = False
        self.auto_type_determined = False
        self._history: deque[tuple[float, float]] = deque()
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._future: Future | None = None

    @property
    def motion_type(self) -> MotionType:
        """The motion type currently assumed."""
        return self._type

    @property
    def direction(self) -> Direction:
        """The sense of rotation seen in the history."""
        return self._direction

    def _wait_for_fit(self) -> None:
        if self._future is not None:
            _wait_futures([self._future])

    def predict(self, time: float) -> float:
        """The fitted angle at ``time``; the last angle when the rune is static."""
        if self._is_static:
            return self._history[-1][1]
        with self._lock:
            motion_type = self._type
            p = self._params
        sign = int(self._direction)
        if motion_type is MotionType.BIG:
            return float(big_rune_curve(time, p[0], p[1], p[2], p[3], p[4], sign))
        if motion_type is MotionType.SMALL:
            return float(small_rune_curve(time, p[0], p[1], p[2], sign))
        return 0.0

    def update(self, time: float, angle: float) -> None:
        """Add a sample and start a new fit when enough samples are known."""
        self._history.append((float(time), float(angle)))
        if len(self._history) < QUEUE_LOWER_LIMIT:
            return
        if len(self._history) > QUEUE_UPPER_LIMIT:
            self._history.popleft()

        angle_diff = self._history[-1][1] - self._history[0][1]
        if abs(angle_diff) < STATIC_ANGLE_THRESHOLD:
            self._is_static = True
            self._history.popleft()
        else:
            self._is_static = False

        self._direction = Direction.CLOCKWISE if angle_diff < 0 else Direction.ANTI_CLOCKWISE

        if self._future is None:
            self._start_fitting()
            # The first prediction must not come before the first fit.
            self._future.result()
        elif self._future.done():
            self._start_fitting()
        else:
            _log.warning("Fitting is in progress, do not start a new fitting")

    def _start_fitting(self) -> None:
        times = np.array([t for t, _ in self._history], dtype=float)
        angles = np.array([a for _, a in self._history], dtype=float)
        sign = int(self._direction)
        is_static = self._is_static
        job = self._fit_double_curve if self.auto_type_determined else self._fit_curve
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="curve-fit")
        self._future = self._executor.submit(job, times, angles, sign, is_static)

    def _fit_double_curve(self, times, angles, sign, is_static) -> None:
        if is_static:
            # A static target is treated as a small rune.
            with self._lock:
                self._type = MotionType.SMALL
            return

        start = _time.perf_counter()
        with self._lock:
            motion_type = self._type
            params = self._params
        small_x0 = params if motion_type is MotionType.SMALL else SMALL_INITIAL_PARAMS
        big_x0 = params if motion_type is MotionType.BIG else BIG_INITIAL_PARAMS

        if len(times) > PARALLEL_THRESHOLD:
            with ThreadPoolExecutor(max_workers=2) as pool:
                small_job = pool.submit(_solve_small, small_x0, times, angles, sign)
                big_job = pool.submit(_solve_big, big_x0, times, angles, sign)
                small_params, small_cost = small_job.result()
                big_params, big_cost = big_job.result()
        else:
            small_params, small_cost = _solve_small(small_x0, times, angles, sign)
            big_params, big_cost = _solve_big(big_x0, times, angles, sign)

        with self._lock:
            if small_cost < big_cost:
                self._params = small_params
                self._type = MotionType.SMALL
            else:
                self._params = big_params
                self._type = MotionType.BIG
        _log.debug("Fitting time: %d ms", (_time.perf_counter() - start) * 1000)

    def _fit_curve(self, times, angles, sign, is_static) -> None:
        if is_static:
            return
        start = _time.perf_counter()
        with self._lock:
            motion_type = self._type
        if motion_type is MotionType.BIG:
            params, _ = _solve_big(BIG_INITIAL_PARAMS, times, angles, sign)
        elif motion_type is MotionType.SMALL:
            params, _ = _solve_small(SMALL_INITIAL_PARAMS, times, angles, sign)
        else:
            return
        _log.debug("Fitting time: %d ms", (_time.perf_counter() - start) * 1000)
        with self._lock:
            self._params = params

    def reset(self) -> None:
        """Wait for a running fit and forget the type, direction and history."""
        if self._future is not None:
            self._wait_for_fit()
            self._future = None
        with self._lock:
            self._type = MotionType.UNKNOWN
        self._direction = Direction.UNKNOWN
        self._history.clear()

    def set_type(self, motion_type: MotionType) -> None:
        """Force the motion type; ignored while the type is determined automatically."""
        if self._type is motion_type or self.auto_type_determined:
            return
        self._wait_for_fit()
        with self._lock:
            self._type = motion_type
            if motion_type is MotionType.BIG:
                self._params = BIG_INITIAL_PARAMS
            elif motion_type is MotionType.SMALL:
                self._params = SMALL_INITIAL_PARAMS

    def status_verified(self) -> bool:
        """Whether the type and direction are known and a fit has been made."""
        return (
            self._type is not MotionType.UNKNOWN
            and self._direction is not Direction.UNKNOWN
            and self._future is not None
        )

    def debug_text(self) -> str:
        """A short description of the fitted curve."""
        with self._lock:
            motion_type = self._type
            p = self._params
        if motion_type is MotionType.BIG:
            a, omega, b, d = p[0], p[1], p[2], p[4]
            return "V: {}( {:.2f} sin( {:.2f} (x {} {:.2f}) ) {} {:.2f} )".format(
                "-" if self._direction is Direction.CLOCKWISE else " ",
                a,
                omega,
                "+" if d > 0 else "-",
                abs(d),
                "+" if b > 0 else "-",
                abs(b),
            )
        if motion_type is MotionType.SMALL:
            v = 0.0 if self._is_static else p[0]
            return f"V: {int(self._direction) * v:.2f}"
        return "Unknown"